"""Loyalty programme HTTP API: points, cashback, campaigns and rewards over Flask and SQLAlchemy."""

__version__ = "1.0.0"
__all__ = ["__version__"]