"""Database tables of the loyalty programme."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class _Base(DeclarativeBase):
    pass


class User(_Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    document_number: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class Business(_Base):
    __tablename__ = "businesses"

    tax_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    phone: Mapped[int] = mapped_column(BigInteger, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class Branch(_Base):
    __tablename__ = "branches"
    __table_args__ = (Index("idx_branch_name_business", "business_tax_id", "name", unique=True),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_tax_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("businesses.tax_id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class ConversionFactor(_Base):
    __tablename__ = "conversion_factors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_tax_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("businesses.tax_id"), nullable=False)
    branch_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    min_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    points_per_currency: Mapped[float] = mapped_column(Float, nullable=False)
    cashback_per_currency: Mapped[float] = mapped_column(Float, nullable=False)


class Transaction(_Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_document_number: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.document_number"), nullable=False
    )
    branch_id: Mapped[int] = mapped_column(Integer, ForeignKey("branches.id"), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class Campaign(_Base):
    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_tax_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("businesses.tax_id"), nullable=False)
    branch_id: Mapped[int] = mapped_column(Integer, ForeignKey("branches.id"), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    points_multiplier: Mapped[float] = mapped_column(Float, default=1.0)
    cashback_multiplier: Mapped[float] = mapped_column(Float, default=1.0)
    min_purchase_amount: Mapped[float] = mapped_column(Float, default=0.0)


class Earnings(_Base):
    __tablename__ = "earnings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_id: Mapped[int] = mapped_column(Integer, ForeignKey("transactions.id"), nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    cashback_earned: Mapped[float] = mapped_column(Float, default=0.0)


class Reward(_Base):
    __tablename__ = "rewards"
    __table_args__ = (CheckConstraint("points_required > 0", name="chk_rewards_points_required"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, default="")
    points_required: Mapped[int] = mapped_column(Integer, nullable=False)
    business_tax_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("businesses.tax_id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )


class Redemption(_Base):
    __tablename__ = "redemptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_document_number: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.document_number"), nullable=False
    )
    business_tax_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("businesses.tax_id"), nullable=False)
    reward_id: Mapped[int] = mapped_column(Integer, ForeignKey("rewards.id"), nullable=False)
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class UserBalance(_Base):
    __tablename__ = "user_balances"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cashback: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)