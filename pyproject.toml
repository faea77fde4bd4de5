[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "leal"
version = "1.0.0"
description = "Loyalty programme HTTP API: businesses, branches, campaigns, points, cashback and reward redemption"
requires-python = ">=3.10"
keywords = ["loyalty", "points", "cashback", "rewards", "campaigns", "flask", "sqlalchemy", "api"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Office/Business :: Financial :: Point-Of-Sale",
]
dependencies = [
    "flask>=2.3",
    "sqlalchemy>=2.0",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
leal = "leal.server:main"

[tool.hatch.build.targets.wheel]
packages = ["leal"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
