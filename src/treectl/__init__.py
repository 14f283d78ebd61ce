"""treectl — run notification decision trees described as data."""

__version__ = "0.1.0"
