"""Effort-based accumulation-curve prediction and backtesting."""

__version__ = "0.1.0"
