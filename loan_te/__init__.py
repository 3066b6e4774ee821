"""Leakage-safe target encoding and the loan GBM comparison experiment."""

__version__ = "0.1.0"
