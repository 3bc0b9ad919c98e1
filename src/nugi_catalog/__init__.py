"""Knife & tool catalog core: product normalization, CSV import and filtering."""

__version__ = "2.0.0"
