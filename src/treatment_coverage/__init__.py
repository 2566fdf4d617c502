"""Fuel-treatment coverage by county, joined against county income."""

__version__ = "0.1.0"
