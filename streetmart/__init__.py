"""StreetMart: vendor / supplier raw-material marketplace order core."""

__version__ = "0.1.0"
