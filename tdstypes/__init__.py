"""Codecs and column metadata for SQL Server TDS data types."""

__version__ = "0.1.0"