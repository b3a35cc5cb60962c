"""Siteboard: construction dashboard views over local project fixtures."""

__version__ = "0.3.0"
