"""Lintloom - rule engine for project instruction and configuration files."""

__version__ = "0.4.0"
