"""Webmail - a self-contained webmail application with a REST API."""

__version__ = "1.0.0"
