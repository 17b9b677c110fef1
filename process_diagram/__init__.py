"""Outline-to-flowchart compiler and PDF renderer."""

__version__ = "0.1.0"
