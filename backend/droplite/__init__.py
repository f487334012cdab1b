"""Droplite: minimal file upload and download service."""

__version__ = "1.0.0"
