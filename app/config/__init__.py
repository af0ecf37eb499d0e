"""Configuration package for the Portfolio Analyzer service."""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
