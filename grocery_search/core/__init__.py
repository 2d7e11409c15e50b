"""
Core application modules.
Configuration, structured logging, metrics, middleware and the database pool.
"""
from .config import SearchSettings, load_settings

__all__ = ["SearchSettings", "load_settings"]
