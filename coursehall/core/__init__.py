"""
Coursehall Backend - Core Module

This module contains configuration, database setup, and security utilities.
"""

from coursehall.core.config import get_settings, settings
from coursehall.core.database import Base, get_db, get_engine

__all__ = ["settings", "get_settings", "Base", "get_db", "get_engine"]
