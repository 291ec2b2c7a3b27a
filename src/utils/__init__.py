# ========================
# src/utils/__init__.py
# ========================

"""
Utilities Package

Configuration and logging helpers shared by the collection engine and its entry points.
"""

from .config import Config
from .logging_setup import setup_logging

__all__ = [
    'Config',
    'setup_logging',
]
