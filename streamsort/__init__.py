"""
Spotify Stream Sorter Library

Core modules for loading, sorting and enriching Spotify streaming history.
"""

__version__ = "1.0.0"
__author__ = "Stream Sorter Contributors"

from .config_manager import Config
from .models import Stream, ResourceKey

__all__ = ['Config', 'Stream', 'ResourceKey']
