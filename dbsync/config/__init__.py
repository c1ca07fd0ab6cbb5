"""
Configuration management
"""
from .manager import ConfigManager, SyncConfig, DEFAULT_COLLECTIONS
