# Configuration package
"""
Configuration package for paysync
Exports settings from settings.py for easy import
"""
from .settings import settings, Settings
from .webhook import WebhookConfig

__all__ = ["settings", "Settings", "WebhookConfig"]
