# src/env/__init__.py
"""Navigation configuration profiles (config/navigation.yaml)."""

from .schema import NavigationConfig
from .loader import load_navigation_config

__all__ = ["NavigationConfig", "load_navigation_config"]
