"""Configuration module for the ride admin backend."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
