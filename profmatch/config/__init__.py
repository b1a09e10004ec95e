"""Configuration module - exports Settings, AppConfig and load_config."""

from profmatch.config.app_config import AppConfig, ExtractionSelectors, GenerationConfig, TimeoutConfig
from profmatch.config.loader import load_config
from profmatch.config.settings import Settings

__all__ = [
    "AppConfig",
    "ExtractionSelectors",
    "GenerationConfig",
    "Settings",
    "TimeoutConfig",
    "load_config",
]
