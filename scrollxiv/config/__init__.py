from .config import (
    DEFAULT_CATEGORIES,
    ArxivConfig,
    FeedConfig,
    LLMConfig,
    Settings,
    get_settings,
)
from .logging_setup import setup_logging

__all__ = [
    "DEFAULT_CATEGORIES",
    "ArxivConfig",
    "FeedConfig",
    "LLMConfig",
    "Settings",
    "get_settings",
    "setup_logging",
]
