"""
Configuration module for Letter Translator.
"""
from .constants import *
from .logging_config import setup_logging, get_logger

__all__ = [
    # Logging
    'setup_logging',
    'get_logger',
    # Constants (all exported via *)
]
