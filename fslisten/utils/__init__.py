"""
fslisten utilities: configuration and logging setup
"""
from .config import ListenerConfig, ListenerOptions, load_config
from .logger import setup_logging

__all__ = [
    'ListenerConfig', 'ListenerOptions', 'load_config',
    'setup_logging',
]
