"""
contractfuzz Core Module
Configuration, logging and the session driver
"""

__version__ = "0.1.0"
__author__ = "contractfuzz Team"

from .config import ConfigurationManager, ContractFuzzConfig
from .logging import setup_logging

__all__ = [
    "ConfigurationManager",
    "ContractFuzzConfig",
    "setup_logging"
]
