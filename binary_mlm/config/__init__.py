"""
Configuration package.

Settings from the environment and the binary plan configuration.
"""

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.config.settings import Settings, settings

__all__ = [
    "BinaryConfig",
    "Settings",
    "settings",
]
