"""
Service layer for the medical visa slot monitor.

This module contains configuration loading and artifact persistence.
"""

from .artifact_store import ArtifactStore
from .config_manager import ConfigLoadResult, ConfigurationManager

__all__ = [
    "ArtifactStore",
    "ConfigLoadResult",
    "ConfigurationManager",
]
