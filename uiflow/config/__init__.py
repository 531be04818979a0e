"""
Runner configuration package.
"""

from uiflow.config.manager import EnvironmentManager, env_manager
from uiflow.config.types import RunConfig

__all__ = [
    "EnvironmentManager",
    "env_manager",
    "RunConfig",
]
