"""
Workflow Steps

Step execution and the operations steps are built from.
"""

from .browser_step import BrowserStep
from .operations import BaseOperation, OperationRegistry, registry

__all__ = [
    "BrowserStep",
    "BaseOperation",
    "OperationRegistry",
    "registry",
]
