"""
linktrack package initializer.
"""

from . import analytics
from . import manager
from . import storage

__all__ = ["analytics", "manager", "storage"]
