# projects/models/__init__.py

"""
PROJECT MODELS PACKAGE EXPORTS
"""

from .audit_log import ProjectAuditLog
from .expense import Expense
from .project import Project

__all__ = [
    "Expense",
    "Project",
    "ProjectAuditLog",
]
