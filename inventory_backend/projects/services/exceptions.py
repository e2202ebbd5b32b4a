# projects/services/exceptions.py

"""
PROJECT SERVICE ERRORS

Invoice and stock failures raised while billing a project come from
sales.services and are re-raised unchanged.
"""


class ProjectServiceError(Exception):
    """Base exception for project and expense failures."""


class ProjectValidationError(ProjectServiceError):
    """Raised when project or expense input is incomplete or inconsistent."""


class ProjectStateError(ProjectServiceError):
    """Raised when an operation is not allowed in the project's current status."""


class ExpenseStateError(ProjectServiceError):
    """Raised when a billed expense would be changed or removed."""
