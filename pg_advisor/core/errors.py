"""Advisor error taxonomy"""
from typing import List, Optional


class AdvisorError(Exception):
    """Base class for advisor failures"""
    pass


class CatalogConnectionError(AdvisorError, ConnectionError):
    """Raised when the target database cannot be reached. Fatal for a run."""
    pass


class CatalogPermissionError(AdvisorError, PermissionError):
    """Raised when none of the requested schemas can be read"""

    def __init__(self, message: str, schemas: Optional[List[str]] = None):
        super().__init__(message)
        self.schemas = list(schemas or [])


class ExecutionError(AdvisorError):
    """Raised when a corrective statement fails during apply"""
    pass


class StatementValidationError(AdvisorError):
    """Raised when a rendered corrective statement is not a plain index DDL"""
    pass
