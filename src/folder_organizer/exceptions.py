"""Custom exceptions for folder organizer."""


class FolderOrganizerError(Exception):
    """Base exception for folder organizer errors."""
    pass


class RuleValidationError(FolderOrganizerError):
    """Raised when a rule or rule-set file is invalid."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class FileOperationError(FolderOrganizerError):
    """Raised when a holding-area operation cannot be completed."""
    pass


class HistoryError(FolderOrganizerError):
    """Raised when the history file cannot be written."""
    pass


class ConfigurationError(FolderOrganizerError):
    """Raised when there's an error in configuration."""
    pass
