"""Base error definitions for treedigest packages."""

from typing import Any, Dict


class TreeDigestError(Exception):
    """Base exception for all treedigest errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(TreeDigestError):
    """Invalid configuration detected before any work starts."""
    pass


class FileProcessingError(TreeDigestError):
    """Base exception for file processing errors."""
    pass
