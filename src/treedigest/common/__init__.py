"""Common utilities for treedigest packages."""

from .config import ConfigLoader
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import TreeDigestError, ConfigurationError, FileProcessingError
from .path_utils import clean_absolute_path

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'TreeDigestError',
    'ConfigurationError',
    'FileProcessingError',
    'clean_absolute_path',
]
