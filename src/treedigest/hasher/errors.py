"""Error classes for the tree hasher."""

from treedigest.common import ConfigurationError, FileProcessingError, TreeDigestError


class HasherError(TreeDigestError):
    """Base error for tree hashing operations."""
    pass


class InvalidPatternError(ConfigurationError):
    """Exclusion pattern failed to compile."""
    pass


class WalkError(HasherError):
    """A directory could not be listed or an entry could not be stat'ed."""
    pass


class SymlinkResolutionError(HasherError):
    """A symbolic link could not be read or its target is unusable."""
    pass


class FileReadError(FileProcessingError):
    """File could not be opened or read while hashing."""
    pass


class PoolClosedError(HasherError):
    """Work was submitted to a pool that has already been joined."""
    pass


def classify_error(exception: BaseException) -> str:
    """
    Classify an exception into an error category.

    Args:
        exception: The exception to classify

    Returns:
        Error category string: 'configuration', 'walk', 'symlink',
        'permission', 'io', or 'unknown'
    """
    if isinstance(exception, ConfigurationError):
        return 'configuration'
    elif isinstance(exception, WalkError):
        return 'walk'
    elif isinstance(exception, SymlinkResolutionError):
        return 'symlink'
    elif isinstance(exception, FileReadError):
        if isinstance(exception.__cause__, PermissionError):
            return 'permission'
        return 'io'
    elif isinstance(exception, PermissionError):
        return 'permission'
    elif isinstance(exception, OSError):
        return 'io'
    else:
        return 'unknown'
