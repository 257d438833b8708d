"""Library exceptions for error handling."""


class LibraryError(Exception):
    """Base exception for library operations."""

    pass


class DirectoryError(LibraryError):
    """Raised when the source directory cannot be listed."""

    def __init__(self, directory: str, reason: str = ""):
        self.directory = directory
        message = f"Could not read directory \"{directory}\""
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MetadataError(LibraryError):
    """Raised when an audio file cannot be probed."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Cannot read \"{path}\""
        if reason:
            message += f": {reason}"
        super().__init__(message)
