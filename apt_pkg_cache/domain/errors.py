"""Error taxonomy shared by every layer of the package cache."""


class AptPkgCacheError(Exception):
    """Base class for all errors raised by this package."""


class InputValidationError(AptPkgCacheError):
    """A required value is missing or malformed; raised before any I/O."""


ValidationError = InputValidationError


class ExternalToolError(AptPkgCacheError):
    """An invoked external tool could not run or exited with a non-zero status."""

    def __init__(self, message: str, combined_output: str = ""):
        super().__init__(message)
        self.combined_output = combined_output


class ResolutionError(AptPkgCacheError):
    """One or more requested package names could not be resolved."""

    def __init__(self, diagnostics):
        self.diagnostics = list(diagnostics)
        super().__init__("\n".join(self.diagnostics))


class CorruptionError(AptPkgCacheError):
    """A stored cache key does not match its recorded digest."""


class NotFoundError(AptPkgCacheError):
    """An expected file is absent."""


class SerializationError(AptPkgCacheError):
    """A persisted document could not be parsed."""


ParseError = SerializationError


class UnsupportedFileTypeError(AptPkgCacheError):
    """An archive input is neither a regular file nor a symbolic link."""
