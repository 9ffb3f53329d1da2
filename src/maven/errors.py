"""Exceptions raised while resolving Maven dependencies."""


class ResolutionError(Exception):
    """Base class for every failure that aborts a resolution pass."""


class CoordinateFormatError(ResolutionError, ValueError):
    """Raised when a string is not a well-formed ``group:artifact:version``."""


class NotFoundError(ResolutionError):
    """Raised when a file is absent from every configured repository.

    During repository iteration a 404 is also signalled with this type and
    handled locally by moving on to the next repository or extension.
    """


class TransportError(ResolutionError):
    """Raised for a network failure other than not-found."""


class CorruptArchiveError(ResolutionError):
    """Raised when a downloaded AAR/JAR is not a valid zip container."""


class IntegrityError(ResolutionError):
    """Raised when an artifact's BLAKE3 hash differs from the lock record."""


class ParseError(ResolutionError):
    """Raised for malformed POM, manifest or lock file contents."""


class LockMismatchError(ResolutionError):
    """Raised when the requested direct dependencies differ from the lock file.

    Callers treat this as "lock is stale" and fall back to a full resolution.
    """

    def __init__(self, missing, unexpected):
        self.missing = sorted(missing)
        self.unexpected = sorted(unexpected)
        super().__init__(
            f"lock file is stale (not locked: {', '.join(self.missing) or '-'}; "
            f"no longer requested: {', '.join(self.unexpected) or '-'})"
        )
