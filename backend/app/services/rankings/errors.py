class RankingsError(Exception):
    """Base class for failures surfaced by the rankings engine."""


class InvalidInput(RankingsError):
    """A required field is missing or malformed. Raised before any storage access."""

    def __init__(self, message='Missing fields', fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class Contention(RankingsError):
    """Conditional-write retries were exhausted without committing."""

    def __init__(self, key, attempts):
        super().__init__(f"could not commit '{key}' after {attempts} attempts")
        self.key = key
        self.attempts = attempts


class StoreUnavailable(RankingsError):
    """The backing store failed to answer a read or write."""


class VersionConflict(RankingsError):
    """Another writer committed between our read and our conditional write."""
