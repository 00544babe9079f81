"""Exception types raised by test-sentinel."""

from __future__ import annotations


class SentinelError(Exception):
    """Base class for test-sentinel errors."""


class DuplicateRegistrationError(SentinelError, ValueError):
    """Two checkers or handlers claimed the same key."""

    def __init__(self, kind: str, key: str, first: object, second: object):
        self.kind = kind
        self.key = key
        super().__init__(
            f"Duplicate {kind} {key!r}: "
            f"{type(first).__name__} and {type(second).__name__}"
        )


class ConfigError(SentinelError, ValueError):
    """A configuration value could not be parsed."""


class MissingParameterError(SentinelError):
    """A required action parameter was absent."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Missing required parameter: {key}")
