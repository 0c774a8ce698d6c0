"""Error types raised or recorded during a scan."""


class ScanError(Exception):
    """Base class for dogscan errors."""


class SourceError(ScanError):
    """A source adapter failed (network, auth, parse, timeout)."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class StoreError(ScanError):
    """The content store could not complete a read or write."""


class RuleError(ScanError):
    """A filter rule could not be compiled or evaluated."""

    def __init__(self, rule_id: str, message: str) -> None:
        super().__init__(f"Invalid rule {rule_id!r}: {message}")
        self.rule_id = rule_id
        self.message = message


class ConfigError(ScanError, ValueError):
    """Configuration is invalid. Raised before any scan runs."""
