"""Error taxonomy — every failure the CLI can report, each with its own exit code."""

from __future__ import annotations


class CertManageError(Exception):
    """Base class for all cert-manage failures."""

    category = "error"
    exit_code = 1


class InvalidPathError(CertManageError):
    """Raised when a whitelist path is empty or looks like a misplaced CLI flag."""

    category = "invalid path"
    exit_code = 3

    def __init__(self, path: str) -> None:
        self.path = path
        if path.strip().startswith("-"):
            reason = "it looks like a command-line flag, --file requires a path to the whitelist"
        else:
            reason = "the path is empty"
        super().__init__(f"The whitelist path '{path}' doesn't look correct: {reason}")


class NotFoundError(CertManageError):
    """Raised when a whitelist file does not exist."""

    category = "not found"
    exit_code = 4

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"The path '{path}' doesn't seem to exist")


class ParseError(CertManageError):
    """Raised when a whitelist file cannot be decoded into the expected schema."""

    category = "parse error"
    exit_code = 5

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Could not parse whitelist '{path}': {detail}")


class StoreUnavailableError(CertManageError):
    """Raised when a store's platform tool or backing database is missing or unreadable."""

    category = "store unavailable"
    exit_code = 6

    def __init__(self, store: str, detail: str) -> None:
        self.store = store
        super().__init__(f"Trust store '{store}' is unavailable: {detail}")


class NoBackupError(CertManageError):
    """Raised when Remove is attempted before a Backup in the same session."""

    category = "no backup"
    exit_code = 7

    def __init__(self, store: str) -> None:
        self.store = store
        super().__init__(
            f"Refusing to modify trust store '{store}': no backup was taken in this session"
        )


class NoBackupFoundError(CertManageError):
    """Raised when Restore finds no backup on disk."""

    category = "no backup found"
    exit_code = 8

    def __init__(self, store: str, location: str) -> None:
        self.store = store
        self.location = location
        super().__init__(f"No backup of trust store '{store}' found at {location}")


class PartialRestoreError(CertManageError):
    """Raised after a best-effort restore when some entries could not be re-imported.

    ``failures`` holds ``(certificate label, reason)`` pairs for every entry the
    platform refused.
    """

    category = "partial restore"
    exit_code = 9

    def __init__(self, store: str, failures: list[tuple[str, str]], restored: int = 0) -> None:
        self.store = store
        self.failures = failures
        self.restored = restored
        lines = "\n".join(f"  - {label}: {reason}" for label, reason in failures)
        super().__init__(
            f"Restored {restored} certificate(s) to '{store}' but "
            f"{len(failures)} could not be re-imported:\n{lines}"
        )


class StoreIOError(CertManageError):
    """Wraps filesystem and external-process failures while touching a store."""

    category = "io error"
    exit_code = 10

    def __init__(self, store: str, detail: str) -> None:
        self.store = store
        super().__init__(f"I/O failure on trust store '{store}': {detail}")


class UnknownStoreError(CertManageError):
    """Raised when no trust store implementation is registered under a name."""

    category = "unknown store"
    exit_code = 2

    def __init__(self, store: str, known: list[str]) -> None:
        self.store = store
        self.known = known
        super().__init__(f"Unknown store '{store}'. Available: {', '.join(known)}")
