"""Base trust store contract — every platform certificate database implements this interface."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from cert_manage.core.certificate import CertificateRecord, parse_pem, to_pem_bundle
from cert_manage.core.config import Settings
from cert_manage.core.errors import (
    NoBackupError,
    NoBackupFoundError,
    PartialRestoreError,
    StoreIOError,
)
from cert_manage.core.files import mirror, publish_directory, remove_path, replace_path
from cert_manage.core.process import run_tool
from cert_manage.core.resolver import find_removable
from cert_manage.core.whitelist import Whitelist

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
DATA_NAME = "data"
BUNDLE_NAME = "certificates.pem"


class StoreState(StrEnum):
    UNMODIFIED = "unmodified"
    BACKED_UP = "backed-up"
    MODIFIED = "modified"


class BackupManifest(BaseModel):
    """Metadata stamped on every backup record."""

    store_id: str
    kind: str
    created_at: datetime
    certificate_count: int = Field(ge=0)
    fingerprints: list[str] = Field(default_factory=list)


class TrustStore(ABC):
    """Abstract base class for all platform trust stores.

    Subclasses implement list() and the storage-specific halves of backup,
    removal and restore. The ordering rules (no removal without a backup taken
    in this session, atomic publication of backups) live here so every
    platform enforces them identically.

    Instances are not re-entrant and assume exclusive access to the underlying
    OS database for the duration of a command.
    """

    name: str
    display_name: str
    description: str
    kind: str

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.state = StoreState.UNMODIFIED

    @property
    def store_id(self) -> str:
        """Key under which this store's backup is kept."""
        return self.name

    @property
    def backup_root(self) -> Path:
        return self.settings.backup_dir / self.store_id

    # --- Platform hooks ---------------------------------------------------

    @abstractmethod
    def list(self) -> list[CertificateRecord]:
        """Enumerate every certificate currently trusted by the store."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the store's tooling and backing database exist on this host."""
        ...

    @abstractmethod
    def _write_backup(self, dest: Path, snapshot: list[CertificateRecord]) -> None:
        """Persist the store's backing data into the (temporary) backup directory."""
        ...

    @abstractmethod
    def _delete(self, records: list[CertificateRecord]) -> None:
        """Delete exactly ``records`` from the live store."""
        ...

    @abstractmethod
    def _restore_from(self, root: Path, manifest: BackupManifest) -> None:
        """Bring the live store back to the backup held in ``root``."""
        ...

    # --- Contract ---------------------------------------------------------

    def backup_manifest(self) -> BackupManifest | None:
        """Return the current backup's manifest, or None if no backup exists."""
        path = self.backup_root / MANIFEST_NAME
        if not path.is_file():
            return None
        try:
            return BackupManifest.model_validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            raise StoreIOError(self.store_id, f"backup manifest {path} is unreadable: {e}") from e

    def has_backup(self) -> bool:
        return (self.backup_root / MANIFEST_NAME).is_file()

    def backup(self) -> BackupManifest:
        """Snapshot the store into its backup location, replacing any previous backup.

        The record is written to a temporary sibling directory and only
        published once complete, so a failed backup never leaves a partial
        record behind and never clobbers the previous one.
        """
        snapshot = self.list()
        root = self.backup_root
        try:
            root.parent.mkdir(parents=True, exist_ok=True)
            tmp = Path(tempfile.mkdtemp(prefix=f".{self.store_id}.", dir=root.parent))
        except OSError as e:
            raise StoreIOError(self.store_id, f"cannot create backup directory: {e}") from e

        try:
            self._write_backup(tmp, snapshot)
            manifest = BackupManifest(
                store_id=self.store_id,
                kind=self.kind,
                created_at=datetime.now(UTC),
                certificate_count=len(snapshot),
                fingerprints=sorted(r.fingerprint for r in snapshot),
            )
            (tmp / MANIFEST_NAME).write_text(manifest.model_dump_json(indent=2) + "\n")
            publish_directory(tmp, root)
        except OSError as e:
            raise StoreIOError(self.store_id, f"backup to {root} failed: {e}") from e
        finally:
            if tmp.exists():
                shutil.rmtree(tmp, ignore_errors=True)

        logger.info("Backed up %d certificates from %s to %s", len(snapshot), self.store_id, root)
        self.state = StoreState.BACKED_UP
        return manifest

    def remove(self, whitelist: Whitelist) -> list[CertificateRecord]:
        """Delete every trusted certificate the whitelist does not match.

        Requires a backup taken earlier in this session. Returns the removed
        records (possibly empty).
        """
        if self.state is StoreState.UNMODIFIED or not self.has_backup():
            raise NoBackupError(self.store_id)

        snapshot = self.list()
        removable = find_removable(snapshot, whitelist)
        logger.info(
            "%s: %d of %d certificates are not whitelisted",
            self.store_id,
            len(removable),
            len(snapshot),
        )
        if removable:
            self._delete(removable)
        self.state = StoreState.MODIFIED
        return removable

    def restore(self) -> BackupManifest:
        """Revert the live store to the most recent backup."""
        manifest = self.backup_manifest()
        if manifest is None:
            raise NoBackupFoundError(self.store_id, str(self.backup_root))

        try:
            self._restore_from(self.backup_root, manifest)
        except PartialRestoreError:
            self.state = StoreState.BACKED_UP
            raise
        self.state = StoreState.BACKED_UP
        return manifest

    # --- Helpers ----------------------------------------------------------

    def _run(self, args: list[str]) -> str:
        return run_tool(self.store_id, args, timeout=self.settings.tool_timeout)


class FileTreeStore(TrustStore):
    """A store whose entire state lives in a file or directory we can copy.

    Backups mirror ``live_path``; restores swap the mirror back into place,
    reproducing the backed-up content exactly.
    """

    kind = "file-tree"

    @property
    @abstractmethod
    def live_path(self) -> Path:
        """The file or directory holding the store's data, with symlinks resolved."""
        ...

    def _write_backup(self, dest: Path, snapshot: list[CertificateRecord]) -> None:
        mirror(self.live_path, dest / DATA_NAME)

    def _restore_from(self, root: Path, manifest: BackupManifest) -> None:
        data = root / DATA_NAME
        if not (data.exists() or data.is_symlink()):
            raise StoreIOError(self.store_id, f"backup data {data} is missing")

        live = self.live_path
        staging = live.with_name(f".{live.name}.restore")
        try:
            remove_path(staging)
            mirror(data, staging)
            replace_path(staging, live)
        except OSError as e:
            raise StoreIOError(self.store_id, f"restore of {live} failed: {e}") from e
        finally:
            with contextlib.suppress(OSError):
                remove_path(staging)

        logger.info("Restored %s from %s", live, data)
        self._after_restore()

    def _after_restore(self) -> None:
        """Hook run once the live data has been swapped back in."""


class ApiStore(TrustStore):
    """A store reachable only through platform tools, one certificate at a time.

    Backups are a PEM bundle of the snapshot; restores re-import each
    backed-up certificate missing from the live store and report the ones the
    platform refuses.
    """

    kind = "api"

    @abstractmethod
    def _import(self, record: CertificateRecord) -> None:
        """Re-add a single certificate to the live store."""
        ...

    def _write_backup(self, dest: Path, snapshot: list[CertificateRecord]) -> None:
        (dest / BUNDLE_NAME).write_text(to_pem_bundle(snapshot))

    def _restore_from(self, root: Path, manifest: BackupManifest) -> None:
        bundle = root / BUNDLE_NAME
        try:
            backed_up = parse_pem(bundle.read_text(), location=str(bundle))
        except OSError as e:
            raise StoreIOError(self.store_id, f"cannot read backup bundle {bundle}: {e}") from e

        present = {r.fingerprint for r in self.list()}
        failures: list[tuple[str, str]] = []
        restored = 0

        # entries the manifest promises but the bundle no longer yields
        parsed = {r.fingerprint for r in backed_up}
        for fingerprint in manifest.fingerprints:
            if fingerprint not in parsed and fingerprint not in present:
                label = f"Unknown ({fingerprint[:16]})"
                logger.warning("Backup entry %s in %s could not be parsed", label, bundle)
                failures.append((label, f"unreadable in backup bundle {bundle}"))

        for record in backed_up:
            if record.fingerprint in present:
                continue
            try:
                self._import(record)
            except StoreIOError as e:
                logger.warning("Could not re-import %s: %s", record.label, e)
                failures.append((record.label, str(e)))
                continue
            restored += 1

        logger.info("Re-imported %d certificates into %s", restored, self.store_id)
        if failures:
            raise PartialRestoreError(self.store_id, failures, restored=restored)

    @contextlib.contextmanager
    def _temp_certificate(self, record: CertificateRecord, suffix: str = ".pem") -> Iterator[Path]:
        """Write a record to a temporary PEM file for tools that only import from disk."""
        fd, tmp = tempfile.mkstemp(suffix=suffix, prefix="cert-manage-")
        with open(fd, "w") as f:
            f.write(record.to_pem())
        try:
            yield Path(tmp)
        finally:
            os.unlink(tmp)
