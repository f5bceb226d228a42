"""Command sequencing — maps CLI operations onto the trust store contract.

Errors from any step abort the rest of the sequence and propagate unchanged.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from cert_manage.core.base import BackupManifest, StoreState, TrustStore
from cert_manage.core.certificate import CertificateRecord
from cert_manage.core.whitelist import load_whitelist


class OperationResult(BaseModel):
    """Result of running one command against a store."""

    store_id: str
    operation: str
    certificates: int = 0  # trusted certificates once the command finished
    removed: list[str] = Field(default_factory=list)
    backup: BackupManifest | None = None


def list_certificates(store: TrustStore) -> list[CertificateRecord]:
    return store.list()


def count_certificates(store: TrustStore) -> int:
    return len(store.list())


def backup_store(store: TrustStore) -> OperationResult:
    manifest = store.backup()
    return OperationResult(
        store_id=store.store_id,
        operation="backup",
        certificates=manifest.certificate_count,
        backup=manifest,
    )


def apply_whitelist(store: TrustStore, path: str | Path) -> OperationResult:
    """Load a whitelist, back the store up (once per session), then remove everything else.

    The whitelist is loaded before the store is touched so a bad path or file
    fails without side effects.
    """
    whitelist = load_whitelist(path)

    if store.state is StoreState.UNMODIFIED:
        manifest = store.backup()
    else:
        manifest = store.backup_manifest()

    removed = store.remove(whitelist)
    return OperationResult(
        store_id=store.store_id,
        operation="whitelist",
        certificates=count_certificates(store),
        removed=sorted(r.label for r in removed),
        backup=manifest,
    )


def restore_store(store: TrustStore) -> OperationResult:
    manifest = store.restore()
    return OperationResult(
        store_id=store.store_id,
        operation="restore",
        certificates=count_certificates(store),
        backup=manifest,
    )
