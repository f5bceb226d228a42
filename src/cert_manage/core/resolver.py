"""Remediation resolver — decide which trusted certificates the whitelist disallows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from cert_manage.core.certificate import CertificateRecord
from cert_manage.core.whitelist import Whitelist, WhitelistItem


def find_removable(
    snapshot: Sequence[CertificateRecord | None],
    whitelist: Whitelist | Iterable[WhitelistItem],
) -> list[CertificateRecord]:
    """Return the certificates in ``snapshot`` that no whitelist item matches.

    ``None`` entries are skipped. An empty whitelist makes every certificate
    removable; an empty snapshot yields an empty list, which callers treat as
    "nothing to remove".
    """
    items = list(whitelist)
    removable: list[CertificateRecord] = []
    for record in snapshot:
        if record is None:
            continue
        if not any(item.matches(record) for item in items):
            removable.append(record)
    return removable


def find_retained(
    snapshot: Sequence[CertificateRecord | None],
    whitelist: Whitelist | Iterable[WhitelistItem],
) -> list[CertificateRecord]:
    """Return the certificates in ``snapshot`` kept by at least one whitelist item."""
    items = list(whitelist)
    return [r for r in snapshot if r is not None and any(item.matches(r) for item in items)]
