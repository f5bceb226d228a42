"""Linux system trust store — a flat directory tree of PEM certificates."""

from __future__ import annotations

import logging
from pathlib import Path

from cert_manage.core.base import FileTreeStore
from cert_manage.core.certificate import CertificateRecord, parse_bytes
from cert_manage.core.errors import StoreIOError, StoreUnavailableError
from cert_manage.core.process import tool_exists

logger = logging.getLogger(__name__)

CERT_SUFFIXES = {".crt", ".pem", ".cer"}

# (certificate source directory, command that rebuilds the derived bundle)
DISTRO_LAYOUTS: list[tuple[Path, list[str]]] = [
    # Debian, Ubuntu, Alpine
    (Path("/usr/share/ca-certificates"), ["update-ca-certificates", "--fresh"]),
    # Fedora, RHEL, CentOS
    (Path("/etc/pki/ca-trust/source/anchors"), ["update-ca-trust", "extract"]),
    # Arch
    (Path("/etc/ca-certificates/trust-source/anchors"), ["trust", "extract-compat"]),
]


def _detect_cert_dir() -> Path:
    for cert_dir, _cmd in DISTRO_LAYOUTS:
        if cert_dir.is_dir():
            return cert_dir
    return DISTRO_LAYOUTS[0][0]


class LinuxStore(FileTreeStore):
    name = "linux"
    display_name = "Linux CA Certificates"
    description = "System CA directory consumed by update-ca-certificates / update-ca-trust"

    @property
    def cert_dir(self) -> Path:
        return self.settings.linux.cert_dir or _detect_cert_dir()

    @property
    def live_path(self) -> Path:
        return self.cert_dir.resolve()

    @property
    def refresh_command(self) -> list[str] | None:
        for cert_dir, cmd in DISTRO_LAYOUTS:
            if cert_dir == self.cert_dir:
                return cmd
        return None

    def is_available(self) -> bool:
        return self.cert_dir.is_dir()

    def _certificate_files(self) -> list[Path]:
        return sorted(
            p for p in self.cert_dir.rglob("*") if p.suffix.lower() in CERT_SUFFIXES and p.is_file()
        )

    def list(self) -> list[CertificateRecord]:
        if not self.cert_dir.is_dir():
            raise StoreUnavailableError(self.store_id, f"{self.cert_dir} is not a directory")

        records: list[CertificateRecord] = []
        try:
            for path in self._certificate_files():
                records.extend(parse_bytes(path.read_bytes(), location=str(path)))
        except PermissionError as e:
            raise StoreUnavailableError(self.store_id, f"cannot read {e.filename}") from e
        except OSError as e:
            raise StoreIOError(self.store_id, f"cannot read {self.cert_dir}: {e}") from e
        return records

    def _delete(self, records: list[CertificateRecord]) -> None:
        doomed = {r.fingerprint for r in records}

        try:
            for location in sorted({r.location for r in records}):
                path = Path(location)
                # A file may bundle several certificates; keep the whitelisted ones.
                kept = [
                    r for r in parse_bytes(path.read_bytes(), location) if r.fingerprint not in doomed
                ]
                if kept:
                    if path.is_symlink():
                        # link targets may live outside the mirrored tree
                        path.unlink()
                    path.write_text("".join(r.to_pem() for r in kept))
                    logger.debug("Rewrote %s keeping %d certificate(s)", path, len(kept))
                else:
                    path.unlink()
                    logger.debug("Deleted %s", path)
        except OSError as e:
            raise StoreIOError(self.store_id, f"cannot modify {self.cert_dir}: {e}") from e

        self._refresh()

    def _after_restore(self) -> None:
        self._refresh()

    def _refresh(self) -> None:
        """Rebuild the distribution's derived bundle after the source directory changed."""
        cmd = self.refresh_command
        if cmd is None:
            logger.debug("No refresh command known for %s", self.cert_dir)
            return
        if not tool_exists(cmd[0]):
            logger.warning(
                "'%s' not found; the system bundle was not regenerated from %s",
                cmd[0],
                self.cert_dir,
            )
            return
        self._run(cmd)
