"""NSS shared security database (Firefox profiles, ~/.pki/nssdb) managed through certutil."""

from __future__ import annotations

import re
from pathlib import Path

from cert_manage.core.base import FileTreeStore
from cert_manage.core.certificate import CertificateRecord, parse_pem
from cert_manage.core.errors import StoreUnavailableError
from cert_manage.core.process import tool_exists

# "DigiCert Global Root CA                                      CT,C,C"
NICKNAME_RE = re.compile(r"^(?P<nickname>\S.*?)\s+(?P<trust>[A-Za-z]*,[A-Za-z]*,[A-Za-z]*)$")

FIREFOX_PROFILE_ROOTS = [
    Path.home() / ".mozilla" / "firefox",
    Path.home() / "snap" / "firefox" / "common" / ".mozilla" / "firefox",
    Path.home() / "Library" / "Application Support" / "Firefox" / "Profiles",
]


def _candidate_db_dirs() -> list[Path]:
    dirs = [Path.home() / ".pki" / "nssdb"]
    for root in FIREFOX_PROFILE_ROOTS:
        if root.is_dir():
            dirs.extend(sorted(p.parent for p in root.glob("*/cert9.db")))
    return dirs


def _detect_db_dir() -> Path:
    candidates = _candidate_db_dirs()
    for db_dir in candidates:
        if (db_dir / "cert9.db").is_file():
            return db_dir
    return candidates[0]


def parse_nicknames(output: str) -> list[str]:
    """Extract certificate nicknames from ``certutil -L`` output."""
    nicknames: list[str] = []
    for line in output.splitlines():
        match = NICKNAME_RE.match(line.rstrip())
        if match:
            nicknames.append(match.group("nickname"))
    return nicknames


class NssStore(FileTreeStore):
    name = "nss"
    display_name = "NSS Certificate Database"
    description = "Shared NSS security database used by Firefox and Chromium on Linux"

    @property
    def db_dir(self) -> Path:
        return self.settings.nss.db_dir or _detect_db_dir()

    @property
    def live_path(self) -> Path:
        return self.db_dir.resolve()

    @property
    def _db(self) -> str:
        return f"sql:{self.db_dir}"

    def is_available(self) -> bool:
        return tool_exists("certutil") and (self.db_dir / "cert9.db").is_file()

    def list(self) -> list[CertificateRecord]:
        if not self.db_dir.is_dir():
            raise StoreUnavailableError(self.store_id, f"no NSS database at {self.db_dir}")

        records: list[CertificateRecord] = []
        for nickname in parse_nicknames(self._run(["certutil", "-L", "-d", self._db])):
            pem = self._run(["certutil", "-L", "-d", self._db, "-n", nickname, "-a"])
            records.extend(parse_pem(pem, location=nickname))
        return records

    def _delete(self, records: list[CertificateRecord]) -> None:
        for nickname in sorted({r.location for r in records}):
            self._run(["certutil", "-D", "-d", self._db, "-n", nickname])
