"""macOS keychain trust store managed through the `security` tool."""

from __future__ import annotations

from pathlib import Path

from cert_manage.core.base import ApiStore
from cert_manage.core.certificate import CertificateRecord, parse_pem
from cert_manage.core.errors import StoreUnavailableError
from cert_manage.core.process import tool_exists


class DarwinStore(ApiStore):
    name = "darwin"
    display_name = "macOS System Keychain"
    description = "Binary keychain database managed with the security command"

    @property
    def keychain(self) -> Path:
        return self.settings.darwin.keychain

    def is_available(self) -> bool:
        return tool_exists("security") and self.keychain.exists()

    def list(self) -> list[CertificateRecord]:
        if not self.keychain.exists():
            raise StoreUnavailableError(self.store_id, f"no keychain at {self.keychain}")
        output = self._run(["security", "find-certificate", "-a", "-p", str(self.keychain)])
        return parse_pem(output, location=str(self.keychain))

    def _delete(self, records: list[CertificateRecord]) -> None:
        for sha1 in sorted({r.sha1_fingerprint for r in records}):
            self._run(
                [
                    "security",
                    "delete-certificate",
                    "-Z",
                    sha1.upper(),
                    str(self.keychain),
                ]
            )

    def _import(self, record: CertificateRecord) -> None:
        with self._temp_certificate(record) as path:
            self._run(
                [
                    "security",
                    "add-trusted-cert",
                    "-d",
                    "-r",
                    "trustRoot",
                    "-k",
                    str(self.keychain),
                    str(path),
                ]
            )
