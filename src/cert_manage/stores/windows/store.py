"""Windows certificate store (LocalMachine) managed through PowerShell and certutil."""

from __future__ import annotations

import platform

from cert_manage.core.base import ApiStore
from cert_manage.core.certificate import CertificateRecord, parse_base64_lines
from cert_manage.core.process import tool_exists

LIST_SCRIPT = (
    "Get-ChildItem -Path Cert:\\LocalMachine\\{store} | "
    "ForEach-Object {{ [System.Convert]::ToBase64String($_.RawData) }}"
)


class WindowsStore(ApiStore):
    name = "windows"
    display_name = "Windows Certificate Store"
    description = "LocalMachine certificate store managed with PowerShell and certutil"

    @property
    def store_name(self) -> str:
        return self.settings.windows.store_name

    def is_available(self) -> bool:
        return platform.system() == "Windows" and tool_exists("certutil")

    def list(self) -> list[CertificateRecord]:
        script = LIST_SCRIPT.format(store=self.store_name)
        output = self._run(["powershell", "-NoProfile", "-NonInteractive", "-Command", script])
        return parse_base64_lines(output, location=f"LocalMachine\\{self.store_name}")

    def _delete(self, records: list[CertificateRecord]) -> None:
        for sha1 in sorted({r.sha1_fingerprint for r in records}):
            self._run(["certutil", "-delstore", self.store_name, sha1])

    def _import(self, record: CertificateRecord) -> None:
        with self._temp_certificate(record, suffix=".cer") as path:
            self._run(["certutil", "-addstore", self.store_name, str(path)])
