"""Java keystore (cacerts) managed through keytool."""

from __future__ import annotations

import contextlib
import logging
import os
import re
from pathlib import Path

from cert_manage.core.base import FileTreeStore
from cert_manage.core.certificate import CertificateRecord, parse_pem
from cert_manage.core.errors import StoreIOError, StoreUnavailableError
from cert_manage.core.files import mirror, remove_path, replace_path
from cert_manage.core.process import tool_exists

logger = logging.getLogger(__name__)

ALIAS_SPLIT_RE = re.compile(r"^Alias name:\s*", re.MULTILINE)

SYSTEM_KEYSTORES = [
    Path("/etc/ssl/certs/java/cacerts"),
    Path("/etc/pki/java/cacerts"),
]


def _detect_keystore() -> Path:
    candidates: list[Path] = []
    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        candidates.append(Path(java_home) / "lib" / "security" / "cacerts")
        candidates.append(Path(java_home) / "jre" / "lib" / "security" / "cacerts")
    candidates.extend(SYSTEM_KEYSTORES)
    for path in candidates:
        if path.is_file():
            return path
    return candidates[0]


def parse_keytool_list(output: str) -> list[CertificateRecord]:
    """Parse ``keytool -list -rfc`` output; each record's location is its alias."""
    records: list[CertificateRecord] = []
    for chunk in ALIAS_SPLIT_RE.split(output)[1:]:
        alias = chunk.splitlines()[0].strip()
        records.extend(parse_pem(chunk, location=alias))
    return records


class JavaStore(FileTreeStore):
    name = "java"
    display_name = "Java Keystore"
    description = "JVM cacerts keystore used by Java applications"

    @property
    def keystore(self) -> Path:
        return self.settings.java.keystore or _detect_keystore()

    @property
    def live_path(self) -> Path:
        return self.keystore.resolve()

    def _keystore_args(self, keystore: Path) -> list[str]:
        return ["-keystore", str(keystore), "-storepass", self.settings.java.storepass]

    def is_available(self) -> bool:
        return tool_exists("keytool") and self.keystore.is_file()

    def list(self) -> list[CertificateRecord]:
        if not self.keystore.is_file():
            raise StoreUnavailableError(self.store_id, f"no keystore at {self.keystore}")
        output = self._run(["keytool", "-list", "-rfc", *self._keystore_args(self.keystore)])
        return parse_keytool_list(output)

    def _delete(self, records: list[CertificateRecord]) -> None:
        """Delete aliases from a copy of the keystore, then swap the copy in."""
        live = self.live_path
        work = live.with_name(f".{live.name}.cert-manage")
        try:
            remove_path(work)
            mirror(live, work)
        except OSError as e:
            raise StoreIOError(self.store_id, f"cannot stage {live}: {e}") from e

        try:
            for alias in sorted({r.location for r in records}):
                self._run(
                    ["keytool", "-delete", "-alias", alias, *self._keystore_args(work), "-noprompt"]
                )
            replace_path(work, live)
        except OSError as e:
            raise StoreIOError(self.store_id, f"cannot replace {live}: {e}") from e
        finally:
            with contextlib.suppress(OSError):
                remove_path(work)
        logger.debug("Replaced %s after deleting %d alias(es)", live, len(records))
