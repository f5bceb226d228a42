"""Certificate records — canonical, immutable views of certificates pulled from a store."""

from __future__ import annotations

import base64
import binascii
import logging
import re

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

PEM_BLOCK_RE = re.compile(
    r"-----BEGIN (?:TRUSTED |X509 )?CERTIFICATE-----\s+.*?-----END (?:TRUSTED |X509 )?CERTIFICATE-----",
    re.DOTALL,
)


class CertificateRecord(BaseModel):
    """A single trusted certificate as seen in one snapshot of a trust store."""

    model_config = ConfigDict(frozen=True)

    raw: bytes
    fingerprint: str  # SHA-256, lowercase hex, no separators
    sha1_fingerprint: str = ""
    issuer_cn: str = ""
    subject_cn: str = ""
    serial: str = ""
    location: str = ""

    @property
    def label(self) -> str:
        name = self.subject_cn or self.issuer_cn or "Unknown"
        return f"{name} ({self.fingerprint[:16]})"

    def to_pem(self) -> str:
        body = base64.b64encode(self.raw).decode("ascii")
        lines = [body[i : i + 64] for i in range(0, len(body), 64)]
        return "-----BEGIN CERTIFICATE-----\n" + "\n".join(lines) + "\n-----END CERTIFICATE-----\n"


def _common_name(name: x509.Name) -> str:
    attrs = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attrs:
        return ""
    value = attrs[0].value
    return value if isinstance(value, str) else value.decode("utf-8", errors="replace")


def record_from_certificate(cert: x509.Certificate, location: str = "") -> CertificateRecord:
    """Build a record from an already-loaded ``cryptography`` certificate."""
    return CertificateRecord(
        raw=cert.public_bytes(Encoding.DER),
        fingerprint=cert.fingerprint(hashes.SHA256()).hex(),
        sha1_fingerprint=cert.fingerprint(hashes.SHA1()).hex(),
        issuer_cn=_common_name(cert.issuer),
        subject_cn=_common_name(cert.subject),
        serial=format(cert.serial_number, "x"),
        location=location,
    )


def parse_der(data: bytes, location: str = "") -> CertificateRecord:
    """Parse a single DER-encoded certificate. Raises ValueError if malformed."""
    return record_from_certificate(x509.load_der_x509_certificate(data), location)


def parse_pem(text: str | bytes, location: str = "") -> list[CertificateRecord]:
    """Parse every certificate block in PEM text.

    Blocks that fail to decode are logged and skipped, so a single damaged
    entry in a bundle does not hide the rest of the store.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")

    records: list[CertificateRecord] = []
    for match in PEM_BLOCK_RE.finditer(text):
        block = match.group(0)
        # OpenSSL "TRUSTED CERTIFICATE" and "X509 CERTIFICATE" headers wrap plain DER
        body = re.sub(r"-----(BEGIN|END) [A-Z0-9 ]+-----", "", block)
        try:
            der = base64.b64decode("".join(body.split()), validate=True)
            records.append(parse_der(der, location))
        except (ValueError, binascii.Error) as e:
            logger.warning("Skipping unparseable certificate in %s: %s", location or "input", e)
    return records


def parse_base64_lines(text: str, location: str = "") -> list[CertificateRecord]:
    """Parse output holding one base64-encoded DER certificate per line."""
    records: list[CertificateRecord] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            records.append(parse_der(base64.b64decode(line, validate=True), location))
        except (ValueError, binascii.Error) as e:
            logger.warning("Skipping unparseable certificate in %s: %s", location or "input", e)
    return records


def parse_bytes(data: bytes, location: str = "") -> list[CertificateRecord]:
    """Parse raw certificate bytes, accepting either PEM or a single DER certificate."""
    if b"-----BEGIN" in data:
        return parse_pem(data, location)
    try:
        return [parse_der(data, location)]
    except ValueError as e:
        logger.debug("Not a DER certificate: %s (%s)", location or "input", e)
        return []


def to_pem_bundle(records: list[CertificateRecord]) -> str:
    """Serialize records as a PEM bundle sorted by fingerprint."""
    return "".join(r.to_pem() for r in sorted(records, key=lambda r: r.fingerprint))
