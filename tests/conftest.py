"""Shared test fixtures."""

from __future__ import annotations

import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID

ISSUERS = [
    "Starfield Secure Certification Authority",
    "GlobalSign Root CA",
    "DigiCert Global Root CA",
    "WoSign CA Limited",
    "CNNIC ROOT",
    "TurkTrust Elektronik Sertifika",
]


@pytest.fixture(scope="session")
def signing_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def make_cert(signing_key):
    """Build a PEM certificate with the given subject and issuer common names."""

    def _make(common_name: str, issuer_cn: str | None = None, serial: int | None = None) -> str:
        subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn or common_name)])
        now = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(signing_key.public_key())
            .serial_number(serial or x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + datetime.timedelta(days=3650))
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            .sign(signing_key, hashes.SHA256())
        )
        return cert.public_bytes(Encoding.PEM).decode("ascii")

    return _make


@pytest.fixture(scope="session")
def ca_pems(make_cert):
    """Six self-signed CA certificates with distinct issuer names."""
    return [make_cert(name) for name in ISSUERS]


@pytest.fixture(scope="session")
def many_ca_pems(make_cert):
    """A realistically sized system store."""
    return [make_cert(f"Test Root CA {i:03d}", serial=1000 + i) for i in range(166)]
