"""Tests for certificate parsing and records."""

import base64

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.serialization import Encoding

from cert_manage.core.certificate import (
    CertificateRecord,
    parse_base64_lines,
    parse_bytes,
    parse_der,
    parse_pem,
    to_pem_bundle,
)


def _der(pem: str) -> bytes:
    return x509.load_pem_x509_certificate(pem.encode()).public_bytes(Encoding.DER)


def test_parse_pem_fields(ca_pems):
    (record,) = parse_pem(ca_pems[0], location="/etc/ssl/a.crt")
    cert = x509.load_pem_x509_certificate(ca_pems[0].encode())

    assert record.fingerprint == cert.fingerprint(hashes.SHA256()).hex()
    assert len(record.fingerprint) == 64
    assert record.fingerprint == record.fingerprint.lower()
    assert record.sha1_fingerprint == cert.fingerprint(hashes.SHA1()).hex()
    assert record.issuer_cn == "Starfield Secure Certification Authority"
    assert record.subject_cn == "Starfield Secure Certification Authority"
    assert record.serial == format(cert.serial_number, "x")
    assert record.location == "/etc/ssl/a.crt"
    assert record.raw == _der(ca_pems[0])


def test_parse_pem_bundle_keeps_order(ca_pems):
    records = parse_pem("# comment\n" + "\n".join(ca_pems))
    assert [r.issuer_cn for r in records] == [
        "Starfield Secure Certification Authority",
        "GlobalSign Root CA",
        "DigiCert Global Root CA",
        "WoSign CA Limited",
        "CNNIC ROOT",
        "TurkTrust Elektronik Sertifika",
    ]


def test_parse_pem_skips_damaged_block(ca_pems, caplog):
    damaged = "-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n"
    records = parse_pem(ca_pems[0] + damaged + ca_pems[1], location="bundle.pem")

    assert len(records) == 2
    assert "bundle.pem" in caplog.text


def test_parse_pem_accepts_trusted_certificate_header(ca_pems):
    text = ca_pems[2].replace("BEGIN CERTIFICATE", "BEGIN TRUSTED CERTIFICATE").replace(
        "END CERTIFICATE", "END TRUSTED CERTIFICATE"
    )
    (record,) = parse_pem(text.encode())
    assert record.issuer_cn == "DigiCert Global Root CA"


def test_parse_bytes_detects_encoding(ca_pems):
    assert len(parse_bytes(ca_pems[1].encode())) == 1
    assert parse_bytes(_der(ca_pems[1]))[0].issuer_cn == "GlobalSign Root CA"
    assert parse_bytes(b"not a certificate") == []


def test_parse_base64_lines(ca_pems):
    lines = "\r\n".join(base64.b64encode(_der(p)).decode() for p in ca_pems[:3]) + "\r\n\r\n"
    records = parse_base64_lines(lines, location="LocalMachine\\Root")

    assert len(records) == 3
    assert {r.location for r in records} == {"LocalMachine\\Root"}


def test_parse_base64_lines_skips_garbage(ca_pems):
    lines = "!!!notbase64\n" + base64.b64encode(_der(ca_pems[0])).decode()
    assert len(parse_base64_lines(lines)) == 1


def test_to_pem_reparses_to_same_record(ca_pems):
    record = parse_der(_der(ca_pems[3]))
    (again,) = parse_pem(record.to_pem())
    assert again == record


def test_to_pem_bundle_is_sorted_by_fingerprint(ca_pems):
    records = parse_pem("".join(ca_pems))
    bundle = to_pem_bundle(list(reversed(records)))

    assert bundle == to_pem_bundle(records)
    assert [r.fingerprint for r in parse_pem(bundle)] == sorted(r.fingerprint for r in records)


def test_label():
    record = CertificateRecord(raw=b"", fingerprint="ab" * 32, issuer_cn="Issuer", subject_cn="")
    assert record.label == "Issuer (abababababababab)"
    assert CertificateRecord(raw=b"", fingerprint="00" * 32).label.startswith("Unknown")
