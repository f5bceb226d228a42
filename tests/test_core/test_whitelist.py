"""Tests for whitelist items and the whitelist file loader."""

import json

import pytest

from cert_manage.core.certificate import CertificateRecord, parse_pem
from cert_manage.core.errors import InvalidPathError, NotFoundError, ParseError
from cert_manage.core.whitelist import (
    FingerprintMatch,
    IssuerCommonNameMatch,
    Whitelist,
    load_whitelist,
    valid_whitelist_path,
)

STARFIELD_FP = "96940d991419151450d1e75f66218f6f2594e1df4af31a5ad673c9a8746817ce"


@pytest.fixture
def starfield():
    return CertificateRecord(
        raw=b"",
        fingerprint=STARFIELD_FP,
        issuer_cn="Starfield Secure Certification Authority",
        subject_cn="Starfield Secure Certification Authority",
    )


def _write(tmp_path, data) -> str:
    path = tmp_path / "whitelist.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return str(path)


# --- Matching ---------------------------------------------------------------


def test_fingerprint_exact_match(starfield):
    assert FingerprintMatch(signature=STARFIELD_FP).matches(starfield)


def test_fingerprint_prefix_and_case_insensitive(starfield):
    assert FingerprintMatch(signature="96940D99").matches(starfield)
    assert not FingerprintMatch(signature="96940d98").matches(starfield)


def test_empty_items_never_match(starfield):
    assert not FingerprintMatch(signature="").matches(starfield)
    assert not IssuerCommonNameMatch(name="").matches(starfield)


def test_issuer_substring_match(starfield):
    assert IssuerCommonNameMatch(name="Starfield Secure Certification Authority").matches(starfield)
    assert IssuerCommonNameMatch(name="Starfield").matches(starfield)


def test_issuer_match_is_case_sensitive(starfield):
    assert not IssuerCommonNameMatch(name="starfield").matches(starfield)


def test_issuer_match_on_unrelated_name(starfield):
    assert not IssuerCommonNameMatch(name="GlobalSign").matches(starfield)


def test_whitelist_matches_any_item(starfield):
    wl = Whitelist.from_items(
        [IssuerCommonNameMatch(name="GlobalSign"), FingerprintMatch(signature="9694")]
    )
    assert wl.matches(starfield)
    assert len(wl) == 2
    assert not Whitelist().matches(starfield)


# --- Loading ----------------------------------------------------------------


def test_load_whitelist_orders_fingerprints_before_issuers(tmp_path):
    path = _write(
        tmp_path,
        {
            "Issuers": [{"CommonName": "GlobalSign Root CA"}],
            "Signatures": {"Hex": ["abcd", "EF01"]},
        },
    )

    items = list(load_whitelist(path))

    assert items == [
        FingerprintMatch(signature="abcd"),
        FingerprintMatch(signature="EF01"),
        IssuerCommonNameMatch(name="GlobalSign Root CA"),
    ]


def test_load_whitelist_keeps_duplicates(tmp_path):
    path = _write(tmp_path, {"Signatures": {"Hex": ["abcd", "abcd"]}})
    assert len(load_whitelist(path)) == 2


def test_load_empty_object_gives_empty_whitelist(tmp_path):
    assert len(load_whitelist(_write(tmp_path, "{}"))) == 0


def test_loaded_whitelist_keeps_matching_certificates(tmp_path, ca_pems):
    records = parse_pem("".join(ca_pems))
    path = _write(tmp_path, {"Signatures": {"Hex": [records[1].fingerprint[:20]]}})

    wl = load_whitelist(path)

    assert [r.issuer_cn for r in records if wl.matches(r)] == ["GlobalSign Root CA"]


@pytest.mark.parametrize("path", ["", "   ", "-whitelist", "--file"])
def test_invalid_paths(path):
    assert not valid_whitelist_path(path)
    with pytest.raises(InvalidPathError) as excinfo:
        load_whitelist(path)
    assert excinfo.value.exit_code == 3


def test_flag_like_path_message():
    with pytest.raises(InvalidPathError, match="command-line flag"):
        load_whitelist("-whitelist")


def test_missing_file(tmp_path):
    with pytest.raises(NotFoundError) as excinfo:
        load_whitelist(str(tmp_path / "nope.json"))
    assert excinfo.value.exit_code == 4


def test_directory_is_not_found(tmp_path):
    with pytest.raises(NotFoundError):
        load_whitelist(str(tmp_path))


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '{"Signatures": {"Hex": ["xyz"]}}',
        '{"Signatures": {"Hex": "abcd"}}',
        '{"Issuers": [{"Name": "x"}]}',
        '{"Fingerprints": []}',
        "[]",
    ],
)
def test_parse_errors(tmp_path, content):
    with pytest.raises(ParseError) as excinfo:
        load_whitelist(_write(tmp_path, content))
    assert excinfo.value.exit_code == 5
    assert str(tmp_path) in str(excinfo.value)
