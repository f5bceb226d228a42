"""Whitelist model and loader — which trusted certificates an operator wants to keep."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cert_manage.core.certificate import CertificateRecord
from cert_manage.core.errors import InvalidPathError, NotFoundError, ParseError

# Note: overlapping items are not deduplicated. A certificate matched by both a
# fingerprint and an issuer item is still a single retained certificate, but
# nothing merges the items themselves.


class FingerprintMatch(BaseModel):
    """Matches certificates whose SHA-256 fingerprint starts with ``signature``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fingerprint"] = "fingerprint"
    signature: str

    def matches(self, record: CertificateRecord) -> bool:
        if not self.signature:
            return False
        return record.fingerprint.lower().startswith(self.signature.lower())


class IssuerCommonNameMatch(BaseModel):
    """Matches certificates whose issuer common name contains ``name`` (case-sensitive)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["issuer_cn"] = "issuer_cn"
    name: str

    def matches(self, record: CertificateRecord) -> bool:
        if not self.name:
            return False
        return self.name in record.issuer_cn


WhitelistItem = Annotated[FingerprintMatch | IssuerCommonNameMatch, Field(discriminator="kind")]


@dataclass(frozen=True)
class Whitelist:
    """Ordered, immutable set of whitelist items."""

    items: tuple[WhitelistItem, ...] = ()

    @classmethod
    def from_items(cls, items: Iterable[WhitelistItem]) -> Whitelist:
        return cls(items=tuple(items))

    def matches(self, record: CertificateRecord) -> bool:
        """True when any item retains the record."""
        return any(item.matches(record) for item in self.items)

    def __iter__(self) -> Iterator[WhitelistItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


# --- On-disk format ---------------------------------------------------------


class _Signatures(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hex: list[Annotated[str, Field(pattern=r"^[0-9A-Fa-f]*$")]] = Field(
        default_factory=list, alias="Hex"
    )


class _Issuer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    common_name: str = Field(alias="CommonName")


class _WhitelistFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    signatures: _Signatures = Field(default_factory=_Signatures, alias="Signatures")
    issuers: list[_Issuer] = Field(default_factory=list, alias="Issuers")


def valid_whitelist_path(path: str) -> bool:
    """A whitelist path must be non-empty and must not look like a CLI flag."""
    stripped = path.strip()
    return bool(stripped) and not stripped.startswith("-")


def load_whitelist(path: str | Path) -> Whitelist:
    """Read a whitelist file and parse it into items.

    Fingerprint items come first (in file order), then issuer items.
    """
    path_str = str(path)
    if not valid_whitelist_path(path_str):
        raise InvalidPathError(path_str)

    file_path = Path(path_str.strip()).expanduser()
    if not file_path.is_file():
        raise NotFoundError(path_str)

    try:
        content = file_path.read_bytes()
    except OSError as e:
        raise NotFoundError(path_str) from e

    try:
        parsed = _WhitelistFile.model_validate_json(content)
    except ValidationError as e:
        raise ParseError(path_str, _summarize(e)) from e

    items: list[WhitelistItem] = [
        FingerprintMatch(signature=s) for s in parsed.signatures.hex
    ]
    items.extend(IssuerCommonNameMatch(name=i.common_name) for i in parsed.issuers)
    return Whitelist.from_items(items)


def _summarize(error: ValidationError) -> str:
    problems = []
    for err in error.errors()[:5]:
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        problems.append(f"{loc}: {err['msg']}")
    return "; ".join(problems)
