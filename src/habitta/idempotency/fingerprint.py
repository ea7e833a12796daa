"""Stable hashes for photo evidence, so a re-uploaded photo is processed once.

A photo is identified by where it lives, not by how it was fetched:

- Storage URLs keep scheme, host and path. Query strings and fragments are
  dropped because signed URLs carry a fresh token on every request. Object
  paths are case-sensitive and kept verbatim; scheme and host are lowercased.
- Anything else (upload ids, file names) is folded to lowercase ASCII with
  single spaces.

The system kind is hashed alongside the photo. A single data-plate photo can
update the water heater and the HVAC record independently.
"""
from __future__ import annotations

import hashlib
import re
import unicodedata
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

_SPACES = re.compile(r"\s+")
_SEPARATOR = "\x1f"


@dataclass(frozen=True)
class Fingerprint:
    kind: str
    value: str  # sha256 hexdigest

    def __str__(self) -> str:
        return f"{self.kind}:{self.value}"


def fold_text(text: str | None) -> str:
    """Lowercase ASCII with collapsed whitespace ("  Évidence  42" -> "evidence 42")."""
    ascii_text = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode()
    return _SPACES.sub(" ", ascii_text.casefold()).strip()


def photo_identity(evidence_id: str | None) -> str:
    """The part of a photo reference that survives URL re-signing."""
    raw = (evidence_id or "").strip()
    url = urlsplit(raw)
    if not (url.scheme and url.netloc):
        return fold_text(raw)
    return urlunsplit((url.scheme.lower(), url.netloc.lower(), url.path, "", ""))


def fingerprint_photo(evidence_id: str, system_kind: str) -> Fingerprint:
    """Fingerprint one photo processed against one system kind."""
    payload = _SEPARATOR.join(("photo", photo_identity(evidence_id), fold_text(system_kind)))
    return Fingerprint("photo", hashlib.sha256(payload.encode("utf-8")).hexdigest())
