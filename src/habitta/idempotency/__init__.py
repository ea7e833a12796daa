"""Deterministic fingerprints that keep evidence processing idempotent."""
from __future__ import annotations

from .fingerprint import Fingerprint, fingerprint_photo, fold_text, photo_identity

__all__ = ["Fingerprint", "fingerprint_photo", "fold_text", "photo_identity"]
