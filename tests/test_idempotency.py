from __future__ import annotations

from habitta.idempotency import fingerprint_photo, fold_text, photo_identity

BUCKET = "https://Storage.Example.com/homes/home-1/Plate.JPG"


def test_fingerprint_is_hex_sha256():
    fp = fingerprint_photo(BUCKET, "hvac")
    assert fp.kind == "photo"
    assert len(fp.value) == 64
    int(fp.value, 16)


def test_signed_url_tokens_ignored():
    base = fingerprint_photo(BUCKET, "hvac")
    assert fingerprint_photo(BUCKET + "?X-Amz-Signature=abc&X-Amz-Expires=60", "hvac") == base
    assert fingerprint_photo(BUCKET + "#preview", "hvac") == base


def test_host_folded_but_path_case_kept():
    base = fingerprint_photo(BUCKET, "hvac")
    assert fingerprint_photo("HTTPS://storage.example.com/homes/home-1/Plate.JPG", "hvac") == base
    assert fingerprint_photo("https://storage.example.com/homes/home-1/plate.jpg", "hvac") != base


def test_system_kind_is_part_of_fingerprint():
    # One photo can legitimately update two systems
    assert fingerprint_photo(BUCKET, "hvac") != fingerprint_photo(BUCKET, "water_heater")
    assert fingerprint_photo(BUCKET, "HVAC") == fingerprint_photo(BUCKET, " hvac ")


def test_plain_evidence_ids_normalized():
    assert fingerprint_photo("  Évidence   42 ", "roof") == fingerprint_photo("evidence 42", "roof")


def test_photo_identity_strips_signature():
    assert (
        photo_identity("HTTPS://Storage.Example.com/a/B.jpg?token=1#x")
        == "https://storage.example.com/a/B.jpg"
    )
    assert photo_identity(None) == ""


def test_fold_text():
    assert fold_text("  Crème\tBrûlée  ") == "creme brulee"
    assert str(fingerprint_photo("x", "roof")).startswith("photo:")
