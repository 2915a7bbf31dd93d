import json

import pytest

from domainanalyzer.domain import (
    DomainIdMasker,
    fallback_mask,
    fallback_unmask,
    hash_domain_id,
    require_valid_domain,
    validate_domain,
)
from domainanalyzer.domain.masking import _int32, to_base36
from domainanalyzer.exceptions import DomainValidationError


@pytest.mark.parametrize("domain", [
    "example.com",
    "www.example.com",
    "https://example.co.uk",
    "http://www.sub-domain.example.io",
])
def test_valid_domains(domain):
    assert validate_domain(domain) == (True, None)


@pytest.mark.parametrize("domain", [
    "example",
    "example.c",
    "https://example.com/path",
    "exa mple.com",
    "ftp://example.com",
])
def test_invalid_domains(domain):
    assert validate_domain(domain) == (False, "Please enter a valid domain (e.g., example.com)")


@pytest.mark.parametrize("domain", ["", "   ", None])
def test_domain_required(domain):
    assert validate_domain(domain) == (False, "Domain is required")


def test_require_valid_domain():
    assert require_valid_domain("  example.com ") == "example.com"
    with pytest.raises(DomainValidationError):
        require_valid_domain("not a domain")


def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    assert to_base36(-71) == "-1z"


def test_int32_wraps_like_javascript():
    assert _int32(2 ** 31) == -(2 ** 31)
    assert _int32(2 ** 32 + 5) == 5
    assert _int32(-1) == -1


def test_hash_is_deterministic_base36():
    masked = hash_domain_id(42)
    assert masked == hash_domain_id(42)
    assert masked != hash_domain_id(43)
    assert masked.isalnum() and masked == masked.lower()
    assert int(masked, 36) < 2 ** 31 + 1


def test_fallback_roundtrip():
    assert fallback_mask(35) == "d-z"
    assert fallback_unmask("d-z") == 35
    assert fallback_unmask("d-!!") is None


def test_masker_roundtrip():
    masker = DomainIdMasker()
    masked = masker.mask(17)
    assert masker.unmask(masked) == 17
    assert masker.unmask("unknown") is None
    assert len(masker) == 1


def test_masker_persists_mapping(tmp_path):
    path = tmp_path / "ids" / "domain_ids.json"
    masked = DomainIdMasker(path).mask(99)

    assert json.loads(path.read_text()) == {masked: 99}
    assert DomainIdMasker(path).unmask(masked) == 99


def test_masker_ignores_corrupt_storage(tmp_path):
    path = tmp_path / "domain_ids.json"
    path.write_text("not json")

    masker = DomainIdMasker(path)
    assert len(masker) == 0
    assert masker.unmask(masker.mask(5)) == 5


def test_masker_clear_removes_storage(tmp_path):
    path = tmp_path / "domain_ids.json"
    masker = DomainIdMasker(path)
    masker.mask(1)

    masker.clear()
    assert len(masker) == 0
    assert not path.exists()


def test_resolve_accepts_every_form():
    masker = DomainIdMasker()
    masked = masker.mask(250)

    assert masker.resolve("250") == 250
    assert masker.resolve(masked) == 250
    assert masker.resolve("d-1a") == 46
    assert masker.resolve("nonsense") is None
