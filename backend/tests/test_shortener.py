"""Tests for short code generation and alias validation."""

import pytest

from shortlinks.core import shortener
from shortlinks.core.errors import CapacityError, ConflictError, ValidationError
from shortlinks.core.shortener import (
    CHARSET,
    RESERVED_WORDS,
    allocate_code,
    generate_code,
    generate_unique_code,
    is_code_available,
    next_code_length,
    validate_alias_format,
    validate_alias_not_reserved,
)


def test_generate_code_uses_base62_alphabet():
    code = generate_code(6)
    assert len(code) == 6
    assert all(c in CHARSET for c in code)
    assert len(CHARSET) == 62


@pytest.mark.parametrize("alias", ["abc", "my-link_2024", "A" * 50])
def test_valid_alias_formats(alias):
    assert validate_alias_format(alias) == alias


def test_alias_is_trimmed():
    assert validate_alias_format("  promo  ") == "promo"


@pytest.mark.parametrize("alias,message", [
    ("", "empty"),
    ("ab", "at least 3"),
    ("a" * 51, "cannot exceed 50"),
    ("has space", "letters, numbers"),
    ("emoji✓", "letters, numbers"),
    ("dot.ted", "letters, numbers"),
])
def test_invalid_alias_formats(alias, message):
    with pytest.raises(ValidationError, match=message):
        validate_alias_format(alias)


@pytest.mark.parametrize("alias", ["admin", "Admin", "API", "health", "dashboard", "login"])
def test_reserved_aliases_rejected(alias):
    with pytest.raises(ValidationError, match="reserved"):
        validate_alias_not_reserved(alias)


def test_admin_rejected_even_on_empty_registry(db):
    with pytest.raises(ValidationError):
        allocate_code(db, "admin")
    assert "admin" in RESERVED_WORDS


def test_next_code_length_grows_every_ten_collisions():
    assert next_code_length(6, 0) == 6
    assert next_code_length(6, 9) == 6
    assert next_code_length(6, 10) == 7
    assert next_code_length(6, 25) == 8
    assert next_code_length(6, 10_000) == shortener.MAX_CODE_LENGTH


def test_alias_collides_with_existing_short_code(db, make_link):
    make_link(short_code="promo")
    with pytest.raises(ConflictError):
        allocate_code(db, "promo")


def test_alias_collides_with_existing_alias(db, make_link):
    make_link(short_code="summer", custom_alias="summer")
    assert not is_code_available("summer", db)
    with pytest.raises(ConflictError):
        allocate_code(db, "summer")


def test_codes_are_case_sensitive(db, make_link):
    make_link(short_code="AbCdEf")
    assert is_code_available("abcdef", db)


def test_generated_code_skips_taken_codes(db, make_link, monkeypatch):
    make_link(short_code="taken1")
    codes = iter(["taken1", "taken1", "fresh1"])
    monkeypatch.setattr(shortener, "generate_code", lambda length: next(codes))

    code, attempts = generate_unique_code(db, 6)

    assert code == "fresh1"
    assert attempts == 3


def test_collisions_escalate_code_length(db, monkeypatch):
    lengths = []

    def fake_generate(length):
        lengths.append(length)
        return "x" * length

    monkeypatch.setattr(shortener, "generate_code", fake_generate)
    monkeypatch.setattr(shortener, "is_code_available", lambda code, db: len(lengths) > 10)

    code, _ = generate_unique_code(db, 6)

    assert lengths[:10] == [6] * 10
    assert lengths[10] == 7
    assert code == "x" * 7


def test_capacity_error_after_attempt_budget(db, monkeypatch):
    monkeypatch.setattr(shortener, "is_code_available", lambda code, db: False)

    with pytest.raises(CapacityError):
        generate_unique_code(db, 6)


def test_allocate_never_returns_existing_code(db, make_link):
    for _ in range(20):
        code = allocate_code(db)
        assert is_code_available(code, db)
        make_link(short_code=code)
        assert not is_code_available(code, db)
