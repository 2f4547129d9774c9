import pytest

from src.intake.domain.validators import (
    MAX_NAME_LENGTH,
    validate_confirmation,
    validate_description,
    validate_full_name,
    validate_municipality,
    validate_tax_id,
)
from src.intake.domain.value_objects import Utterance


def u(text):
    return Utterance.parse(text)


def test_full_name_needs_three_characters_after_trimming():
    assert validate_full_name(u("  Al  ")) is None
    assert validate_full_name(u(" Ana ")) == "Ana"
    assert validate_full_name(u("Maria Silva")) == "Maria Silva"


def test_full_name_fits_the_contact_column():
    assert validate_full_name(u("a" * MAX_NAME_LENGTH)) == "a" * MAX_NAME_LENGTH
    assert validate_full_name(u("a" * (MAX_NAME_LENGTH + 1))) is None


def test_description_needs_ten_characters():
    assert validate_description(u("curto")) is None
    assert validate_description(u("   123456789   ")) is None
    assert validate_description(u("Buraco na rua principal")) == "Buraco na rua principal"


@pytest.mark.parametrize("text", ["12345678909", "123.456.789-09", " 123 456 789 09 "])
def test_tax_id_accepts_eleven_digits_in_any_formatting(text):
    decision = validate_tax_id(u(text))
    assert decision is not None
    assert decision.tax_id == "12345678909"
    assert not decision.skipped


@pytest.mark.parametrize("text", ["pular", "PULAR", "não", "nao", "0"])
def test_tax_id_skip_words(text):
    decision = validate_tax_id(u(text))
    assert decision is not None and decision.skipped


@pytest.mark.parametrize("text", ["12345", "123456789012", "abc", "", "١٢٣٤٥٦٧٨٩٠١"])
def test_tax_id_rejects_wrong_digit_counts(text):
    assert validate_tax_id(u(text)) is None


@pytest.mark.parametrize("text,expected", [
    ("sim", True), ("S", True), ("Confirmar", True), ("1", True),
    ("não", False), ("NAO", False), ("n", False), ("cancelar", False), ("2", False),
    ("talvez", None), ("0", None), ("", None),
])
def test_confirmation(text, expected):
    assert validate_confirmation(u(text)) is expected


def test_municipality_is_trimmed_free_text():
    assert validate_municipality(u("  Porto Velho ")) == "Porto Velho"
    assert validate_municipality(u("   ")) is None
