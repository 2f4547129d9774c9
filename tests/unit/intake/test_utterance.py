import pytest

from src.intake.domain.value_objects import Command, Utterance, normalize_identity


@pytest.mark.parametrize("text", ["menu", " MENU ", "Reset", "inicio", "Início", "reiniciar", "start"])
def test_reset_words_are_case_and_whitespace_insensitive(text):
    assert Utterance.parse(text).has(Command.RESET)


@pytest.mark.parametrize("text", ["menu principal", "resetar", "iniciar"])
def test_reset_requires_the_whole_message(text):
    assert not Utterance.parse(text).has(Command.RESET)


def test_number_only_for_plain_ascii_digits():
    assert Utterance.parse(" 2 ").number == 2
    assert Utterance.parse("02").number == 2
    assert Utterance.parse("2a").number is None
    assert Utterance.parse("-1").number is None
    assert Utterance.parse("²").number is None
    assert Utterance.parse("").number is None


def test_one_word_can_carry_several_commands():
    parsed = Utterance.parse("Não")
    assert parsed.has(Command.DENY)
    assert parsed.has(Command.SKIP)
    assert not parsed.has(Command.AFFIRM)


def test_none_text_is_empty():
    parsed = Utterance.parse(None)
    assert parsed.is_empty
    assert parsed.commands == frozenset()


@pytest.mark.parametrize("raw,expected", [
    ("5569999089202", "5569999089202"),
    ("+55 (69) 99908-9202", "5569999089202"),
    ("069999089202", "5569999089202"),
    ("69999089202", "5569999089202"),
])
def test_normalize_identity(raw, expected):
    assert normalize_identity(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "0"])
def test_normalize_identity_rejects_empty(raw):
    with pytest.raises(ValueError):
        normalize_identity(raw)


@pytest.mark.parametrize("text", ["1234567890", "9" * 5000])
def test_long_digit_runs_are_text_not_a_selection(text):
    parsed = Utterance.parse(text)
    assert parsed.number is None
    assert parsed.normalized == text


def test_normalize_identity_rejects_overlong_numbers():
    with pytest.raises(ValueError):
        normalize_identity("55" + "9" * 14)
