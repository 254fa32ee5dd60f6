import pytest

from hextrixfs.keymap import RELEASE, Key, is_release, scancode_to_ascii


@pytest.mark.parametrize(
    "key, char",
    [
        (Key.A, "a"),
        (Key.Q, "q"),
        (Key.Z, "z"),
        (Key.K1, "1"),
        (Key.K0, "0"),
        (Key.MINUS, "-"),
        (Key.EQUALS, "="),
        (Key.BKSP, "\b"),
        (Key.TAB, "\t"),
        (Key.ENTER, "\n"),
        (Key.LBRACE, "["),
        (Key.RBRACE, "]"),
        (Key.SCOLON, ";"),
        (Key.QUOTE, "'"),
        (Key.BQUOTE, "`"),
        (Key.BSLASH, "\\"),
        (Key.COMMA, ","),
        (Key.DOT, "."),
        (Key.SLASH, "/"),
        (Key.STAR, "*"),
        (Key.SPACE, " "),
    ],
)
def test_printable_keys(key, char):
    assert scancode_to_ascii(key) == char


@pytest.mark.parametrize(
    "key",
    [Key.ESC, Key.LCTRL, Key.LSHIFT, Key.RSHIFT, Key.LALT, Key.CAPS, Key.F1, Key.F10],
)
def test_keys_without_character(key):
    assert scancode_to_ascii(key) == ""


def test_release_code_maps_like_make_code():
    for key in Key:
        assert scancode_to_ascii(key | RELEASE) == scancode_to_ascii(key)


def test_out_of_range_and_negative():
    assert scancode_to_ascii(-1) == ""
    assert scancode_to_ascii(0x200) == ""
    assert scancode_to_ascii(0) == ""


def test_is_release():
    assert is_release(Key.A | RELEASE) is True
    assert is_release(Key.A) is False


def test_letters_are_lowercase_names():
    letters = [k for k in Key if len(k.name) == 1 and k.name.isalpha()]
    assert len(letters) == 26
    for key in letters:
        assert scancode_to_ascii(key) == key.name.lower()


def test_digit_keys_follow_names():
    for key in Key:
        if len(key.name) == 2 and key.name[0] == "K" and key.name[1].isdigit():
            assert scancode_to_ascii(key) == key.name[1]