"""Scancode set 1 key codes and conversion to ASCII."""

from __future__ import annotations

from enum import IntEnum

RELEASE = 0x80


class Key(IntEnum):
    """Make codes of the keys on a standard keyboard."""

    ESC = 0x01
    K1 = 0x02
    K2 = 0x03
    K3 = 0x04
    K4 = 0x05
    K5 = 0x06
    K6 = 0x07
    K7 = 0x08
    K8 = 0x09
    K9 = 0x0A
    K0 = 0x0B
    MINUS = 0x0C
    EQUALS = 0x0D
    BKSP = 0x0E
    TAB = 0x0F
    Q = 0x10
    W = 0x11
    E = 0x12
    R = 0x13
    T = 0x14
    Y = 0x15
    U = 0x16
    I = 0x17  # noqa: E741
    O = 0x18  # noqa: E741
    P = 0x19
    LBRACE = 0x1A
    RBRACE = 0x1B
    ENTER = 0x1C
    LCTRL = 0x1D
    A = 0x1E
    S = 0x1F
    D = 0x20
    F = 0x21
    G = 0x22
    H = 0x23
    J = 0x24
    K = 0x25
    L = 0x26
    SCOLON = 0x27
    QUOTE = 0x28
    BQUOTE = 0x29
    LSHIFT = 0x2A
    BSLASH = 0x2B
    Z = 0x2C
    X = 0x2D
    C = 0x2E
    V = 0x2F
    B = 0x30
    N = 0x31
    M = 0x32
    COMMA = 0x33
    DOT = 0x34
    SLASH = 0x35
    RSHIFT = 0x36
    STAR = 0x37
    LALT = 0x38
    SPACE = 0x39
    CAPS = 0x3A
    F1 = 0x3B
    F2 = 0x3C
    F3 = 0x3D
    F4 = 0x3E
    F5 = 0x3F
    F6 = 0x40
    F7 = 0x41
    F8 = 0x42
    F9 = 0x43
    F10 = 0x44


# Index is the make code; "\0" marks keys without a character.
_ASCII_TABLE = (
    "\0\0"
    "1234567890-=\b"
    "\tqwertyuiop[]\n"
    "\0asdfghjkl;'`"
    "\0\\zxcvbnm,./\0"
    "*\0 "
)


def is_release(scancode):
    """Return True if the scancode reports a key being released."""
    return bool(scancode & RELEASE)


def scancode_to_ascii(scancode):
    """Return the character for a scancode, or "" if it has none.

    The release bit is ignored, so a key's make and break codes give the
    same character.
    """
    code = scancode & ~RELEASE
    if code < 0 or code >= 128 or code >= len(_ASCII_TABLE):
        return ""
    char = _ASCII_TABLE[code]
    return "" if char == "\0" else char