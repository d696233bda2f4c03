"""Correction of characters that recognizers commonly confuse with digits."""

import re

# Latin glyphs misread in place of the digit they resemble.
DIGIT_CONFUSIONS: dict[str, str] = {
    "I": "1",
    "l": "1",
    "O": "0",
    "o": "0",
    "Q": "0",
    "S": "5",
    "s": "5",
    "G": "6",
    "g": "9",
    "B": "8",
    "b": "6",
    "q": "9",
}

# Arabic-Indic (U+0660) and Extended Arabic-Indic (U+06F0) digits.
NATIVE_DIGITS: dict[str, str] = {
    **{chr(0x0660 + i): str(i) for i in range(10)},
    **{chr(0x06F0 + i): str(i) for i in range(10)},
}

_NATIVE_TABLE = str.maketrans(NATIVE_DIGITS)
_CONFUSION_TABLE = str.maketrans(DIGIT_CONFUSIONS)
_TOKEN_RE = re.compile(r"\S+")
_ASCII_DIGIT_RE = re.compile(r"[0-9]")


def _is_numeric_token(token: str) -> bool:
    """A token is numeric when it has a digit and every other letter is confusable."""
    if not _ASCII_DIGIT_RE.search(token):
        return False
    return all(ch.isdigit() or ch in DIGIT_CONFUSIONS for ch in token if ch.isalnum())


def correct_digits(text: str) -> str:
    """Map digit look-alikes to ASCII digits.

    Native digits are converted everywhere. Latin look-alikes are only
    replaced inside tokens that are otherwise numeric, so ordinary words
    survive untouched.

    Args:
        text: Raw recognized text.

    Returns:
        Text with confusable glyphs replaced.
    """
    text = text.translate(_NATIVE_TABLE)

    def _fix(match: re.Match[str]) -> str:
        token = match.group(0)
        if _is_numeric_token(token):
            return token.translate(_CONFUSION_TABLE)
        return token

    return _TOKEN_RE.sub(_fix, text)
