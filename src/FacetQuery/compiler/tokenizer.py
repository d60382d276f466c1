"""Whitespace tokenizer for raw queries."""

from __future__ import annotations

_QUOTES = ('"', "'")


def tokenize(text: str) -> list[str]:
    """Split raw query text on unquoted whitespace.

    Single- or double-quoted spans stay inside one token and keep their quote
    characters; they are stripped later during value extraction. An
    unterminated quote runs to the end of the text.

    Args:
        text: Raw query text.

    Returns:
        Non-empty tokens in input order.
    """
    tokens: list[str] = []
    current: list[str] = []
    quote_char = ""

    for char in text:
        if not quote_char and char in _QUOTES:
            quote_char = char
            current.append(char)
        elif quote_char and char == quote_char:
            quote_char = ""
            current.append(char)
        elif not quote_char and char.isspace():
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))
    return tokens
