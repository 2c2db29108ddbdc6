"""Spelling helpers for string literals."""
from __future__ import annotations

QUOTES = ('"""', "'''", '"', "'")


def quote_of(raw: str) -> str:
    """The quote delimiter used by a string literal's source spelling."""
    i = 0
    while i < len(raw) and raw[i].isalpha():
        i += 1
    for quote in QUOTES:
        if raw.startswith(quote, i):
            return quote
    return '"'


def quote_string(value: str, quote: str = '"') -> str:
    """Spell *value* as a string literal delimited by *quote*."""
    if quote not in QUOTES:
        quote = '"'
    body = value.replace("\\", "\\\\").replace(quote[0], "\\" + quote[0])
    if len(quote) == 1:
        body = body.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return f"{quote}{body}{quote}"
