"""SKU derivation rules.

Turns free-text product attributes into short uppercase tokens and joins
them into one SKU string.  Everything here is pure: the same inputs always
produce the same SKU and no function raises for string input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum

CODE_LENGTH = 3
YEAR_SUFFIX_LENGTH = 2
SEPARATORS = ("-", ":", "/")

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


class AttributeRule(str, Enum):
    """Token extraction rule applied to every attribute of one generation."""

    FIRST_LETTERS = "rule1"  # first N letters of the first word
    INITIALS = "rule2"  # first letter of each of the first N words

    @property
    def label(self) -> str:
        if self is AttributeRule.FIRST_LETTERS:
            return f"First {CODE_LENGTH} letters of first word"
        return f"Initials of first {CODE_LENGTH} words"


def first_letters_of_first_word(text: str, n: int = CODE_LENGTH) -> str:
    """Return the first *n* characters of the first word, upper-cased."""
    words = text.split()
    if not words:
        return ""
    return words[0][:n].upper()


def initials_of_first_words(text: str, n: int = CODE_LENGTH) -> str:
    """Return the initials of the first *n* words, upper-cased."""
    return "".join(word[:1] for word in text.split()[:n]).upper()


def sanitize_full_text(text: str) -> str:
    """Strip everything but ASCII letters and digits, then upper-case."""
    return _NON_ALNUM.sub("", text).upper()


def derive_attribute_code(
    text: str,
    rule: AttributeRule | str = AttributeRule.FIRST_LETTERS,
    full_mode: bool = False,
) -> str:
    """Derive the token for a single attribute.

    Empty text gives an empty token, which is later left out of the SKU.
    With *full_mode* the whole sanitised text is used instead of *rule*.
    """
    if not text:
        return ""
    if full_mode:
        return sanitize_full_text(text)
    if AttributeRule(rule) is AttributeRule.INITIALS:
        return initials_of_first_words(text)
    return first_letters_of_first_word(text)


def derive_product_code(
    product_text: str,
    year_text: str = "",
    rule: AttributeRule | str = AttributeRule.FIRST_LETTERS,
) -> str:
    """Derive the product token with the year suffix fused on.

    ``("Fall Winter", "2024")`` -> ``"FAL24"``.  A year shorter than two
    characters is appended as-is.

    Surrounding whitespace is stripped from the year before its last two
    characters are taken, so ``"2024 "`` gives ``"24"`` rather than ``"4 "``
    and a blank year adds nothing.
    """
    code = derive_attribute_code(product_text, rule)
    year = (year_text or "").strip()
    if year:
        code += year[-YEAR_SUFFIX_LENGTH:]
    return code


def compose_sku(
    product_code: str,
    attribute_codes: Iterable[str],
    size: str,
    separator: str = "-",
) -> str:
    """Join the non-empty tokens and the size into one SKU.

    Format: PRODUCT-ATTR1-ATTR2-SIZE (empty tokens omitted).  When every
    token is empty the SKU is just the size.
    """
    parts = [p for p in (product_code, *attribute_codes) if p]
    body = separator.join(parts)
    if not body:
        return size
    return f"{body}{separator}{size}"
