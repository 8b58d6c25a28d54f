"""Expense-category references and the ``[Name]`` description tag.

Databases without a ``transactions.category`` column keep an expense's category as a
``[Name]`` prefix of its description. Both representations are modelled here and resolved
to one logical category name, so nothing above the ledger branches on storage.
"""

import re
from dataclasses import dataclass

TAG_PATTERN = re.compile(r"\[([^\[\]]+)\]")


@dataclass(frozen=True)
class StructuredCategory:
    """Category held in the ``category`` column."""

    name: str


@dataclass(frozen=True)
class EmbeddedCategory:
    """Category held as a ``[Name]`` tag inside the description."""

    name: str


CategoryRef = StructuredCategory | EmbeddedCategory


def embed(name: str, description: str | None) -> str:
    """Prefix a description with the ``[name]`` tag."""
    text = (description or "").strip()
    return f"[{name}] {text}" if text else f"[{name}]"


def extract(description: str | None) -> tuple[str | None, str]:
    """Split a description into its first tag name and the remaining text."""
    text = description or ""
    match = TAG_PATTERN.search(text)
    if not match:
        return None, text
    name = match.group(1).strip()
    rest = (text[: match.start()] + text[match.end() :]).strip()
    return name or None, rest


def category_ref(column_value: str | None, description: str | None) -> CategoryRef | None:
    """Work out where a row keeps its category; the column wins over a tag."""
    if column_value:
        return StructuredCategory(column_value)
    name, _ = extract(description)
    if name:
        return EmbeddedCategory(name)
    return None


def has_tag(description: str | None, name: str) -> bool:
    """Whether the description carries ``[name]`` (case-insensitive)."""
    return f"[{name}]".lower() in (description or "").lower()


def retag(description: str | None, old_name: str, new_name: str) -> str:
    """Replace every ``[old_name]`` tag (case-insensitive) with ``[new_name]``."""
    pattern = re.compile(re.escape(f"[{old_name}]"), re.IGNORECASE)
    return pattern.sub(lambda _: f"[{new_name}]", description or "")


def mentions_word(description: str | None, name: str) -> bool:
    """Loose match used for rows tagged before brackets were introduced.

    True when the description contains the bare name as a whole word, bounded by the ends of
    the text, whitespace or punctuation; comparison is case-insensitive.
    """
    text = (description or "").strip()
    word = name.strip()
    if not text or not word:
        return False
    return re.search(rf"(?<!\w){re.escape(word)}(?!\w)", text, re.IGNORECASE) is not None
