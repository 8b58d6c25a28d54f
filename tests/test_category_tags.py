"""Tests for the [Name] description tag helpers."""

from cashdesk.services.category_tags import (
    EmbeddedCategory,
    StructuredCategory,
    category_ref,
    embed,
    extract,
    has_tag,
    mentions_word,
    retag,
)


def test_embed_and_extract() -> None:
    if embed("Marketing", "flyers") != "[Marketing] flyers" or embed("Marketing", "") != "[Marketing]":
        msg = "Unexpected embedded description"
        raise AssertionError(msg)
    if extract("[Marketing] flyers") != ("Marketing", "flyers"):
        msg = f"Unexpected extract result: {extract('[Marketing] flyers')}"
        raise AssertionError(msg)
    if extract("no tag here") != (None, "no tag here"):
        msg = "Expected no tag in an untagged description"
        raise AssertionError(msg)


def test_column_wins_over_tag() -> None:
    if category_ref("Ads", "[Marketing] flyers") != StructuredCategory("Ads"):
        msg = "Expected the column value to win"
        raise AssertionError(msg)
    if category_ref(None, "[Marketing] flyers") != EmbeddedCategory("Marketing"):
        msg = "Expected the embedded tag to be used"
        raise AssertionError(msg)
    if category_ref(None, "flyers") is not None:
        msg = "Expected no category for an untagged description"
        raise AssertionError(msg)


def test_retag_is_case_insensitive() -> None:
    if not has_tag("[marketing] flyers", "Marketing"):
        msg = "Expected a case-insensitive tag match"
        raise AssertionError(msg)
    if retag("[marketing] flyers", "Marketing", "Ads") != "[Ads] flyers":
        msg = f"Unexpected retag result: {retag('[marketing] flyers', 'Marketing', 'Ads')}"
        raise AssertionError(msg)


def test_mentions_word() -> None:
    hits = [
        "tabaka",
        "Tabaka for lunch",
        "lunch tabaka",
        "big tabaka order",
        "lunch for Tabaka.",
        "Tabaka, bread",
        "paid (Tabaka) order",
        "Tabaka-lunch",
    ]
    misses = ["tabakalar", "", "lunch", "mytabaka order"]
    for text in hits:
        if not mentions_word(text, "Tabaka"):
            msg = f"Expected {text!r} to mention Tabaka"
            raise AssertionError(msg)
    for text in misses:
        if mentions_word(text, "Tabaka"):
            msg = f"Did not expect {text!r} to mention Tabaka"
            raise AssertionError(msg)
