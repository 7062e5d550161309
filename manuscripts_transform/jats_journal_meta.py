"""
Journal metadata from a JATS ``<journal-meta>`` element.
"""

from __future__ import annotations

from typing import Any, TypedDict

from bs4 import Tag


class TypedValue(TypedDict):
    type: str | None
    value: str


def _typed_values(journal_meta: Tag, selector: str, type_attribute: str) -> list[TypedValue]:
    return [
        {"type": element.get(type_attribute), "value": element.get_text()}
        for element in journal_meta.select(selector)
    ]


def parse_journal_identifiers(journal_meta: Tag) -> list[TypedValue]:
    return _typed_values(journal_meta, "journal-id", "journal-id-type")


def parse_journal_abbreviated_titles(journal_meta: Tag) -> list[TypedValue]:
    return _typed_values(
        journal_meta, "journal-title-group > abbrev-journal-title", "abbrev-type"
    )


def parse_journal_issns(journal_meta: Tag) -> list[TypedValue]:
    return _typed_values(journal_meta, "issn", "pub-type")


def _text_content(element: Tag, selector: str) -> str | None:
    found = element.select_one(selector)
    return found.get_text() if found is not None else None


def parse_journal_meta(journal_meta: Tag) -> dict[str, Any]:
    """Identifiers, abbreviated titles, ISSNs, publisher name and title."""
    return {
        "abbreviatedTitles": parse_journal_abbreviated_titles(journal_meta),
        "identifiers": parse_journal_identifiers(journal_meta),
        "issns": parse_journal_issns(journal_meta),
        "publisherName": _text_content(journal_meta, "publisher > publisher-name"),
        "title": _text_content(journal_meta, "journal-title-group > journal-title"),
    }
