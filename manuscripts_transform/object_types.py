"""
Object type groupings and model predicates.
"""

from __future__ import annotations

from typing import Any, Callable

from manuscripts_transform.config import ObjectType

Model = dict[str, Any]

ELEMENT_OBJECTS: tuple[ObjectType, ...] = (
    ObjectType.BIBLIOGRAPHY_ELEMENT,
    ObjectType.EQUATION_ELEMENT,
    ObjectType.FIGURE_ELEMENT,
    ObjectType.FOOTNOTES_ELEMENT,
    ObjectType.LIST_ELEMENT,
    ObjectType.LISTING_ELEMENT,
    ObjectType.PARAGRAPH_ELEMENT,
    ObjectType.TABLE_ELEMENT,
    ObjectType.TOC_ELEMENT,
)

# Models that belong to a single manuscript and carry ``manuscriptID``
MANUSCRIPT_OBJECTS: tuple[ObjectType, ...] = (
    ObjectType.AFFILIATION,
    ObjectType.CITATION,
    ObjectType.COMMENT_ANNOTATION,
    ObjectType.CONTRIBUTOR,
    ObjectType.FOOTNOTE,
    ObjectType.INLINE_MATH_FRAGMENT,
    ObjectType.SECTION,
    *ELEMENT_OBJECTS,
)

_MANUSCRIPT_ID_TYPES = frozenset(
    object_type.value
    for object_type in (
        *MANUSCRIPT_OBJECTS,
        ObjectType.AUXILIARY_OBJECT_REFERENCE,
        ObjectType.BIBLIOGRAPHY_ITEM,
        ObjectType.EQUATION,
        ObjectType.FIGURE,
        ObjectType.KEYWORD,
        ObjectType.LISTING,
        ObjectType.QUOTE_ELEMENT,
        ObjectType.KEYWORDS_ELEMENT,
        ObjectType.TABLE,
        ObjectType.SUBMISSION,
        ObjectType.HIGHLIGHT,
        ObjectType.CONTRIBUTOR_ROLE,
    )
)


def is_manuscript_model(model: Model) -> bool:
    """True for models scoped to one manuscript."""
    if not model.get("objectType"):
        raise ValueError("Model must have objectType")
    return model["objectType"] in _MANUSCRIPT_ID_TYPES


def has_object_type(object_type: ObjectType | str) -> Callable[[Model], bool]:
    def check(model: Model) -> bool:
        return model.get("objectType") == object_type

    return check


is_figure = has_object_type(ObjectType.FIGURE)
is_manuscript = has_object_type(ObjectType.MANUSCRIPT)
is_table = has_object_type(ObjectType.TABLE)
is_user_profile = has_object_type(ObjectType.USER_PROFILE)
is_section = has_object_type(ObjectType.SECTION)
is_submission = has_object_type(ObjectType.SUBMISSION)
