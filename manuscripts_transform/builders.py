"""
Constructors for new models.

Each builder returns a plain ``dict`` with a fresh ``_id`` and the
``objectType`` set.  Container fields (``containerID``,
``manuscriptID``) are left to the caller.
"""

from __future__ import annotations

from typing import Any, Callable

from manuscripts_transform.config import DEFAULT_BUNDLE, ObjectType
from manuscripts_transform.ids import generate_id

Model = dict[str, Any]


def _new(object_type: ObjectType, **fields: Any) -> Model:
    return {"_id": generate_id(object_type), "objectType": object_type.value, **fields}


def _without_none(model: Model) -> Model:
    return {key: value for key, value in model.items() if value is not None}


# ── Containers ────────────────────────────────────────────────────────────


def build_project(owner: str) -> Model:
    return _new(ObjectType.PROJECT, owners=[owner], writers=[], viewers=[], title="")


def build_manuscript(title: str = "") -> Model:
    return _new(ObjectType.MANUSCRIPT, title=title, bundle=DEFAULT_BUNDLE)


def build_journal(meta: dict[str, Any]) -> Model:
    """Journal model from the output of ``parse_journal_meta``."""
    return _without_none(_new(ObjectType.JOURNAL, **meta))


# ── People ────────────────────────────────────────────────────────────────


def build_contributor(
    bibliographic_name: dict[str, Any],
    role: str = "author",
    priority: int = 0,
    user_id: str | None = None,
    invitation_id: str | None = None,
) -> Model:
    return _without_none(
        _new(
            ObjectType.CONTRIBUTOR,
            priority=priority,
            role=role,
            affiliations=[],
            bibliographicName=build_bibliographic_name(bibliographic_name),
            userID=user_id,
            invitationID=invitation_id,
        )
    )


def build_affiliation(institution: str, priority: int = 0) -> Model:
    return _new(ObjectType.AFFILIATION, institution=institution, priority=priority)


def build_user_profile_affiliation(institution: str, priority: int = 0) -> Model:
    return _new(ObjectType.USER_PROFILE_AFFILIATION, institution=institution, priority=priority)


# ── Bibliography ──────────────────────────────────────────────────────────


def build_bibliography_item(data: dict[str, Any]) -> Model:
    """Bibliography item from CSL-style *data*; ``type`` defaults to a journal article."""
    return {
        **data,
        "type": data.get("type") or "article-journal",
        "_id": generate_id(ObjectType.BIBLIOGRAPHY_ITEM),
        "objectType": ObjectType.BIBLIOGRAPHY_ITEM.value,
    }


def build_bibliographic_name(data: dict[str, Any]) -> Model:
    return {
        **data,
        "_id": generate_id(ObjectType.BIBLIOGRAPHIC_NAME),
        "objectType": ObjectType.BIBLIOGRAPHIC_NAME.value,
    }


def build_bibliographic_date(data: dict[str, Any]) -> Model:
    """Embedded date; *data* holds CSL ``date-parts`` and optional extras."""
    return {
        **data,
        "_id": generate_id(ObjectType.BIBLIOGRAPHIC_DATE),
        "objectType": ObjectType.BIBLIOGRAPHIC_DATE.value,
    }


def build_embedded_citation_item(bibliography_item: str) -> Model:
    return _new(ObjectType.CITATION_ITEM, bibliographyItem=bibliography_item)


def build_citation(containing_object: str, embedded_citation_items: list[str]) -> Model:
    return _new(
        ObjectType.CITATION,
        containingObject=containing_object,
        embeddedCitationItems=[
            build_embedded_citation_item(item) for item in embedded_citation_items
        ],
    )


def build_auxiliary_object_reference(containing_object: str, referenced_object: str) -> Model:
    return _new(
        ObjectType.AUXILIARY_OBJECT_REFERENCE,
        containingObject=containing_object,
        referencedObject=referenced_object,
    )


# ── Content ───────────────────────────────────────────────────────────────


def build_keyword(name: str) -> Model:
    return _new(ObjectType.KEYWORD, name=name)


def build_figure(content_type: str, data: bytes | None = None, src: str | None = None) -> Model:
    """Figure model with its image as an ``attachment`` named ``image``."""
    figure = _new(ObjectType.FIGURE, contentType=content_type, src=src)
    if data is not None:
        figure["attachment"] = {"id": "image", "type": content_type, "data": data}
    return _without_none(figure)


def build_comment(
    user_id: str, target: str, contents: str = "", selector: dict[str, Any] | None = None
) -> Model:
    return _without_none(
        _new(
            ObjectType.COMMENT_ANNOTATION,
            userID=user_id,
            target=target,
            selector=selector,
            contents=contents,
        )
    )


def build_inline_math_fragment(containing_object: str, tex_representation: str) -> Model:
    return _new(
        ObjectType.INLINE_MATH_FRAGMENT,
        containingObject=containing_object,
        TeXRepresentation=tex_representation,
    )


def build_footnote(containing_object: str, contents: str, kind: str = "footnote") -> Model:
    return _new(
        ObjectType.FOOTNOTE, containingObject=containing_object, contents=contents, kind=kind
    )


def build_section(priority: int = 0, path: list[str] | None = None) -> Model:
    section = _new(ObjectType.SECTION, priority=priority)
    section["path"] = [*(path or []), section["_id"]]
    return section


def build_paragraph(contents: str) -> Model:
    return _new(ObjectType.PARAGRAPH_ELEMENT, elementType="p", contents=contents)


# ── Model maps ────────────────────────────────────────────────────────────


def add_model_to_map(model_map: dict[str, Model]) -> Callable[[Model], Model]:
    """Return ``add_model(data)``: give *data* a fresh id and store it.

    The id prefix comes from the data's ``objectType``.
    """

    def add_model(data: Model) -> Model:
        model = {**data, "_id": generate_id(data["objectType"])}
        model_map[model["_id"]] = model
        return model

    return add_model
