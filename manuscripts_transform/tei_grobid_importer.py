"""
Metadata import from GROBID TEI output.

Only the header (title, authors, affiliations) and the reference list are
read; GROBID's body text is not imported.  Lookups are XPath expressions
evaluated with lxml in the TEI namespace.
"""

from __future__ import annotations

import logging
from typing import Any

from lxml import etree

from manuscripts_transform.builders import (
    add_model_to_map,
    build_affiliation,
    build_bibliographic_date,
    build_bibliographic_name,
    build_bibliography_item,
    build_contributor,
    build_manuscript,
)
from manuscripts_transform.config import TEI_NAMESPACE
from manuscripts_transform.errors import MissingElementError
from manuscripts_transform.jats_importer import AddModel, choose_bibliography_item_type

logger = logging.getLogger(__name__)

Model = dict[str, Any]

NAMESPACES = {"tei": TEI_NAMESPACE}


def _first(element: etree._Element, path: str) -> etree._Element | None:
    found = element.xpath(path, namespaces=NAMESPACES)
    return found[0] if found else None


def _string(element: etree._Element, path: str) -> str:
    return element.xpath(f"string({path})", namespaces=NAMESPACES).strip()


def _person_name(element: etree._Element) -> dict[str, Any]:
    name: dict[str, Any] = {}
    given = _string(element, "tei:persName/tei:forename")
    if given:
        name["given"] = given
    family = _string(element, "tei:persName/tei:surname")
    if family:
        name["family"] = family
    return name


def parse_front(root: etree._Element, add_model: AddModel) -> None:
    header = _first(root, "/tei:TEI/tei:teiHeader")
    if header is None:
        raise MissingElementError("No header element found!")

    add_model(build_manuscript(_string(header, "tei:fileDesc/tei:titleStmt/tei:title")))

    affiliations: dict[str, Model] = {}
    authors = header.xpath(
        "tei:fileDesc/tei:sourceDesc/tei:biblStruct/tei:analytic/tei:author",
        namespaces=NAMESPACES,
    )

    for priority, author in enumerate(authors):
        contributor = build_contributor(_person_name(author), "author", priority)

        for affiliation_element in author.xpath("tei:affiliation", namespaces=NAMESPACES):
            key = affiliation_element.get("key")
            if not key:
                continue

            if key not in affiliations:
                affiliation = build_affiliation(
                    _string(affiliation_element, 'tei:orgName[@type="institution"]'),
                    len(affiliations),
                )
                department = _string(affiliation_element, 'tei:orgName[@type="department"]')
                if department:
                    affiliation["department"] = department
                affiliations[key] = add_model(affiliation)

            contributor["affiliations"].append(affiliations[key]["_id"])

        add_model(contributor)


def parse_back(root: etree._Element, add_model: AddModel) -> None:
    back = _first(root, "/tei:TEI/tei:text/tei:back")
    if back is None:
        return

    references = back.xpath(
        'tei:div[@type="references"]/tei:listBibl/tei:biblStruct', namespaces=NAMESPACES
    )

    for reference in references:
        data: dict[str, Any] = {"type": choose_bibliography_item_type(None)}

        for field, path in (
            ("title", "tei:analytic/tei:title"),
            ("container-title", "tei:monogr/tei:title"),
            ("volume", 'tei:monogr/tei:imprint/tei:biblScope[@unit="volume"]'),
            ("issue", 'tei:monogr/tei:imprint/tei:biblScope[@unit="issue"]'),
        ):
            value = _string(reference, path)
            if value:
                data[field] = value

        fpage = _string(reference, 'tei:monogr/tei:imprint/tei:biblScope[@unit="page"]/@from')
        lpage = _string(reference, 'tei:monogr/tei:imprint/tei:biblScope[@unit="page"]/@to')
        if fpage:
            data["page"] = f"{fpage}-{lpage}" if lpage else fpage

        date = _string(reference, 'tei:monogr/tei:imprint/tei:date[@type="published"]/@when')
        if date:
            data["issued"] = build_bibliographic_date({"date-parts": [date.split("-")]})

        data["author"] = [
            build_bibliographic_name(_person_name(author))
            for author in reference.xpath("tei:analytic/tei:author", namespaces=NAMESPACES)
        ]

        add_model(build_bibliography_item(data))


def parse_tei_grobid_article(xml: str | bytes) -> list[Model]:
    """Manuscript, contributor, affiliation and bibliography item models."""
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    root = etree.fromstring(xml)

    model_map: dict[str, Model] = {}
    add_model = add_model_to_map(model_map)

    parse_front(root, add_model)
    parse_back(root, add_model)

    logger.debug("Imported %d models from TEI", len(model_map))
    return list(model_map.values())
