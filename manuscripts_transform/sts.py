"""
NISO STS standards documents.

The body of a standard uses the JATS grammar, so export and import reuse
the JATS pipelines.  Front matter is limited to the document title in
``std-doc-meta > title-wrap > main-title-wrap > main``.
"""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from manuscripts_transform.builders import add_model_to_map, build_manuscript
from manuscripts_transform.config import MATHML_NAMESPACE, STS_PUBLIC_ID, STS_SYSTEM_ID, XLINK_NAMESPACE
from manuscripts_transform.encode import encode
from manuscripts_transform.errors import MissingElementError
from manuscripts_transform.jats_exporter import JATSExporter
from manuscripts_transform.jats_importer import html_from_jats_node, parse_jats_body
from manuscripts_transform.markup import new_xml_document
from manuscripts_transform.project_bundle import find_manuscript
from manuscripts_transform.schema import DOMSerializer, Node

logger = logging.getLogger(__name__)

Model = dict[str, Any]


class STSExporter(JATSExporter):
    """Serialize a manuscript to an STS ``<standard>`` with front and body."""

    def serialize_to_sts(self, fragment: Node, model_map: dict[str, Model]) -> str:
        self.model_map = model_map
        self.models = list(model_map.values())
        self.serializer = DOMSerializer(self._node_specs(), self._mark_specs())

        self.document, standard = new_xml_document("standard", STS_PUBLIC_ID, STS_SYSTEM_ID)
        standard["xmlns:xlink"] = XLINK_NAMESPACE
        standard["xmlns:mml"] = MATHML_NAMESPACE

        standard.append(self.build_sts_front())
        standard.append(self.build_body(fragment))

        return self.document.decode()

    def build_sts_front(self) -> Tag:
        manuscript = find_manuscript(self.model_map)

        front = self.create_element("front")
        standard_meta = self.create_element("std-doc-meta")
        front.append(standard_meta)
        title_wrap = self.create_element("title-wrap")
        standard_meta.append(title_wrap)
        main_title_wrap = self.create_element("main-title-wrap")
        title_wrap.append(main_title_wrap)

        if manuscript.get("title"):
            main = self.create_element("main")
            for child in self.html_title_children(manuscript["title"]):
                main.append(child)
            main_title_wrap.append(main)

        return front


def parse_sts_front(doc: BeautifulSoup) -> dict[str, Model]:
    """Manuscript model titled from the standard's main title."""
    front = doc.find("front")
    if front is None:
        raise MissingElementError("No front element found!")

    model_map: dict[str, Model] = {}
    add_model = add_model_to_map(model_map)

    title = front.select_one("std-doc-meta > title-wrap > main-title-wrap > main")
    add_model(build_manuscript(html_from_jats_node(title) or ""))
    return model_map


def parse_sts_body(doc: BeautifulSoup) -> Node:
    return parse_jats_body(doc)


def parse_sts_standard(doc: BeautifulSoup) -> list[Model]:
    front = parse_sts_front(doc)
    node = parse_sts_body(doc)

    manuscript = node.first_child
    if manuscript is None:
        raise MissingElementError("No content was parsed from the standard body")

    body = encode(manuscript)
    logger.debug("Imported standard with %d body models", len(body))
    return [*front.values(), *body.values()]
