import pytest

from manuscripts_transform.config import STS_PUBLIC_ID
from manuscripts_transform.errors import MissingElementError
from manuscripts_transform.markup import parse_xml
from manuscripts_transform.sts import STSExporter, parse_sts_front, parse_sts_standard

STANDARD = """<standard xmlns:xlink="http://www.w3.org/1999/xlink">
  <front>
    <std-doc-meta>
      <title-wrap>
        <main-title-wrap><main>Safety of <italic>toys</italic></main></main-title-wrap>
      </title-wrap>
    </std-doc-meta>
  </front>
  <body>
    <sec id="sec_1">
      <title>Scope</title>
      <p>This document applies to toys.</p>
    </sec>
  </body>
</standard>
"""


def test_export(article, model_map):
    xml = STSExporter().serialize_to_sts(article, model_map)
    assert STS_PUBLIC_ID in xml

    doc = parse_xml(xml)
    standard = doc.find("standard")
    main = standard.select_one("front > std-doc-meta > title-wrap > main-title-wrap > main")
    assert main.get_text() == "A study of things"
    assert main.find("italic").get_text() == "study"

    body = standard.find("body", recursive=False)
    assert body.find("sec", attrs={"sec-type": "intro"}) is not None
    assert doc.find("article-meta") is None


def test_import():
    models = parse_sts_standard(parse_xml(STANDARD))

    manuscript = models[0]
    assert manuscript["objectType"] == "MPManuscript"
    assert manuscript["title"] == "Safety of <i>toys</i>"

    sections = [model for model in models if model["objectType"] == "MPSection"]
    assert [section["title"] for section in sections] == ["Scope"]
    paragraphs = [model for model in models if model["objectType"] == "MPParagraphElement"]
    assert len(paragraphs) == 1
    assert "This document applies to toys." in paragraphs[0]["contents"]
    assert sections[0]["elementIDs"] == [paragraphs[0]["_id"]]


def test_import_requires_front():
    with pytest.raises(MissingElementError):
        parse_sts_front(parse_xml("<standard><body/></standard>"))
