from manuscripts_transform.jats_journal_meta import parse_journal_meta
from manuscripts_transform.markup import parse_xml


def test_parse_journal_meta(jats_document):
    meta = parse_journal_meta(jats_document.find("journal-meta"))
    assert meta == {
        "abbreviatedTitles": [{"type": "pubmed", "value": "J Tests"}],
        "identifiers": [{"type": "publisher-id", "value": "JT"}],
        "issns": [{"type": "epub", "value": "1234-5678"}],
        "publisherName": "Test Press",
        "title": "Journal of Tests",
    }


def test_empty_journal_meta():
    meta = parse_journal_meta(parse_xml("<journal-meta/>").find("journal-meta"))
    assert meta["identifiers"] == []
    assert meta["title"] is None
    assert meta["publisherName"] is None
