"""
Conversions between a manuscript content tree, its flat models and the
JATS, NISO STS, HTML and TEI/GROBID documents.
"""

from manuscripts_transform.decode import Decoder, decode
from manuscripts_transform.encode import encode
from manuscripts_transform.html_exporter import HTMLExportOptions, HTMLTransformer
from manuscripts_transform.jats_exporter import JATSExporter, JATSExportOptions
from manuscripts_transform.jats_importer import parse_jats_article
from manuscripts_transform.project_bundle import parse_project_bundle
from manuscripts_transform.schema import schema
from manuscripts_transform.sts import STSExporter, parse_sts_standard
from manuscripts_transform.tei_grobid_importer import parse_tei_grobid_article

__all__ = [
    "Decoder",
    "HTMLExportOptions",
    "HTMLTransformer",
    "JATSExportOptions",
    "JATSExporter",
    "STSExporter",
    "decode",
    "encode",
    "parse_jats_article",
    "parse_project_bundle",
    "parse_sts_standard",
    "parse_tei_grobid_article",
    "schema",
]
