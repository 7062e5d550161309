"""
CLI entry point for the manuscript conversions.

Export
------
A project bundle (JSON) is decoded to a content tree and serialized:

    manuscripts-transform jats project.json --doi 10.1234/5678 --output article.xml
    manuscripts-transform sts project.json
    manuscripts-transform html project.json --attachment-prefix media/

Import
------
An XML document is read into models, written as a project bundle:

    manuscripts-transform import-jats article.xml --output project.json
    manuscripts-transform import-sts standard.xml
    manuscripts-transform import-tei grobid.tei.xml
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from manuscripts_transform.errors import TransformError
from manuscripts_transform.html_exporter import HTMLExportOptions, HTMLTransformer
from manuscripts_transform.jats_exporter import JATSExporter, JATSExportOptions
from manuscripts_transform.jats_importer import parse_jats_article
from manuscripts_transform.markup import parse_xml
from manuscripts_transform.project_bundle import parse_project_bundle
from manuscripts_transform.sts import STSExporter, parse_sts_standard
from manuscripts_transform.tei_grobid_importer import parse_tei_grobid_article

logger = logging.getLogger(__name__)


def load_bundle(path: Path, manuscript_id: str | None):
    with open(path, encoding="utf-8") as f:
        bundle = json.load(f)
    article, manuscript, model_map = parse_project_bundle(bundle, manuscript_id)
    logger.info("Loaded manuscript %s from %s", manuscript["_id"], path)
    return article, model_map


def export_jats(args: argparse.Namespace) -> str:
    fragment, model_map = load_bundle(Path(args.input), args.manuscript_id)
    options = JATSExportOptions(
        version=args.version,
        doi=args.doi,
        id=args.id,
        front_matter_only=args.front_matter_only,
    )
    return JATSExporter().serialize_to_jats(fragment, model_map, options)


def export_sts(args: argparse.Namespace) -> str:
    fragment, model_map = load_bundle(Path(args.input), args.manuscript_id)
    return STSExporter().serialize_to_sts(fragment, model_map)


def export_html(args: argparse.Namespace) -> str:
    fragment, model_map = load_bundle(Path(args.input), args.manuscript_id)
    options = HTMLExportOptions(attachment_url_prefix=args.attachment_prefix)
    return HTMLTransformer().serialize_to_html(fragment, model_map, options)


def _bundle_json(models: list[dict]) -> str:
    return json.dumps({"version": "2.0", "data": models}, ensure_ascii=False, indent=2)


def import_jats(args: argparse.Namespace) -> str:
    doc = parse_xml(Path(args.input).read_bytes())
    return _bundle_json(parse_jats_article(doc))


def import_sts(args: argparse.Namespace) -> str:
    doc = parse_xml(Path(args.input).read_bytes())
    return _bundle_json(parse_sts_standard(doc))


def import_tei(args: argparse.Namespace) -> str:
    return _bundle_json(parse_tei_grobid_article(Path(args.input).read_bytes()))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="manuscripts-transform",
        description="Convert manuscripts between project bundles and JATS, STS, HTML or TEI.",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug messages.")
    commands = ap.add_subparsers(dest="command", required=True)

    def add_command(name: str, handler, help_text: str) -> argparse.ArgumentParser:
        command = commands.add_parser(name, help=help_text)
        command.add_argument("input", help="Input file.")
        command.add_argument(
            "-o", "--output", default=None, help="Output file (default: stdout)."
        )
        command.set_defaults(handler=handler)
        return command

    for name, handler, help_text in (
        ("jats", export_jats, "Project bundle → JATS XML."),
        ("sts", export_sts, "Project bundle → NISO STS XML."),
        ("html", export_html, "Project bundle → XHTML."),
    ):
        command = add_command(name, handler, help_text)
        command.add_argument(
            "--manuscript-id", default=None, help="Manuscript to export (default: the first)."
        )
        if name == "jats":
            command.add_argument("--version", default="1.2", help="JATS version (default: 1.2).")
            command.add_argument("--doi", default=None)
            command.add_argument("--id", default=None, help="Publisher article id.")
            command.add_argument(
                "--front-matter-only", action="store_true", help="Write <front> only."
            )
        if name == "html":
            command.add_argument(
                "--attachment-prefix",
                default=HTMLExportOptions.attachment_url_prefix,
                help="URL prefix for figure images (default: Data/).",
            )

    add_command("import-jats", import_jats, "JATS XML → project bundle.")
    add_command("import-sts", import_sts, "NISO STS XML → project bundle.")
    add_command("import-tei", import_tei, "GROBID TEI XML → project bundle.")

    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not Path(args.input).exists():
        print(f"Error: file not found: {args.input}", file=sys.stderr)
        return 1

    try:
        result = args.handler(args)
    except TransformError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(result, encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        sys.stdout.write(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
