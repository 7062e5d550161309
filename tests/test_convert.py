import json

import pytest

from conftest import JATS_ARTICLE
from manuscripts_transform.convert import main


@pytest.fixture
def bundle_file(tmp_path, bundle):
    path = tmp_path / "project.json"
    path.write_text(json.dumps(bundle), encoding="utf-8")
    return path


def test_export_jats(bundle_file, tmp_path):
    output = tmp_path / "article.xml"
    assert main(["jats", str(bundle_file), "--doi", "10.1/x", "-o", str(output)]) == 0
    xml = output.read_text(encoding="utf-8")
    assert "<article" in xml
    assert "10.1/x" in xml


def test_export_front_matter_only(bundle_file, capsys):
    assert main(["jats", str(bundle_file), "--front-matter-only"]) == 0
    out = capsys.readouterr().out
    assert "<front>" in out
    assert "<body" not in out


def test_export_sts(bundle_file, capsys):
    assert main(["sts", str(bundle_file)]) == 0
    assert "<standard" in capsys.readouterr().out


def test_export_html(bundle_file, capsys):
    assert main(["html", str(bundle_file), "--attachment-prefix", "media/"]) == 0
    assert 'src="media/MPFigure_F1.png"' in capsys.readouterr().out


def test_import_jats(tmp_path, capsys):
    path = tmp_path / "article.xml"
    path.write_text(JATS_ARTICLE, encoding="utf-8")
    assert main(["import-jats", str(path)]) == 0
    bundle = json.loads(capsys.readouterr().out)
    assert bundle["version"] == "2.0"
    assert any(model["objectType"] == "MPManuscript" for model in bundle["data"])


def test_missing_file(tmp_path, capsys):
    assert main(["jats", str(tmp_path / "nope.json")]) == 1
    assert "Error: file not found" in capsys.readouterr().err


def test_unknown_version(bundle_file, capsys):
    assert main(["jats", str(bundle_file), "--version", "9.9"]) == 1
    assert "Unknown version 9.9" in capsys.readouterr().err


def test_unknown_manuscript(bundle_file, capsys):
    assert main(["jats", str(bundle_file), "--manuscript-id", "MPManuscript:NOPE"]) == 1
    assert "MPManuscript:NOPE" in capsys.readouterr().err
