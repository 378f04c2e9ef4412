import json

import pytest
from docx import Document

from docplan.cli import main


def _make_docx(path, paragraphs):
    doc = Document()
    for p in list(doc.paragraphs):
        p._p.getparent().remove(p._p)
    for text in paragraphs:
        doc.add_paragraph(text)
    doc.save(str(path))
    return path


def _write_plan(path, actions):
    path.write_text(json.dumps(actions), encoding="utf-8")
    return path


def _bundle(out):
    dirs = [d for d in out.iterdir() if d.is_dir()]
    assert len(dirs) == 1
    return dirs[0]


def test_cli_applies_plan_and_writes_bundle(tmp_path, capsys):
    src = _make_docx(tmp_path / "report.docx", ["Alpha.", "Beta.", "Gamma.", "Delta."])
    plan = _write_plan(tmp_path / "plan.json", [
        {"action": "modify", "targetSequentialNumber": 1, "newContent": "Alpha, revised."},
        {"action": "insert", "afterSequentialNumber": 4, "newContent": "Epsilon."},
        {"action": "modify", "targetSequentialNumber": 3, "newContent": "Gamma, revised."},
        {"action": "delete", "targetSequentialNumber": 2},
    ])
    out = tmp_path / "out"

    assert main([str(src), "--plan", str(plan), "--out", str(out)]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result["status"] == "ok"
    assert result["applied_count"] == 4

    bundle = _bundle(out)
    edited = Document(str(bundle / "report.edited.docx"))
    assert [p.text for p in edited.paragraphs] == ["Alpha, revised.", "Gamma, revised.", "Delta.", "Epsilon."]
    assert (bundle / "report.original.docx").exists()
    changelog = json.loads((bundle / "report.changelog.json").read_text(encoding="utf-8"))
    assert len(changelog["results"]) == 4
    assert (bundle / "report.changelog.txt").read_text(encoding="utf-8").startswith("Edit Plan Run")


def test_cli_dry_run_writes_no_edited_copy(tmp_path, capsys):
    src = _make_docx(tmp_path / "report.docx", ["Alpha."])
    plan = _write_plan(tmp_path / "plan.json", [{"action": "modify", "targetSequentialNumber": 1, "newContent": "X"}])
    out = tmp_path / "out"

    assert main([str(src), "--plan", str(plan), "--out", str(out), "--dry-run"]) == 0
    assert json.loads(capsys.readouterr().out)["dry_run"] is True
    assert not (_bundle(out) / "report.edited.docx").exists()


def test_cli_reports_unsafe_plan(tmp_path, capsys):
    src = _make_docx(tmp_path / "report.docx", ["Alpha.", "Beta."])
    plan = _write_plan(tmp_path / "plan.json", [{"action": "delete", "targetSequentialNumber": 1}])

    assert main([str(src), "--plan", str(plan), "--out", str(tmp_path / "out")]) == 1
    result = json.loads(capsys.readouterr().out)
    assert result == {"status": "error", "error": "UnsafePlanError", "message": result["message"]}


def test_cli_requires_a_plan_source(tmp_path):
    src = _make_docx(tmp_path / "report.docx", ["Alpha."])
    with pytest.raises(SystemExit):
        main([str(src)])


def test_cli_llm_needs_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    src = _make_docx(tmp_path / "report.docx", ["Alpha."])
    with pytest.raises(SystemExit):
        main([str(src), "--use-llm"])
