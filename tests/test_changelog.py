import json

from docplan.adapters.memory_adapter import InMemoryDocument
from docplan.changelog import render_txt, summarize, write_json, write_txt
from docplan.editops import ExecutionReport, Delete, Modify
from docplan.pipeline import build_payload, run_cycle


def test_summary_counts_each_outcome():
    report = ExecutionReport()
    report.record(Modify(target_sequential_number=1, new_content="X", plan_index=0), "applied")
    report.record(Modify(target_sequential_number=2, instruction="y", plan_index=1), "skipped", "no_content")
    report.record(Delete(target_sequential_number=3, plan_index=2), "failed", "stale_reference: p3")
    s = summarize(report)
    assert (s.applied_count, s.failed_count, s.skipped_count, s.total) == (1, 1, 1, 3)


def test_changelog_files(tmp_path):
    doc = InMemoryDocument(["A", "B"])
    session = run_cycle(doc, [
        {"action": "modify", "targetSequentialNumber": 1, "newContent": "A2", "reason": "clarity"},
        {"action": "modify", "targetSequentialNumber": 5, "newContent": "nope"},
    ])
    payload = build_payload(session, artifacts={"original_docx": "in.docx", "edited_docx": "out.docx"})

    write_json(str(tmp_path / "log.json"), payload)
    write_txt(str(tmp_path / "log.txt"), payload)

    assert json.loads((tmp_path / "log.json").read_text(encoding="utf-8")) == payload
    text = (tmp_path / "log.txt").read_text(encoding="utf-8")
    assert "- Applied: 1" in text
    assert "[BOUNDS]" in text
    assert "- applied: modify (plan #0)" in text


def test_render_marks_dry_run():
    text = render_txt({"timestamp_utc": "t", "artifacts": {"original_docx": "in.docx", "edited_docx": None}})
    assert "[dry run]" in text
    assert "Actions (execution order)" not in text
