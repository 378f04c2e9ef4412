import pytest

from docplan.adapters.memory_adapter import InMemoryDocument
from docplan.errors import DocumentSizeError, UnsafePlanError
from docplan.pipeline import analyze, apply_session, build_payload, plan_session, request_plan, run_cycle
from docplan.rules.load_rules import EngineConfig


class FixedPlanner:
    def __init__(self, actions):
        self.actions = actions
        self.seen = []

    def generate_plan(self, document_text):
        self.seen.append(document_text)
        return self.actions


def test_analyze_numbers_only_non_empty_paragraphs():
    doc = InMemoryDocument(["Intro text.", "", "Body text."])
    session = analyze(doc)
    assert len(session.snapshot) == 3
    assert len(session.mapping) == 2
    assert session.planner_text == 'Paragraph 1: "Intro text."\nParagraph 2: "Body text."'
    assert not session.applied


@pytest.mark.parametrize("paras,config", [
    (["", "  "], EngineConfig()),
    (["a", "b", "c"], EngineConfig(max_paragraphs=2)),
    (["one two three", "four"], EngineConfig(max_words=3)),
])
def test_analyze_refuses_documents_outside_limits(paras, config):
    with pytest.raises(DocumentSizeError):
        analyze(InMemoryDocument(paras), config)


def test_full_cycle_with_planner():
    doc = InMemoryDocument(["A", "B", "C", "D"])
    planner = FixedPlanner([
        {"action": "modify", "targetSequentialNumber": 1, "newContent": "A2"},
        {"action": "insert", "afterSequentialNumber": 4, "newContent": "E"},
        {"action": "delete", "targetSequentialNumber": 2},
        {"action": "move", "fromSequentialNumber": 3, "toAfterSequentialNumber": 9},
        {"action": "modify", "targetSequentialNumber": 4, "newContent": "D2"},
    ])
    session = run_cycle(doc, planner=planner)

    assert planner.seen[0].startswith('Paragraph 1: "A"')
    assert doc.texts == ["A2", "C", "D2", "E"]
    assert session.summary.applied_count == 4
    assert [i.plan_index for i in session.plan.dropped] == [3]


def test_dry_run_schedules_without_touching_document():
    doc = InMemoryDocument(["A", "B"])
    session = run_cycle(doc, '[{"action": "modify", "targetSequentialNumber": 2, "newContent": "X"}]', dry_run=True)
    assert doc.mutation_calls == 0
    assert session.report is None
    assert len(session.scheduled.modify) == 1


def test_run_cycle_needs_a_plan_source():
    with pytest.raises(ValueError):
        run_cycle(InMemoryDocument(["A"]))


def test_unsafe_plan_leaves_document_untouched():
    doc = InMemoryDocument(["A", "B"])
    with pytest.raises(UnsafePlanError):
        run_cycle(doc, [{"action": "delete", "targetSequentialNumber": 1}])
    assert doc.texts == ["A", "B"]


def test_session_is_applied_once():
    doc = InMemoryDocument(["A", "B"])
    session = analyze(doc)
    with pytest.raises(RuntimeError):
        apply_session(session, doc)
    plan_session(session, [{"action": "modify", "targetSequentialNumber": 1, "newContent": "X"}])
    apply_session(session, doc)
    with pytest.raises(RuntimeError):
        apply_session(session, doc)
    assert doc.texts == ["X", "B"]


def test_next_cycle_sees_new_numbering():
    doc = InMemoryDocument(["A", "B", "C"])
    first = analyze(doc)
    plan_session(first, [
        {"action": "insert", "afterSequentialNumber": 0, "newContent": "Z"},
        {"action": "modify", "targetSequentialNumber": 3, "newContent": "C2"},
    ])
    apply_session(first, doc)

    second = analyze(doc)
    assert second.generation != first.generation
    request_plan(second, FixedPlanner([{"action": "modify", "targetSequentialNumber": 1, "newContent": "Z2"}]))
    apply_session(second, doc)
    assert doc.texts == ["Z2", "A", "B", "C2"]


def test_build_payload_shape():
    doc = InMemoryDocument(["A", "", "B"])
    session = run_cycle(doc, [
        {"action": "modify", "targetSequentialNumber": 2, "newContent": "B2"},
        {"action": "explode"},
    ])
    payload = build_payload(session, artifacts={"original_docx": "in.docx"})
    assert payload["snapshot"] == {"generation": session.generation, "paragraphs": 3, "non_empty": 2}
    assert payload["summary"] == {"applied_count": 1, "failed_count": 0, "skipped_count": 0}
    assert payload["dropped"][0]["category"] == "structural"
    assert payload["results"][0]["action"]["targetSequentialNumber"] == 2
    assert payload["results"][0]["status"] == "applied"
