"""
Analysis cycle

One cycle = snapshot -> mapping -> plan -> validate -> schedule -> execute.
All state for a cycle lives in an AnalysisSession owned by the caller; a
session is applied at most once and a fresh one is taken for the next cycle.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Union
import logging

from docplan.adapters.base import Planner
from docplan.apply import execute
from docplan.changelog import ExecutionSummary, summarize
from docplan.editops import EditPlan, ExecutionReport, issue_to_dict
from docplan.errors import DocumentSizeError
from docplan.ir import SnapshotResult, SequentialMapping
from docplan.rules.load_rules import EngineConfig
from docplan.schedule import ScheduledPlan, schedule
from docplan.snapshot import build_planner_text, map_sequential, snapshot, word_count
from docplan.validate import validate

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSession:
    snapshot: SnapshotResult
    mapping: SequentialMapping
    planner_text: str
    config: EngineConfig = field(default_factory=EngineConfig)
    plan: Optional[EditPlan] = None
    scheduled: Optional[ScheduledPlan] = None
    report: Optional[ExecutionReport] = None
    started_utc: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds"))

    @property
    def generation(self) -> str:
        return self.mapping.generation

    @property
    def applied(self) -> bool:
        return self.report is not None

    @property
    def summary(self) -> Optional[ExecutionSummary]:
        return summarize(self.report) if self.report is not None else None


def analyze(document, config: Optional[EngineConfig] = None) -> AnalysisSession:
    """
    Start a cycle: snapshot the document and number its paragraphs.

    Raises:
        DocumentAccessError: the document cannot be read
        DocumentSizeError: nothing to analyse, or too much for one cycle
    """
    config = config or EngineConfig()
    snap = snapshot(document, preview_chars=config.preview_chars)
    mapping = map_sequential(snap)

    if len(mapping) == 0:
        raise DocumentSizeError("Document has no content to analyze. Please add some text to the document.")
    if len(mapping) > config.max_paragraphs:
        raise DocumentSizeError(
            f"Document has too many paragraphs ({len(mapping)}). "
            f"Please use documents with at most {config.max_paragraphs} paragraphs."
        )
    words = word_count(snap)
    if words > config.max_words:
        raise DocumentSizeError(f"Document has {words} words; the limit is {config.max_words}.")

    logger.info(f"Document analysis: {len(snap)} total paragraphs, {len(mapping)} non-empty, {words} words")
    return AnalysisSession(
        snapshot=snap,
        mapping=mapping,
        planner_text=build_planner_text(snap),
        config=config,
    )


def plan_session(session: AnalysisSession, raw_plan: Union[str, Iterable[Any], EditPlan]) -> EditPlan:
    """Validate a raw plan against the session's mapping and keep it on the session."""
    session.plan = validate(raw_plan, session.mapping, session.config)
    return session.plan


def request_plan(session: AnalysisSession, planner: Planner) -> EditPlan:
    """Ask the planner for actions over the session's numbered text, then validate them."""
    raw = planner.generate_plan(session.planner_text)
    return plan_session(session, raw)


def apply_session(
    session: AnalysisSession,
    document,
    generator=None,
    should_continue: Optional[Callable[[], bool]] = None,
    progress_callback: Optional[Callable[[str, int, int], None]] = None,
) -> ExecutionReport:
    """
    Schedule and execute the session's plan against the live document.

    Raises:
        RuntimeError: the session has no plan, or was already applied
    """
    if session.plan is None:
        raise RuntimeError("Session has no validated plan")
    if session.applied:
        raise RuntimeError("Session was already applied; take a fresh snapshot for the next cycle")
    session.scheduled = schedule(session.plan)
    session.report = execute(
        session.scheduled,
        session.mapping,
        document,
        generator=generator,
        config=session.config,
        should_continue=should_continue,
        progress_callback=progress_callback,
    )
    s = session.summary
    logger.info(f"Applied {s.applied_count}/{s.total} actions ({s.failed_count} failed, {s.skipped_count} skipped)")
    return session.report


def run_cycle(
    document,
    raw_plan: Union[str, Iterable[Any], None] = None,
    *,
    planner=None,
    generator=None,
    config: Optional[EngineConfig] = None,
    dry_run: bool = False,
) -> AnalysisSession:
    """
    Run one full cycle. The plan comes from ``raw_plan`` when given,
    otherwise from ``planner``. With ``dry_run`` the plan is validated and
    scheduled but nothing is written to the document.
    """
    if raw_plan is None and planner is None:
        raise ValueError("run_cycle needs a raw_plan or a planner")
    session = analyze(document, config)
    if raw_plan is not None:
        plan_session(session, raw_plan)
    else:
        request_plan(session, planner)
    if dry_run:
        session.scheduled = schedule(session.plan)
        return session
    apply_session(session, document, generator=generator)
    return session


def build_payload(session: AnalysisSession, artifacts: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Changelog payload for one cycle (see changelog.write_json / write_txt)."""
    summary = session.summary or ExecutionSummary(0, 0, 0)
    return {
        "timestamp_utc": session.started_utc,
        "artifacts": artifacts or {},
        "snapshot": {
            "generation": session.generation,
            "paragraphs": len(session.snapshot),
            "non_empty": len(session.mapping),
        },
        "summary": summary.to_dict(),
        "dropped": [issue_to_dict(i) for i in (session.plan.dropped if session.plan else ())],
        "results": [r.to_dict() for r in session.report.results] if session.report else [],
    }
