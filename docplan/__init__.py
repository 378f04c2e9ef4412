"""
Plan-based paragraph editing engine.

Snapshot a document, number its non-empty paragraphs, validate a planner's
batch of modify/insert/delete/move actions, and apply it in phases so every
action lands on the paragraph the planner meant.
"""
from docplan.apply import execute
from docplan.changelog import ExecutionSummary, summarize
from docplan.editops import Delete, EditAction, EditPlan, ExecutionReport, Insert, Modify, Move
from docplan.errors import (
    DocplanError,
    DocumentAccessError,
    DocumentSizeError,
    GenerationError,
    GenerationMismatchError,
    PlanParseError,
    StaleReferenceError,
    UnsafePlanError,
    ValidationError,
)
from docplan.pipeline import AnalysisSession, analyze, apply_session, run_cycle
from docplan.rules.load_rules import EngineConfig, load_engine_config
from docplan.schedule import schedule
from docplan.snapshot import build_planner_text, map_sequential, snapshot
from docplan.validate import parse_plan_document, validate

__all__ = [
    "AnalysisSession",
    "Delete",
    "DocplanError",
    "DocumentAccessError",
    "DocumentSizeError",
    "EditAction",
    "EditPlan",
    "EngineConfig",
    "ExecutionReport",
    "ExecutionSummary",
    "GenerationError",
    "GenerationMismatchError",
    "Insert",
    "Modify",
    "Move",
    "PlanParseError",
    "StaleReferenceError",
    "UnsafePlanError",
    "ValidationError",
    "analyze",
    "apply_session",
    "build_planner_text",
    "execute",
    "load_engine_config",
    "map_sequential",
    "parse_plan_document",
    "run_cycle",
    "schedule",
    "snapshot",
    "summarize",
    "validate",
]
