from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List
import json

from docplan.editops import ExecutionReport


@dataclass(frozen=True)
class ExecutionSummary:
    applied_count: int
    failed_count: int
    skipped_count: int

    @property
    def total(self) -> int:
        return self.applied_count + self.failed_count + self.skipped_count

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def summarize(report: ExecutionReport) -> ExecutionSummary:
    counts = {"applied": 0, "failed": 0, "skipped": 0}
    for r in report.results:
        counts[r.status] += 1
    return ExecutionSummary(
        applied_count=counts["applied"],
        failed_count=counts["failed"],
        skipped_count=counts["skipped"],
    )


def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_txt(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(payload))


def render_txt(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"Edit Plan Run: {payload.get('timestamp_utc')}")
    lines.append("")
    a = payload.get("artifacts", {}) or {}
    if a:
        lines.append("Artifacts")
        lines.append(f"- Original: {a.get('original_docx')}")
        lines.append(f"- Edited:   {a.get('edited_docx') or '[dry run]'}")
        lines.append("")
    snap = payload.get("snapshot", {}) or {}
    lines.append("Snapshot")
    lines.append(f"- Generation: {snap.get('generation')}")
    lines.append(f"- Paragraphs: {snap.get('paragraphs')} ({snap.get('non_empty')} non-empty)")
    lines.append("")
    s = payload.get("summary", {}) or {}
    lines.append("Summary")
    lines.append(f"- Applied: {s.get('applied_count', 0)}")
    lines.append(f"- Failed:  {s.get('failed_count', 0)}")
    lines.append(f"- Skipped: {s.get('skipped_count', 0)}")
    lines.append("")
    dropped = payload.get("dropped", []) or []
    if dropped:
        lines.append("Dropped by validation")
        for d in dropped[:60]:
            lines.append(f"- [{d['category'].upper()}] {d['message']}")
        if len(dropped) > 60:
            lines.append(f"... plus {len(dropped)-60} more.")
        lines.append("")
    results = payload.get("results", []) or []
    if results:
        lines.append("Actions (execution order)")
        for r in results:
            act = r["action"]
            line = f"- {r['status']}: {act['action']} (plan #{r['plan_index']})"
            if r.get("reason"):
                line += f" {r['reason']}"
            lines.append(line)
    return "\n".join(lines)
