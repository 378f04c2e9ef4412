"""
Plan Validator

Turns the planner's loosely-shaped action objects into a typed EditPlan.

Checks run in classes (structural, bounds, conflict); an action that fails
one class is dropped and never reaches the next. A single bad suggestion never
blocks the rest of the batch. The aggregate safety check runs last and is the
only one that rejects the whole plan.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import json
import logging
import re

from docplan.editops import (
    EditAction,
    EditPlan,
    Modify,
    Insert,
    Delete,
    Move,
    ValidationIssue,
    is_destructive,
    source_index,
    to_wire,
)
from docplan.errors import (
    GenerationMismatchError,
    PlanParseError,
    UnsafePlanError,
    ValidationError,
)
from docplan.ir import SequentialMapping
from docplan.rules.load_rules import EngineConfig

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("modify", "insert", "delete", "move")

# Wire spellings accepted for each logical field, first match wins.
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "target": ("targetSequentialNumber", "target_sequential_number", "sequentialNumber", "sequential_number"),
    "after": ("afterSequentialNumber", "after_sequential_number"),
    "from": ("fromSequentialNumber", "from_sequential_number", "sequentialNumber", "sequential_number"),
    "to_after": ("toAfterSequentialNumber", "to_after_sequential_number"),
    "instruction": ("instruction",),
    "new_content": ("newContent", "new_content"),
    "reason": ("reason",),
}

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL | re.IGNORECASE)


def parse_plan_document(text: str) -> List[Any]:
    """
    Parse a serialized plan into a list of raw action objects.

    Accepts a bare JSON array, the same wrapped in a Markdown code fence, or
    an object holding the array under ``actions`` or ``suggestions``.

    Raises:
        PlanParseError: if no action list can be recovered
    """
    if not isinstance(text, str) or not text.strip():
        raise PlanParseError("Planner returned an empty response")
    cleaned = text.strip()
    m = _FENCE_RE.match(cleaned)
    if m:
        cleaned = m.group(1).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise PlanParseError(f"Planner returned invalid JSON: {e}") from e

    if isinstance(parsed, dict):
        for key in ("actions", "suggestions", "plan"):
            if isinstance(parsed.get(key), list):
                parsed = parsed[key]
                break
    if not isinstance(parsed, list):
        raise PlanParseError("Plan document must be a JSON array of actions")
    return parsed


def _get(raw: Dict[str, Any], key: str) -> Any:
    for name in FIELD_ALIASES[key]:
        if raw.get(name) is not None:
            return raw[name]
    return None


def _int_field(raw: Dict[str, Any], key: str, label: str, plan_index: int) -> int:
    value = _get(raw, key)
    if value is None:
        raise ValidationError(f"Action {plan_index} missing required field: {label}", plan_index=plan_index)
    # bool is an int subclass; "true" is never a paragraph number
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Action {plan_index} {label} must be an integer", plan_index=plan_index)
    if value < 0:
        raise ValidationError(f"Action {plan_index} {label} must be non-negative", plan_index=plan_index)
    return value


def _text_field(raw: Dict[str, Any], key: str, label: str, plan_index: int) -> Optional[str]:
    value = _get(raw, key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Action {plan_index} field '{label}' must be a string", plan_index=plan_index)
    return value


def _content_fields(raw: Dict[str, Any], plan_index: int) -> Tuple[str, Optional[str]]:
    instruction = _text_field(raw, "instruction", "instruction", plan_index) or ""
    new_content = _text_field(raw, "new_content", "newContent", plan_index)
    if new_content is not None and not new_content.strip():
        new_content = None
    if not instruction.strip() and new_content is None:
        raise ValidationError(
            f"Action {plan_index} needs a non-empty 'instruction' or 'newContent'", plan_index=plan_index
        )
    return instruction, new_content


def parse_action(raw: Any, plan_index: int) -> EditAction:
    """
    Structural check of one raw action object.

    Raises:
        ValidationError: if the tag is unknown or a required field is missing
    """
    if isinstance(raw, (Modify, Insert, Delete, Move)):
        raw = to_wire(raw)
    if not isinstance(raw, dict):
        raise ValidationError(f"Action {plan_index} is not a valid object", plan_index=plan_index)

    tag = raw.get("action")
    if not isinstance(tag, str) or not tag.strip():
        raise ValidationError(f"Action {plan_index} missing required 'action' field", plan_index=plan_index)
    tag = tag.strip().lower()
    if tag not in VALID_ACTIONS:
        raise ValidationError(f"Action {plan_index} has invalid action type: {tag}", plan_index=plan_index)

    reason = _text_field(raw, "reason", "reason", plan_index) or ""

    if tag == "modify":
        target = _int_field(raw, "target", "targetSequentialNumber", plan_index)
        instruction, new_content = _content_fields(raw, plan_index)
        return Modify(target_sequential_number=target, instruction=instruction,
                      new_content=new_content, reason=reason, plan_index=plan_index)

    if tag == "insert":
        after = _int_field(raw, "after", "afterSequentialNumber", plan_index)
        instruction, new_content = _content_fields(raw, plan_index)
        return Insert(after_sequential_number=after, instruction=instruction,
                      new_content=new_content, reason=reason, plan_index=plan_index)

    if tag == "delete":
        target = _int_field(raw, "target", "targetSequentialNumber", plan_index)
        return Delete(target_sequential_number=target, reason=reason, plan_index=plan_index)

    src = _int_field(raw, "from", "fromSequentialNumber", plan_index)
    dest = _int_field(raw, "to_after", "toAfterSequentialNumber", plan_index)
    if src == dest:
        raise ValidationError(f"Action {plan_index} moves paragraph {src} after itself", plan_index=plan_index)
    instruction = _text_field(raw, "instruction", "instruction", plan_index) or ""
    return Move(from_sequential_number=src, to_after_sequential_number=dest,
                instruction=instruction, reason=reason, plan_index=plan_index)


def _check_bounds(action: EditAction, mapping: SequentialMapping) -> Optional[str]:
    if isinstance(action, Insert):
        if action.after_sequential_number == 0 or action.after_sequential_number in mapping:
            return None
        return (f"Insert afterSequentialNumber {action.after_sequential_number} "
                f"exceeds document bounds (max: {mapping.max_number})")
    if isinstance(action, Move):
        if action.from_sequential_number not in mapping:
            return (f"Move fromSequentialNumber {action.from_sequential_number} "
                    f"exceeds document bounds (max: {mapping.max_number})")
        if action.to_after_sequential_number not in mapping:
            return (f"Move toAfterSequentialNumber {action.to_after_sequential_number} "
                    f"exceeds document bounds (max: {mapping.max_number})")
        return None
    n = source_index(action)
    if n not in mapping:
        return f"{action.action.capitalize()} targetSequentialNumber {n} exceeds document bounds (max: {mapping.max_number})"
    return None


def _cyclic_moves(moves: List[Move]) -> set:
    """Plan indices of moves whose destinations chain back to their own source."""
    edges = {m.from_sequential_number: m.to_after_sequential_number for m in moves}
    in_cycle = set()
    for m in moves:
        cur = m.to_after_sequential_number
        visited = set()
        while cur in edges and cur not in visited:
            if cur == m.from_sequential_number:
                in_cycle.add(m.plan_index)
                break
            visited.add(cur)
            cur = edges[cur]
    return in_cycle


def _check_conflicts(actions: List[EditAction]) -> Tuple[List[EditAction], List[ValidationIssue]]:
    issues: List[ValidationIssue] = []
    kept: List[EditAction] = []
    claimed = {}
    for a in actions:
        if not is_destructive(a):
            kept.append(a)
            continue
        src = source_index(a)
        if src in claimed:
            issues.append(ValidationIssue(
                a.plan_index, "conflict",
                f"Action {a.plan_index} removes paragraph {src}, already removed by action {claimed[src]}",
            ))
            continue
        claimed[src] = a.plan_index
        kept.append(a)

    deleted = {a.target_sequential_number for a in kept if isinstance(a, Delete)}
    moves = [a for a in kept if isinstance(a, Move)]
    cyclic = _cyclic_moves(moves)
    result: List[EditAction] = []
    for a in kept:
        if isinstance(a, Move):
            if a.plan_index in cyclic:
                issues.append(ValidationIssue(
                    a.plan_index, "conflict",
                    f"Action {a.plan_index} is part of a cyclic move chain",
                ))
                continue
            if a.to_after_sequential_number in deleted:
                issues.append(ValidationIssue(
                    a.plan_index, "conflict",
                    f"Action {a.plan_index} moves after paragraph {a.to_after_sequential_number}, which the plan deletes",
                ))
                continue
        result.append(a)
    return result, issues


def check_limits(actions: List[EditAction], config: EngineConfig) -> None:
    """
    Aggregate safety limits for a whole plan.

    Raises:
        UnsafePlanError: too many actions, or too large a share of deletions
    """
    total = len(actions)
    if total > config.max_actions:
        raise UnsafePlanError(f"Too many actions: {total} exceeds limit of {config.max_actions}")
    if total == 0:
        return
    deletes = sum(1 for a in actions if isinstance(a, Delete))
    ratio = deletes / total
    if ratio > config.max_deletion_ratio:
        raise UnsafePlanError(
            f"Too many deletions: {ratio:.0%} of {total} actions exceeds limit of {config.max_deletion_ratio:.0%}"
        )


def validate(
    raw_plan: Union[str, EditPlan, Iterable[Any]],
    mapping: SequentialMapping,
    config: Optional[EngineConfig] = None,
) -> EditPlan:
    """
    Validate a raw plan against the mapping it was produced from.

    Args:
        raw_plan: serialized plan text, a list of raw action objects, or an
            already validated EditPlan (re-validation yields the same result)
        mapping: sequential mapping of the snapshot the planner saw
        config: safety limits (defaults to EngineConfig())

    Returns:
        EditPlan with the surviving actions in plan order and the dropped
        actions recorded as ValidationIssue entries

    Raises:
        PlanParseError: serialized plan is not a JSON array
        GenerationMismatchError: EditPlan validated against another snapshot
        UnsafePlanError: aggregate safety limits exceeded
    """
    config = config or EngineConfig()

    carried: Tuple[ValidationIssue, ...] = ()
    if isinstance(raw_plan, EditPlan):
        if raw_plan.generation != mapping.generation:
            raise GenerationMismatchError(
                f"Plan from snapshot {raw_plan.generation} cannot be applied to snapshot {mapping.generation}"
            )
        carried = raw_plan.dropped
        items: List[Tuple[int, Any]] = [(a.plan_index, a) for a in raw_plan.actions]
    else:
        if isinstance(raw_plan, str):
            raw_plan = parse_plan_document(raw_plan)
        items = list(enumerate(raw_plan))

    issues: List[ValidationIssue] = []

    # 1. structural
    parsed: List[EditAction] = []
    for plan_index, raw in items:
        try:
            parsed.append(parse_action(raw, plan_index))
        except ValidationError as e:
            issues.append(ValidationIssue(plan_index, "structural", str(e)))

    # 2. bounds
    in_bounds: List[EditAction] = []
    for a in parsed:
        problem = _check_bounds(a, mapping)
        if problem:
            issues.append(ValidationIssue(a.plan_index, "bounds", f"Action {a.plan_index}: {problem}"))
        else:
            in_bounds.append(a)

    # 3. conflicts between surviving actions
    survivors, conflict_issues = _check_conflicts(in_bounds)
    issues.extend(conflict_issues)

    for issue in issues:
        logger.warning(f"Dropped plan action ({issue.category}): {issue.message}")

    # 4. aggregate safety over what would actually run
    check_limits(survivors, config)

    logger.info(f"Validation passed: {len(survivors)} of {len(items)} actions kept for snapshot {mapping.generation}")
    return EditPlan(
        actions=tuple(survivors),
        generation=mapping.generation,
        dropped=carried + tuple(issues),
    )
