from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

ActionTag = Literal["modify", "insert", "delete", "move"]
Outcome = Literal["applied", "skipped", "failed"]

@dataclass(frozen=True)
class Modify:
    target_sequential_number: int
    instruction: str = ""
    new_content: Optional[str] = None
    reason: str = ""
    plan_index: int = -1         # position in the raw plan
    action: ActionTag = field(default="modify", init=False)

@dataclass(frozen=True)
class Insert:
    after_sequential_number: int   # 0 means before the first paragraph
    instruction: str = ""
    new_content: Optional[str] = None
    reason: str = ""
    plan_index: int = -1
    action: ActionTag = field(default="insert", init=False)

@dataclass(frozen=True)
class Delete:
    target_sequential_number: int
    reason: str = ""
    plan_index: int = -1
    action: ActionTag = field(default="delete", init=False)

@dataclass(frozen=True)
class Move:
    from_sequential_number: int
    to_after_sequential_number: int
    instruction: str = ""
    reason: str = ""
    plan_index: int = -1
    action: ActionTag = field(default="move", init=False)

EditAction = Union[Modify, Insert, Delete, Move]

def source_index(action: EditAction) -> int:
    """Sequential number an action reads from or removes."""
    if isinstance(action, (Modify, Delete)):
        return action.target_sequential_number
    if isinstance(action, Move):
        return action.from_sequential_number
    return action.after_sequential_number

def is_destructive(action: EditAction) -> bool:
    return isinstance(action, (Delete, Move))

def describe(action: EditAction) -> str:
    if isinstance(action, Modify):
        return f"modify #{action.target_sequential_number}"
    if isinstance(action, Insert):
        return f"insert after #{action.after_sequential_number}"
    if isinstance(action, Delete):
        return f"delete #{action.target_sequential_number}"
    return f"move #{action.from_sequential_number} after #{action.to_after_sequential_number}"

def to_wire(action: EditAction) -> Dict[str, Any]:
    """Serialize an action back to the plan document shape."""
    if isinstance(action, Modify):
        d: Dict[str, Any] = {"action": "modify", "targetSequentialNumber": action.target_sequential_number,
                             "instruction": action.instruction}
        if action.new_content is not None:
            d["newContent"] = action.new_content
    elif isinstance(action, Insert):
        d = {"action": "insert", "afterSequentialNumber": action.after_sequential_number,
             "instruction": action.instruction}
        if action.new_content is not None:
            d["newContent"] = action.new_content
    elif isinstance(action, Delete):
        d = {"action": "delete", "targetSequentialNumber": action.target_sequential_number}
    else:
        d = {"action": "move", "fromSequentialNumber": action.from_sequential_number,
             "toAfterSequentialNumber": action.to_after_sequential_number}
        if action.instruction:
            d["instruction"] = action.instruction
    if action.reason:
        d["reason"] = action.reason
    return d

@dataclass(frozen=True)
class ValidationIssue:
    plan_index: int
    category: str        # structural|bounds|conflict
    message: str

@dataclass(frozen=True)
class EditPlan:
    actions: Tuple[EditAction, ...]
    generation: str
    dropped: Tuple[ValidationIssue, ...] = ()

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self):
        return iter(self.actions)

@dataclass
class ActionResult:
    action: EditAction
    status: Outcome
    reason: str = ""
    new_stable_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": to_wire(self.action),
            "plan_index": self.action.plan_index,
            "status": self.status,
            "reason": self.reason,
            "new_stable_id": self.new_stable_id,
        }

@dataclass
class ExecutionReport:
    results: List[ActionResult] = field(default_factory=list)

    def record(self, action: EditAction, status: Outcome, reason: str = "", new_stable_id: Optional[str] = None) -> ActionResult:
        r = ActionResult(action=action, status=status, reason=reason, new_stable_id=new_stable_id)
        self.results.append(r)
        return r

    @property
    def applied(self) -> List[ActionResult]:
        return [r for r in self.results if r.status == "applied"]

    @property
    def failed(self) -> List[ActionResult]:
        return [r for r in self.results if r.status == "failed"]

    @property
    def skipped(self) -> List[ActionResult]:
        return [r for r in self.results if r.status == "skipped"]

    def to_dict(self) -> Dict[str, Any]:
        return {"results": [r.to_dict() for r in self.results]}

def issue_to_dict(issue: ValidationIssue) -> Dict[str, Any]:
    return asdict(issue)
