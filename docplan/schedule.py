from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Literal, Tuple
import logging

from docplan.editops import EditAction, EditPlan, Modify, Insert, Delete, Move, source_index

logger = logging.getLogger(__name__)

PhaseName = Literal["modify", "insert", "destructive"]


@dataclass(frozen=True)
class Phase:
    name: PhaseName
    actions: Tuple[EditAction, ...]

    def __len__(self) -> int:
        return len(self.actions)


@dataclass(frozen=True)
class ScheduledPlan:
    generation: str
    phases: Tuple[Phase, Phase, Phase]

    @property
    def modify(self) -> Phase:
        return self.phases[0]

    @property
    def insert(self) -> Phase:
        return self.phases[1]

    @property
    def destructive(self) -> Phase:
        return self.phases[2]

    def __iter__(self) -> Iterator[Phase]:
        return iter(self.phases)

    def ordered_actions(self) -> List[EditAction]:
        return [a for phase in self.phases for a in phase.actions]


def schedule(plan: EditPlan) -> ScheduledPlan:
    """
    Split a validated plan into Modify, Insert and Destructive phases.

    Modify and Insert keep plan order; neither shifts anything the other
    phases resolve, since every target goes through a stable id. Delete and
    Move share the last phase, highest source number first, so removing a
    paragraph never runs ahead of an action still waiting on a lower one.
    The sort is stable: duplicate sources keep plan order and the later one
    fails as a stale reference at execution.
    """
    modifies = tuple(a for a in plan.actions if isinstance(a, Modify))
    inserts = tuple(a for a in plan.actions if isinstance(a, Insert))
    destructive = tuple(sorted(
        (a for a in plan.actions if isinstance(a, (Delete, Move))),
        key=source_index,
        reverse=True,
    ))
    # sorted(reverse=True) keeps equal keys in original order
    logger.debug(
        f"Scheduled {len(modifies)} modify, {len(inserts)} insert, {len(destructive)} delete/move actions"
    )
    return ScheduledPlan(
        generation=plan.generation,
        phases=(
            Phase("modify", modifies),
            Phase("insert", inserts),
            Phase("destructive", destructive),
        ),
    )
