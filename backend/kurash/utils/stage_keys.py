"""
Stage keys - structured identifiers for match slots.

A StageKey renders to the persisted stage_id string and parses back from it:

    group        "Pool A-1.2"
    knockout     "knockout-1.2-match3"   (pool 1, round 2, running match index 3)
    final        "final"
    third_place  "third-place-Pool B"

Rules that depend on the kind of stage (semifinal side effects, drift checks)
read the structured fields, never substrings of stage_id.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from kurash.services.errors import BracketValidationError

POOL_NAMES = {1: "Pool A", 2: "Pool B"}
POOL_NUMBERS = {name: number for number, name in POOL_NAMES.items()}

FINAL_STAGE_ID = "final"

_GROUP_RE = re.compile(r"^Pool ([AB])-(\d+)\.(\d+)$")
_KNOCKOUT_RE = re.compile(r"^knockout-(\d+)\.(\d+)-match(\d+)$")
_THIRD_PLACE_RE = re.compile(r"^third-place-Pool ([AB])$")


class StageKind(str, Enum):
    group = "group"
    knockout = "knockout"
    final = "final"
    third_place = "third_place"


def pool_number_for(pool_name: str) -> int:
    """Map "Pool A"/"Pool B" to 1/2."""
    try:
        return POOL_NUMBERS[pool_name]
    except KeyError:
        raise BracketValidationError(f"Unknown pool '{pool_name}'")


def pool_name_for(pool_number: int) -> str:
    try:
        return POOL_NAMES[pool_number]
    except KeyError:
        raise BracketValidationError(f"Unknown pool number {pool_number}")


@dataclass(frozen=True)
class StageKey:
    sub_event_id: int
    stage_kind: StageKind
    pool_number: Optional[int] = None
    round_index: Optional[int] = None
    match_index: Optional[int] = None
    group_name: Optional[str] = None

    @property
    def pool_name(self) -> Optional[str]:
        if self.pool_number is None:
            return None
        return POOL_NAMES[self.pool_number]

    @property
    def stage_id(self) -> str:
        if self.stage_kind == StageKind.group:
            return f"{self.pool_name}-{self.group_name}"
        if self.stage_kind == StageKind.knockout:
            return f"knockout-{self.pool_number}.{self.round_index}-match{self.match_index}"
        if self.stage_kind == StageKind.third_place:
            return f"third-place-{self.pool_name}"
        return FINAL_STAGE_ID


def group_stage(sub_event_id: int, pool_number: int, group_index: int) -> StageKey:
    return StageKey(
        sub_event_id=sub_event_id,
        stage_kind=StageKind.group,
        pool_number=pool_number,
        match_index=group_index,
        group_name=f"{pool_number}.{group_index}",
    )


def knockout_stage(sub_event_id: int, pool_number: int, round_index: int, match_index: int) -> StageKey:
    return StageKey(
        sub_event_id=sub_event_id,
        stage_kind=StageKind.knockout,
        pool_number=pool_number,
        round_index=round_index,
        match_index=match_index,
    )


def final_stage(sub_event_id: int) -> StageKey:
    return StageKey(sub_event_id=sub_event_id, stage_kind=StageKind.final)


def third_place_stage(sub_event_id: int, pool_number: int) -> StageKey:
    return StageKey(sub_event_id=sub_event_id, stage_kind=StageKind.third_place, pool_number=pool_number)


def parse_stage_id(sub_event_id: int, stage_id: str) -> StageKey:
    """
    Parse a persisted stage_id back into a StageKey.

    Raises:
        BracketValidationError: if stage_id matches none of the known shapes
    """
    if stage_id == FINAL_STAGE_ID:
        return final_stage(sub_event_id)

    m = _GROUP_RE.match(stage_id)
    if m:
        pool_number = pool_number_for(f"Pool {m.group(1)}")
        if int(m.group(2)) != pool_number:
            raise BracketValidationError(f"Group '{m.group(2)}.{m.group(3)}' does not belong to Pool {m.group(1)}")
        return group_stage(sub_event_id, pool_number, int(m.group(3)))

    m = _KNOCKOUT_RE.match(stage_id)
    if m:
        pool_number = int(m.group(1))
        pool_name_for(pool_number)
        return knockout_stage(sub_event_id, pool_number, int(m.group(2)), int(m.group(3)))

    m = _THIRD_PLACE_RE.match(stage_id)
    if m:
        return third_place_stage(sub_event_id, pool_number_for(f"Pool {m.group(1)}"))

    raise BracketValidationError(f"Unrecognised stage id '{stage_id}'")
