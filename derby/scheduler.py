import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from .category import Category
from .contestant import TRACK_POSITIONS, Contestant, empty_track_slots
from .heat import Heat, SlotAssignment, new_heat_id

RUNS_PER_POSITION = 2
HEAT_SIZE = len(TRACK_POSITIONS)


@dataclass
class ScheduleResult:
    """Heats generated for one category along with the counters they produced."""

    category: Category
    heats: list[Heat] = field(default_factory=list)
    track_slots: dict[str, dict[int, int]] = field(default_factory=dict)
    races: dict[str, int] = field(default_factory=dict)
    complete: bool = False
    # (contestant_id, track_position) for every assignment made past the quota.
    over_quota: list[tuple[str, int]] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return len(self.track_slots) < HEAT_SIZE

    def shortfall(self, runs_per_position: int = RUNS_PER_POSITION) -> dict[str, dict[int, int]]:
        """Runs still owed per contestant and track position, leaving out anyone who is done."""
        owed = {}
        for contestant_id, slots in self.track_slots.items():
            missing = {p: runs_per_position - n for p, n in slots.items() if n < runs_per_position}
            if missing:
                owed[contestant_id] = missing
        return owed


def _runs_needed(slots: Mapping[int, int], quota: int) -> dict[int, int]:
    return {p: max(0, quota - slots[p]) for p in TRACK_POSITIONS}


def _tight_ids(contestants: Sequence[Contestant], track_slots: Mapping[str, Mapping[int, int]], quota: int) -> set[str]:
    """
    Contestants whose remaining runs equal the number of heats left. Each remaining
    heat has to include them, so the next one must too or the schedule can't finish.
    """
    remaining = {c.contestant_id: sum(_runs_needed(track_slots[c.contestant_id], quota).values()) for c in contestants}
    heats_left = max(
        sum(_runs_needed(track_slots[c.contestant_id], quota)[p] for c in contestants)
        for p in TRACK_POSITIONS
    )
    return {cid for cid, runs in remaining.items() if runs and runs >= heats_left}


def build_heat(
    contestants: Sequence[Contestant],
    track_slots: Mapping[str, Mapping[int, int]],
    races: Mapping[str, int],
    quota: int = RUNS_PER_POSITION,
) -> tuple[Optional[dict[int, Contestant]], list[tuple[str, int]]]:
    """
    Choose the three contestants for the next heat.

    Each track position, in order, takes a contestant who still needs that position,
    preferring the fewest races so far and then roster order. The three choices are
    searched in that preference order and the first combination that includes every
    contestant who must run in every remaining heat wins. When no combination respects
    the quota, any position left empty is filled by the first unused contestant in
    roster order even if they are already at quota.

    Returns (slots, over_quota). slots is None when the heat can't be filled with three
    different contestants.
    """
    order = {c.contestant_id: index for index, c in enumerate(contestants)}
    ranked = sorted(contestants, key=lambda c: (races[c.contestant_id], order[c.contestant_id]))
    needs = {c.contestant_id: _runs_needed(track_slots[c.contestant_id], quota) for c in contestants}
    must_run = _tight_ids(contestants, track_slots, quota)

    def candidates(position: int, used: set[str]) -> list[Contestant]:
        return [c for c in ranked if c.contestant_id not in used and needs[c.contestant_id][position] > 0]

    for first in candidates(1, set()):
        for second in candidates(2, {first.contestant_id}):
            for third in candidates(3, {first.contestant_id, second.contestant_id}):
                if must_run <= {first.contestant_id, second.contestant_id, third.contestant_id}:
                    return {1: first, 2: second, 3: third}, []

    logging.warning(f"No heat respects the quota of {quota} per position, falling back to any free contestant")
    slots: dict[int, Optional[Contestant]] = {}
    used: set[str] = set()
    for position in TRACK_POSITIONS:
        available = candidates(position, used)
        slots[position] = available[0] if available else None
        if slots[position] is not None:
            used.add(slots[position].contestant_id)

    over_quota = []
    for position in TRACK_POSITIONS:
        if slots[position] is None:
            available = [c for c in contestants if c.contestant_id not in used]
            if available:
                slots[position] = available[0]
                used.add(available[0].contestant_id)
                over_quota.append((available[0].contestant_id, position))
                logging.warning(f"{available[0].name} assigned to track {position} past the quota")

    chosen = [slots[p] for p in TRACK_POSITIONS]
    if any(c is None for c in chosen) or len({c.contestant_id for c in chosen}) != HEAT_SIZE:
        logging.error(f"Could not fill a heat with {HEAT_SIZE} different contestants")
        return None, []
    return slots, over_quota


def generate_category_heats(
    contestants: Iterable[Contestant],
    category: Category,
    runs_per_position: int = RUNS_PER_POSITION,
) -> ScheduleResult:
    """
    Generates the heats for one category so that every contestant runs each track
    position runs_per_position times. Counters start from zero; the contestants passed
    in are not modified.
    """
    contestants = [c for c in contestants if c.category == category]
    result = ScheduleResult(
        category=category,
        track_slots={c.contestant_id: empty_track_slots() for c in contestants},
        races={c.contestant_id: 0 for c in contestants},
    )
    if len(contestants) < HEAT_SIZE:
        logging.info(f"Skipping {category}: {len(contestants)} contestants is not enough for a heat")
        return result

    heat_number = 1
    while True:
        needing = [
            c for c in contestants
            if any(_runs_needed(result.track_slots[c.contestant_id], runs_per_position).values())
        ]
        if len(needing) < HEAT_SIZE:
            break

        slots, over_quota = build_heat(contestants, result.track_slots, result.races, runs_per_position)
        if slots is None:
            break

        for position, contestant in slots.items():
            result.track_slots[contestant.contestant_id][position] += 1
            result.races[contestant.contestant_id] += 1
        result.over_quota.extend(over_quota)
        result.heats.append(
            Heat(
                heat_id=new_heat_id(),
                category=category,
                heat_number=heat_number,
                slots={p: SlotAssignment(c.contestant_id, c.name) for p, c in slots.items()},
            )
        )
        logging.debug(f"{category} heat {heat_number}: {[slots[p].name for p in TRACK_POSITIONS]}")
        heat_number += 1

    result.complete = not result.shortfall(runs_per_position)
    if result.complete:
        logging.info(f"Generated {len(result.heats)} heats for {category}")
    else:
        logging.error(
            f"Stopped {category} after {len(result.heats)} heats, still owed: {result.shortfall(runs_per_position)}"
        )
    return result


def interleave_heats(heats_by_category: Mapping[Category, Sequence[Heat]]) -> list[Heat]:
    """
    Merges the per-category heat lists round-robin in category priority order:
    heat 1 of each category, then heat 2 of each, and so on. A category drops out
    once its heats run out.
    """
    lists = [list(heats_by_category.get(category, [])) for category in Category]
    queue = []
    for index in range(max((len(heats) for heats in lists), default=0)):
        for heats in lists:
            if index < len(heats):
                queue.append(heats[index])
    return queue
