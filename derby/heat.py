import uuid
from dataclasses import dataclass
from typing import Any, Optional

from .category import Category
from .contestant import TRACK_POSITIONS

# Points awarded for 1st, 2nd and 3rd place.
POINTS_FOR_FIRST = 3
POINTS_FOR_SECOND = 2
POINTS_FOR_THIRD = 1


def new_heat_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class SlotAssignment:
    """Which contestant runs in a track position, with their name at scheduling time."""

    contestant_id: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"contestant_id": self.contestant_id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SlotAssignment":
        return cls(contestant_id=str(data["contestant_id"]), name=data["name"])


@dataclass(frozen=True)
class FinishOrder:
    """The track positions that finished 1st, 2nd and 3rd."""

    first: int
    second: int
    third: int

    def __post_init__(self):
        positions = (self.first, self.second, self.third)
        if any(p not in TRACK_POSITIONS for p in positions):
            raise ValueError(f"Track positions must be one of {TRACK_POSITIONS}, got {positions}")
        if len(set(positions)) != 3:
            raise ValueError(f"Each track position can only finish once, got {positions}")

    @classmethod
    def from_first_and_second(cls, first: int, second: int) -> "FinishOrder":
        """Build a finish order when only 1st and 2nd were picked; 3rd is whoever is left."""
        remaining = [p for p in TRACK_POSITIONS if p not in (first, second)]
        if len(remaining) != 1:
            raise ValueError(f"Cannot work out 3rd place from first={first}, second={second}")
        return cls(first=first, second=second, third=remaining[0])

    def placings(self) -> list[tuple[int, int]]:
        """Returns (track_position, points) for 1st, 2nd and 3rd in that order."""
        return [
            (self.first, POINTS_FOR_FIRST),
            (self.second, POINTS_FOR_SECOND),
            (self.third, POINTS_FOR_THIRD),
        ]

    def to_dict(self) -> dict[str, int]:
        return {"first": self.first, "second": self.second, "third": self.third}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FinishOrder":
        return cls(first=int(data["first"]), second=int(data["second"]), third=int(data["third"]))


@dataclass
class Heat:
    """One race of three contestants from the same category."""

    heat_id: str
    category: Category
    heat_number: int
    slots: dict[int, SlotAssignment]
    completed: bool = False
    result: Optional[FinishOrder] = None

    def __post_init__(self):
        if sorted(self.slots) != list(TRACK_POSITIONS):
            raise ValueError(f"A heat needs exactly track positions {TRACK_POSITIONS}")
        if len({slot.contestant_id for slot in self.slots.values()}) != len(TRACK_POSITIONS):
            raise ValueError("A contestant cannot run in two track positions of the same heat")

    def __str__(self) -> str:
        return f"{self.category} Heat {self.heat_number}"

    def contestant_ids(self) -> list[str]:
        return [self.slots[p].contestant_id for p in TRACK_POSITIONS]

    def to_dict(self) -> dict[str, Any]:
        return {
            "heat_id": self.heat_id,
            "category": self.category.value,
            "heat_number": self.heat_number,
            "slots": {str(p): slot.to_dict() for p, slot in self.slots.items()},
            "completed": self.completed,
            "result": self.result.to_dict() if self.result else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Heat":
        result = data.get("result")
        return cls(
            heat_id=str(data["heat_id"]),
            category=Category.parse(data["category"]),
            heat_number=int(data["heat_number"]),
            slots={int(p): SlotAssignment.from_dict(s) for p, s in data["slots"].items()},
            completed=bool(data.get("completed", False)),
            result=FinishOrder.from_dict(result) if result else None,
        )


@dataclass(frozen=True)
class ResultEntry:
    """A line in the results log: the queue index of the heat and who placed where."""

    heat_index: int
    first: str
    second: str
    third: str

    def to_dict(self) -> dict[str, Any]:
        return {"heat": self.heat_index, "first": self.first, "second": self.second, "third": self.third}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResultEntry":
        return cls(
            heat_index=int(data["heat"]),
            first=data["first"],
            second=data["second"],
            third=data["third"],
        )
