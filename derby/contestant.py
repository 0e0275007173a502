import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from .category import Category

TRACK_POSITIONS = (1, 2, 3)


def new_contestant_id() -> str:
    return uuid.uuid4().hex


def empty_track_slots() -> dict[int, int]:
    return {position: 0 for position in TRACK_POSITIONS}


@dataclass
class FinishCounts:
    """How many times a contestant has finished 1st, 2nd and 3rd."""

    first: int = 0
    second: int = 0
    third: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"first": self.first, "second": self.second, "third": self.third}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "FinishCounts":
        # Older saves have no finish counters at all.
        data = data or {}
        return cls(
            first=int(data.get("first", 0)),
            second=int(data.get("second", 0)),
            third=int(data.get("third", 0)),
        )


@dataclass
class Contestant:
    """A registered racer with their category, points and race counters."""

    contestant_id: str
    name: str
    category: Category
    score: int = 0
    races: int = 0
    track_slots: dict[int, int] = field(default_factory=empty_track_slots)
    finishes: FinishCounts = field(default_factory=FinishCounts)

    def __str__(self) -> str:
        return f"{self.name} ({self.category})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "contestant_id": self.contestant_id,
            "name": self.name,
            "category": self.category.value,
            "score": self.score,
            "races": self.races,
            # JSON object keys are strings; from_dict turns them back into ints.
            "track_slots": {str(p): n for p, n in self.track_slots.items()},
            "finishes": self.finishes.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contestant":
        track_slots = empty_track_slots()
        for position, count in (data.get("track_slots") or {}).items():
            track_slots[int(position)] = int(count)
        return cls(
            contestant_id=str(data["contestant_id"]),
            name=data["name"],
            category=Category.parse(data["category"]),
            score=int(data.get("score", 0)),
            races=int(data.get("races", 0)),
            track_slots=track_slots,
            finishes=FinishCounts.from_dict(data.get("finishes")),
        )
