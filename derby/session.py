import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .bracket import BRACKET_SIZE, Bracket, BracketRound
from .category import Category
from .contestant import Contestant, empty_track_slots, new_contestant_id
from .errors import PreconditionError
from .heat import FinishOrder, Heat, ResultEntry
from .ranking import advancing_ids, leaderboard, select_finalists
from .scheduler import HEAT_SIZE, RUNS_PER_POSITION, ScheduleResult, generate_category_heats, interleave_heats

TEST_DATA_PER_CATEGORY = 5
TEST_DATA_NAMES = [
    "James", "Noah", "Oliver", "Elijah", "William", "Benjamin", "Lucas", "Henry",
    "Alexander", "Mason", "Michael", "Ethan", "Daniel", "Jacob", "Logan",
]


@dataclass
class Championship:
    active: bool = False
    # Snapshots taken when the championship starts, best-first.
    finalists: list[Contestant] = field(default_factory=list)
    bracket: Bracket = field(default_factory=Bracket)

    def finalist(self, contestant_id: Optional[str]) -> Optional[Contestant]:
        for contestant in self.finalists:
            if contestant.contestant_id == contestant_id:
                return contestant
        return None

    @property
    def champion(self) -> Optional[Contestant]:
        return self.finalist(self.bracket.champion)

    def to_dict(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "finalists": [c.to_dict() for c in self.finalists],
            "bracket": self.bracket.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Championship":
        data = data or {}
        return cls(
            active=bool(data.get("active", False)),
            finalists=[Contestant.from_dict(c) for c in data.get("finalists") or []],
            bracket=Bracket.from_dict(data.get("bracket")),
        )


class DerbySession:
    """
    Holds the whole state of a derby: the roster, the heat queue and its cursor,
    the results log and the championship. Every command either completes or raises
    PreconditionError before touching any state.
    """

    def __init__(self, *, runs_per_position: int = RUNS_PER_POSITION):
        self.runs_per_position = runs_per_position
        self.contestants: list[Contestant] = []
        self.heats: list[Heat] = []
        self.current_heat_index: int = 0
        self.results: list[ResultEntry] = []
        self.championship = Championship()

    # Roster

    def get_contestant(self, contestant_id: str) -> Optional[Contestant]:
        for contestant in self.contestants:
            if contestant.contestant_id == contestant_id:
                return contestant
        return None

    def add_contestant(self, name: str, category: Union[Category, str]) -> Contestant:
        if not isinstance(name, str) or not name.strip():
            raise PreconditionError("A contestant needs a name")
        name = name.strip()
        if not isinstance(category, (Category, str)):
            raise PreconditionError(f"Unknown category: {category!r}")
        if not isinstance(category, Category):
            try:
                category = Category.parse(category)
            except ValueError as e:
                raise PreconditionError(str(e)) from e

        contestant = Contestant(contestant_id=new_contestant_id(), name=name, category=category)
        self.contestants.append(contestant)
        logging.info(f"Added contestant {contestant}")
        return contestant

    def remove_contestant(self, contestant_id: str) -> Contestant:
        contestant = self.get_contestant(contestant_id)
        if contestant is None:
            raise PreconditionError(f"No contestant with id {contestant_id}")
        self.contestants.remove(contestant)
        logging.info(f"Removed contestant {contestant}")
        return contestant

    def load_test_data(self, rng: Optional[random.Random] = None) -> None:
        """Replaces the roster with a handful of randomly named contestants in every category."""
        rng = rng or random.Random()
        self.contestants = []
        for category in Category:
            for _ in range(TEST_DATA_PER_CATEGORY):
                self.add_contestant(rng.choice(TEST_DATA_NAMES), category)
        logging.info(f"Loaded {len(self.contestants)} test contestants")

    def clear(self) -> None:
        self.contestants = []
        self.heats = []
        self.current_heat_index = 0
        self.results = []
        self.championship = Championship()
        logging.info("Cleared all derby data")

    # Heats

    def generate_heats(self) -> dict[Category, ScheduleResult]:
        """
        Builds the heat queue for every category and interleaves it. Categories with
        fewer than three contestants get no heats. Scores and the results log are kept.
        """
        if len(self.contestants) < HEAT_SIZE:
            raise PreconditionError(f"Need at least {HEAT_SIZE} contestants to generate heats!")

        schedules = {
            category: generate_category_heats(self.contestants, category, self.runs_per_position)
            for category in Category
        }
        for contestant in self.contestants:
            schedule = schedules[contestant.category]
            contestant.track_slots = dict(schedule.track_slots.get(contestant.contestant_id, empty_track_slots()))
            contestant.races = schedule.races.get(contestant.contestant_id, 0)

        self.heats = interleave_heats({category: s.heats for category, s in schedules.items()})
        self.current_heat_index = 0
        logging.info(f"Generated {len(self.heats)} heats")
        return schedules

    def current_heat(self) -> Optional[Heat]:
        if self.current_heat_index < len(self.heats):
            return self.heats[self.current_heat_index]
        return None

    def current_category(self) -> Optional[Category]:
        heat = self.current_heat()
        return heat.category if heat else None

    def upcoming_heats(self) -> list[Heat]:
        """Heats after the one currently being raced."""
        return self.heats[self.current_heat_index + 1:]

    def record_result(self, finish_order: FinishOrder) -> ResultEntry:
        """
        Scores the current heat, marks it completed and moves on to the next one.
        Points go to the roster entries found by id, not to the names stored in the heat.
        """
        heat = self.current_heat()
        if heat is None:
            raise PreconditionError("There is no heat waiting for a result")

        for place, (position, points) in zip(("first", "second", "third"), finish_order.placings()):
            contestant_id = heat.slots[position].contestant_id
            contestant = self.get_contestant(contestant_id)
            if contestant is None:
                logging.warning(f"{heat.slots[position].name} is no longer registered, no points awarded")
                continue
            contestant.score += points
            setattr(contestant.finishes, place, getattr(contestant.finishes, place) + 1)

        heat.completed = True
        heat.result = finish_order
        entry = ResultEntry(
            heat_index=self.current_heat_index,
            first=heat.slots[finish_order.first].name,
            second=heat.slots[finish_order.second].name,
            third=heat.slots[finish_order.third].name,
        )
        self.results.append(entry)
        self.current_heat_index += 1
        logging.info(f"{heat} result: 1st {entry.first}, 2nd {entry.second}, 3rd {entry.third}")
        return entry

    # Standings

    def leaderboard(self, category: Optional[Category] = None):
        return leaderboard(self.contestants, category)

    def advancing_ids(self):
        return advancing_ids(self.contestants)

    # Championship

    def start_championship(self) -> Championship:
        finalists = select_finalists(self.contestants)
        if len(finalists) < BRACKET_SIZE:
            raise PreconditionError(
                f"Need {BRACKET_SIZE} finalists to start the championship, only {len(finalists)} available"
            )

        bracket = Bracket.seeded([c.contestant_id for c in finalists])
        if self.championship.active:
            logging.info("Restarting championship from current standings")
        self.championship = Championship(active=True, finalists=copy.deepcopy(finalists), bracket=bracket)
        logging.info("Championship started")
        return self.championship

    def select_bracket_winner(
        self, bracket_round: Union[BracketRound, str], matchup_index: int, racer_slot: int
    ) -> Optional[Contestant]:
        """Returns the winner, or None when that matchup was already decided."""
        if not self.championship.active:
            raise PreconditionError("The championship has not started")
        if not isinstance(bracket_round, BracketRound):
            try:
                bracket_round = BracketRound(bracket_round)
            except ValueError:
                raise PreconditionError(f"Unknown bracket round: {bracket_round!r}") from None

        winner_id = self.championship.bracket.select_winner(bracket_round, matchup_index, racer_slot)
        if winner_id is None:
            logging.info(f"{bracket_round} matchup {matchup_index + 1} already decided")
            return None
        return self.championship.finalist(winner_id)

    def display_name(self, contestant_id: Optional[str]) -> str:
        contestant = self.championship.finalist(contestant_id) or (
            self.get_contestant(contestant_id) if contestant_id else None
        )
        return contestant.name if contestant else "TBD"

    # Snapshot

    def to_dict(self) -> dict[str, Any]:
        return {
            "contestants": [c.to_dict() for c in self.contestants],
            "heats": [h.to_dict() for h in self.heats],
            "current_heat_index": self.current_heat_index,
            "results": [r.to_dict() for r in self.results],
            "championship": self.championship.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]], *, runs_per_position: int = RUNS_PER_POSITION) -> "DerbySession":
        """Rebuilds a session from a snapshot. Fields missing from older snapshots get their defaults."""
        session = cls(runs_per_position=runs_per_position)
        data = data or {}
        session.contestants = [Contestant.from_dict(c) for c in data.get("contestants") or []]
        session.heats = [Heat.from_dict(h) for h in data.get("heats") or []]
        session.current_heat_index = min(max(int(data.get("current_heat_index") or 0), 0), len(session.heats))
        session.results = [ResultEntry.from_dict(r) for r in data.get("results") or []]
        session.championship = Championship.from_dict(data.get("championship"))
        return session
