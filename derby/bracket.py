import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence

from .errors import PreconditionError

BRACKET_SIZE = 8

# Finalist indexes (best-first) that meet in each quarterfinal: 1v8, 4v5, 3v6, 2v7.
QUARTERFINAL_SEEDING = [(0, 7), (3, 4), (2, 5), (1, 6)]


class BracketRound(Enum):
    QUARTERFINALS = "quarterfinals"
    SEMIFINALS = "semifinals"
    FINALS = "finals"

    def __str__(self):
        return self.value.capitalize()


@dataclass
class Matchup:
    """Two contestant ids facing each other; either may still be waiting on an earlier round."""

    racer1: Optional[str] = None
    racer2: Optional[str] = None
    winner: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.racer1 is not None and self.racer2 is not None

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    def racer(self, slot: int) -> Optional[str]:
        if slot == 1:
            return self.racer1
        if slot == 2:
            return self.racer2
        raise PreconditionError(f"Racer slot must be 1 or 2, got {slot}")

    def place(self, slot: int, contestant_id: str) -> None:
        if slot == 1:
            self.racer1 = contestant_id
        else:
            self.racer2 = contestant_id

    def to_dict(self) -> dict[str, Any]:
        return {"racer1": self.racer1, "racer2": self.racer2, "winner": self.winner}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Matchup":
        data = data or {}
        return cls(racer1=data.get("racer1"), racer2=data.get("racer2"), winner=data.get("winner"))


def _empty_round(size: int) -> list[Matchup]:
    return [Matchup() for _ in range(size)]


@dataclass
class Bracket:
    """
    Single elimination bracket for the eight finalists.

    Quarterfinal i feeds semifinal i // 2 (racer1 for even i, racer2 for odd i),
    semifinal j feeds racer1 (j == 0) or racer2 (j == 1) of the final, and the
    final's winner is the champion. A winner, once picked, is never replaced.
    """

    quarterfinals: list[Matchup] = field(default_factory=lambda: _empty_round(4))
    semifinals: list[Matchup] = field(default_factory=lambda: _empty_round(2))
    finals: Matchup = field(default_factory=Matchup)
    champion: Optional[str] = None

    @classmethod
    def seeded(cls, finalist_ids: Sequence[str]) -> "Bracket":
        """Builds a fresh bracket from finalist ids ordered best-first."""
        if len(finalist_ids) != BRACKET_SIZE:
            raise PreconditionError(f"A bracket needs {BRACKET_SIZE} finalists, got {len(finalist_ids)}")
        if len(set(finalist_ids)) != BRACKET_SIZE:
            raise PreconditionError("Finalists must be different contestants")
        bracket = cls()
        bracket.quarterfinals = [
            Matchup(racer1=finalist_ids[high], racer2=finalist_ids[low]) for high, low in QUARTERFINAL_SEEDING
        ]
        return bracket

    def matchups(self, bracket_round: BracketRound) -> list[Matchup]:
        if bracket_round == BracketRound.QUARTERFINALS:
            return self.quarterfinals
        if bracket_round == BracketRound.SEMIFINALS:
            return self.semifinals
        return [self.finals]

    def matchup(self, bracket_round: BracketRound, index: int) -> Matchup:
        matchups = self.matchups(bracket_round)
        if not 0 <= index < len(matchups):
            raise PreconditionError(f"{bracket_round} has no matchup {index}")
        return matchups[index]

    @property
    def is_complete(self) -> bool:
        return self.champion is not None

    def select_winner(self, bracket_round: BracketRound, index: int, slot: int) -> Optional[str]:
        """
        Records the racer in `slot` (1 or 2) as the winner of a matchup and moves them
        into the next round. Returns the winner's id, or None when the matchup already
        had a winner, in which case nothing changes.
        """
        matchup = self.matchup(bracket_round, index)
        winner = matchup.racer(slot)

        if matchup.is_decided:
            logging.info(f"{bracket_round} matchup {index} already won by {matchup.winner}, ignoring")
            return None
        if not matchup.is_ready:
            raise PreconditionError(f"{bracket_round} matchup {index} is still waiting on racers")

        matchup.winner = winner
        if bracket_round == BracketRound.QUARTERFINALS:
            self.semifinals[index // 2].place(1 if index % 2 == 0 else 2, winner)
        elif bracket_round == BracketRound.SEMIFINALS:
            self.finals.place(1 if index == 0 else 2, winner)
        else:
            self.champion = winner
            logging.info(f"Champion decided: {winner}")
        logging.info(f"{bracket_round} matchup {index} won by {winner}")
        return winner

    def to_dict(self) -> dict[str, Any]:
        return {
            "quarterfinals": [m.to_dict() for m in self.quarterfinals],
            "semifinals": [m.to_dict() for m in self.semifinals],
            "finals": self.finals.to_dict(),
            "champion": self.champion,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Bracket":
        data = data or {}
        bracket = cls()
        if data.get("quarterfinals"):
            bracket.quarterfinals = [Matchup.from_dict(m) for m in data["quarterfinals"]]
        if data.get("semifinals"):
            bracket.semifinals = [Matchup.from_dict(m) for m in data["semifinals"]]
        bracket.finals = Matchup.from_dict(data.get("finals"))
        bracket.champion = data.get("champion")
        return bracket
