import logging
from typing import Iterable, Optional, Sequence

from .category import Category
from .contestant import Contestant

FINALISTS_PER_CATEGORY = 2
WILD_CARD_FINALISTS = 2
FINALIST_COUNT = FINALISTS_PER_CATEGORY * len(Category) + WILD_CARD_FINALISTS

# How many contestants the wild card leaderboard shows.
WILD_CARD_BOARD_SIZE = 5


def standing_key(contestant: Contestant) -> tuple[int, int, int]:
    """
    Sort key shared by every leaderboard, the wild card pick and bracket seeding:
    total points, then 1st place finishes, then 2nd place finishes, all descending.
    """
    return (-contestant.score, -contestant.finishes.first, -contestant.finishes.second)


def rank_contestants(contestants: Iterable[Contestant], category: Optional[Category] = None) -> list[Contestant]:
    """
    Returns contestants best-first, optionally restricted to one category.
    sorted() is stable, so contestants equal on every key keep their roster order.
    """
    if category is not None:
        contestants = (c for c in contestants if c.category == category)
    return sorted(contestants, key=standing_key)


def leaderboard(contestants: Iterable[Contestant], category: Optional[Category] = None) -> list[tuple[int, Contestant]]:
    """
    Returns a leaderboard as a list of (position, contestant) tuples,
    with position starting at 1.
    """
    return [(position, c) for position, c in enumerate(rank_contestants(contestants, category), start=1)]


def top_of_category(contestants: Iterable[Contestant], category: Category, count: int = FINALISTS_PER_CATEGORY) -> list[Contestant]:
    return rank_contestants(contestants, category)[:count]


def category_leaders(contestants: Sequence[Contestant]) -> list[Contestant]:
    """Top two of every category, in category priority order."""
    leaders = []
    for category in Category:
        leaders.extend(top_of_category(contestants, category))
    return leaders


def wild_cards(contestants: Iterable[Contestant], excluded_ids: set[str], count: int = WILD_CARD_BOARD_SIZE) -> list[Contestant]:
    """Best overall contestants that are not in excluded_ids."""
    return rank_contestants(c for c in contestants if c.contestant_id not in excluded_ids)[:count]


def advancing_ids(contestants: Sequence[Contestant]) -> set[str]:
    """Ids of everyone currently holding a finalist spot, either by category or as a wild card."""
    leader_ids = {c.contestant_id for c in category_leaders(contestants)}
    wild_card_ids = {c.contestant_id for c in wild_cards(contestants, leader_ids, WILD_CARD_FINALISTS)}
    return leader_ids | wild_card_ids


def select_finalists(contestants: Sequence[Contestant]) -> list[Contestant]:
    """
    Picks the championship field: the top two of each category in category order,
    followed by the two best remaining contestants overall.

    The list can be shorter than FINALIST_COUNT when the roster is too small;
    callers decide whether that is acceptable.
    """
    finalists = category_leaders(contestants)
    finalist_ids = {c.contestant_id for c in finalists}
    finalists.extend(wild_cards(contestants, finalist_ids, WILD_CARD_FINALISTS))
    logging.info(f"Selected {len(finalists)} finalists: {[c.name for c in finalists]}")
    return finalists
