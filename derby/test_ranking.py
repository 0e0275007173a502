import unittest

from derby.category import Category
from derby.contestant import Contestant, FinishCounts
from derby.ranking import (
    FINALIST_COUNT,
    advancing_ids,
    leaderboard,
    rank_contestants,
    select_finalists,
    top_of_category,
    wild_cards,
)


def make_contestant(contestant_id, category=Category.DEACON, score=0, first=0, second=0, third=0):
    return Contestant(
        contestant_id=contestant_id,
        name=contestant_id.upper(),
        category=category,
        score=score,
        finishes=FinishCounts(first=first, second=second, third=third),
    )


class TestRankContestants(unittest.TestCase):
    def test_empty_roster(self):
        self.assertEqual(rank_contestants([]), [])
        self.assertEqual(leaderboard([]), [])

    def test_higher_score_first(self):
        a = make_contestant("a", score=5)
        b = make_contestant("b", score=9)
        c = make_contestant("c", score=7)
        self.assertEqual([x.contestant_id for x in rank_contestants([a, b, c])], ["b", "c", "a"])

    def test_tie_on_score_broken_by_first_places(self):
        a = make_contestant("a", score=12, first=2, second=1)
        b = make_contestant("b", score=12, first=3, second=0)
        self.assertEqual([x.contestant_id for x in rank_contestants([a, b])], ["b", "a"])

    def test_tie_on_score_and_firsts_broken_by_second_places(self):
        a = make_contestant("a", score=12, first=2, second=1)
        b = make_contestant("b", score=12, first=2, second=3)
        self.assertEqual([x.contestant_id for x in rank_contestants([a, b])], ["b", "a"])

    def test_full_tie_keeps_roster_order(self):
        a = make_contestant("a", score=6, first=1, second=1)
        b = make_contestant("b", score=6, first=1, second=1)
        self.assertEqual([x.contestant_id for x in rank_contestants([a, b])], ["a", "b"])
        self.assertEqual([x.contestant_id for x in rank_contestants([b, a])], ["b", "a"])

    def test_swapping_counters_swaps_rank(self):
        # Swapping every ranking field between two contestants must swap their order.
        a = make_contestant("a", score=10, first=2, second=1)
        b = make_contestant("b", score=10, first=1, second=3)
        self.assertEqual(rank_contestants([a, b])[0].contestant_id, "a")
        a.score, b.score = b.score, a.score
        a.finishes, b.finishes = b.finishes, a.finishes
        self.assertEqual(rank_contestants([a, b])[0].contestant_id, "b")

    def test_category_filter(self):
        a = make_contestant("a", Category.DEACON, score=3)
        b = make_contestant("b", Category.TEACHER, score=9)
        c = make_contestant("c", Category.DEACON, score=5)
        self.assertEqual([x.contestant_id for x in rank_contestants([a, b, c], Category.DEACON)], ["c", "a"])

    def test_leaderboard_positions(self):
        a = make_contestant("a", score=1)
        b = make_contestant("b", score=3)
        board = leaderboard([a, b])
        self.assertEqual([(position, c.contestant_id) for position, c in board], [(1, "b"), (2, "a")])


class TestFinalists(unittest.TestCase):
    def setUp(self):
        # Three per category, scores chosen so the wild cards come from different categories.
        self.roster = [
            make_contestant("d1", Category.DEACON, score=15),
            make_contestant("d2", Category.DEACON, score=14),
            make_contestant("d3", Category.DEACON, score=13, first=2),
            make_contestant("t1", Category.TEACHER, score=10),
            make_contestant("t2", Category.TEACHER, score=9),
            make_contestant("t3", Category.TEACHER, score=8),
            make_contestant("p1", Category.PRIEST, score=18),
            make_contestant("p2", Category.PRIEST, score=17),
            make_contestant("p3", Category.PRIEST, score=13, first=3),
        ]

    def test_top_of_category(self):
        top = top_of_category(self.roster, Category.TEACHER)
        self.assertEqual([c.contestant_id for c in top], ["t1", "t2"])

    def test_wild_cards_exclude_given_ids(self):
        picks = wild_cards(self.roster, {"p1", "p2", "d1", "d2"}, count=3)
        # p3 and d3 tie on points; p3 has more 1st places.
        self.assertEqual([c.contestant_id for c in picks], ["p3", "d3", "t1"])

    def test_select_finalists_order(self):
        finalists = select_finalists(self.roster)
        self.assertEqual(len(finalists), FINALIST_COUNT)
        self.assertEqual(
            [c.contestant_id for c in finalists],
            ["d1", "d2", "t1", "t2", "p1", "p2", "p3", "d3"],
        )

    def test_advancing_ids_match_finalists(self):
        self.assertEqual(advancing_ids(self.roster), {c.contestant_id for c in select_finalists(self.roster)})

    def test_small_roster_gives_short_field(self):
        finalists = select_finalists(self.roster[:4])
        self.assertEqual([c.contestant_id for c in finalists], ["d1", "d2", "t1", "d3"])


if __name__ == "__main__":
    unittest.main()
