import unittest

from derby.category import Category
from derby.heat import FinishOrder, Heat, SlotAssignment


class TestFinishOrder(unittest.TestCase):
    def test_third_place_is_automatic(self):
        order = FinishOrder.from_first_and_second(3, 1)
        self.assertEqual(order, FinishOrder(first=3, second=1, third=2))

    def test_placings_award_points(self):
        self.assertEqual(FinishOrder(2, 1, 3).placings(), [(2, 3), (1, 2), (3, 1)])

    def test_positions_must_differ(self):
        with self.assertRaises(ValueError):
            FinishOrder(1, 1, 3)
        with self.assertRaises(ValueError):
            FinishOrder.from_first_and_second(2, 2)

    def test_positions_must_be_on_the_track(self):
        with self.assertRaises(ValueError):
            FinishOrder(0, 1, 2)


class TestHeat(unittest.TestCase):
    def make_slots(self, *ids):
        return {position: SlotAssignment(cid, cid.upper()) for position, cid in enumerate(ids, start=1)}

    def test_same_contestant_twice_is_rejected(self):
        with self.assertRaises(ValueError):
            Heat(heat_id="h", category=Category.DEACON, heat_number=1, slots=self.make_slots("a", "b", "a"))

    def test_needs_three_positions(self):
        with self.assertRaises(ValueError):
            Heat(heat_id="h", category=Category.DEACON, heat_number=1, slots=self.make_slots("a", "b"))

    def test_str(self):
        heat = Heat(heat_id="h", category=Category.PRIEST, heat_number=4, slots=self.make_slots("a", "b", "c"))
        self.assertEqual(str(heat), "Priest Heat 4")
        self.assertEqual(heat.contestant_ids(), ["a", "b", "c"])


if __name__ == "__main__":
    unittest.main()
