import unittest
from datetime import datetime
from types import SimpleNamespace

from office_hours.domain.matching.availability import compute_available_slots

# 2026-10-19 is a Monday
MONDAY_8AM = datetime(2026, 10, 19, 8, 0)


def window(day, start="09:00", end="10:00"):
    return SimpleNamespace(day_of_week=day, start_time=start, end_time=end)


def booking(when, minutes=30):
    return SimpleNamespace(scheduled_at=when, duration_minutes=minutes)


class TestAvailableSlots(unittest.TestCase):

    def test_weekly_window_expands_over_two_weeks(self):
        slots = compute_available_slots([window(1)], [], MONDAY_8AM)
        self.assertEqual(
            [s.start_time for s in slots],
            ["2026-10-19T09:00:00", "2026-10-26T09:00:00", "2026-11-02T09:00:00"],
        )
        self.assertEqual(slots[0].end_time, "2026-10-19T10:00:00")

    def test_sunday_is_day_zero(self):
        slots = compute_available_slots([window(0)], [], MONDAY_8AM)
        self.assertEqual(
            [s.start_time for s in slots], ["2026-10-25T09:00:00", "2026-11-01T09:00:00"]
        )

    def test_slots_in_the_past_are_dropped(self):
        slots = compute_available_slots([window(1)], [], datetime(2026, 10, 19, 9, 30))
        self.assertEqual(slots[0].start_time, "2026-10-26T09:00:00")

    def test_overlapping_booking_removes_slot(self):
        sessions = [booking(datetime(2026, 10, 26, 9, 30))]
        slots = compute_available_slots([window(1)], sessions, MONDAY_8AM)
        self.assertNotIn("2026-10-26T09:00:00", [s.start_time for s in slots])
        self.assertEqual(len(slots), 2)

    def test_booking_containing_slot_removes_it(self):
        sessions = [booking(datetime(2026, 10, 19, 8, 30), minutes=120)]
        slots = compute_available_slots([window(1)], sessions, MONDAY_8AM)
        self.assertNotIn("2026-10-19T09:00:00", [s.start_time for s in slots])

    def test_adjacent_booking_keeps_slot(self):
        sessions = [booking(datetime(2026, 10, 19, 10, 0))]
        slots = compute_available_slots([window(1)], sessions, MONDAY_8AM)
        self.assertIn("2026-10-19T09:00:00", [s.start_time for s in slots])

    def test_capped_at_ten_slots(self):
        every_day = [window(day) for day in range(7)]
        self.assertEqual(len(compute_available_slots(every_day, [], MONDAY_8AM)), 10)

    def test_no_availability(self):
        self.assertEqual(compute_available_slots([], [], MONDAY_8AM), [])


if __name__ == "__main__":
    unittest.main()
