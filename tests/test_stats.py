import datetime
import unittest

from focusly.engine.stats import StatsAggregator
from focusly.models.schema import MasterySample, UserStats


class TestStatsAggregator(unittest.TestCase):
    def test_mastery_merges_per_day(self):
        agg = StatsAggregator()
        monday = datetime.date(2026, 1, 5)
        tuesday = datetime.date(2026, 1, 6)

        agg.record_mastery(tuesday)
        agg.record_mastery(monday)
        agg.record_mastery(tuesday)

        self.assertEqual(agg.stats.total_nodes_mastered, 3)
        self.assertEqual(agg.chart_series(), [("2026-01-05", 1), ("2026-01-06", 2)])

    def test_existing_history_extended(self):
        stats = UserStats(mastery_history=[MasterySample(date="2026-01-01", count=4)])
        agg = StatsAggregator(stats)

        agg.record_mastery(datetime.date(2026, 1, 1))

        self.assertEqual(stats.mastery_history[0].count, 5)

    def test_focus_hours(self):
        agg = StatsAggregator()
        agg.record_session(1500)
        agg.record_session(1500)
        self.assertAlmostEqual(agg.stats.total_focus_hours, 3000 / 3600)

    def test_streak(self):
        agg = StatsAggregator()
        agg.bump_streak()
        agg.bump_streak()
        self.assertEqual(agg.stats.daily_streak, 2)


if __name__ == "__main__":
    unittest.main()
