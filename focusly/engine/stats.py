"""
Stats aggregator: counters behind the analytics view.

Every path here only increments. Reverting a mastered node does not take
anything back off ``total_nodes_mastered``.
"""

import datetime
import logging

from focusly.models.schema import MasterySample, UserStats

logger = logging.getLogger(__name__)


class StatsAggregator:
    def __init__(self, stats: UserStats | None = None):
        self.stats = stats or UserStats()

    def record_mastery(self, day: datetime.date | None = None) -> None:
        day = day or datetime.date.today()
        date_str = day.isoformat()

        self.stats.total_nodes_mastered += 1

        #merge into the sample for that day, keep history in date order
        for sample in self.stats.mastery_history:
            if sample.date == date_str:
                sample.count += 1
                break
        else:
            self.stats.mastery_history.append(MasterySample(date=date_str, count=1))
            self.stats.mastery_history.sort(key=lambda s: s.date)

        logger.info(f"Nodes mastered: {self.stats.total_nodes_mastered}")

    def record_session(self, duration: int) -> None:
        self.stats.total_focus_hours += duration / 3600

    def bump_streak(self) -> None:
        self.stats.daily_streak += 1

    def chart_series(self) -> list[tuple[str, int]]:
        return [(s.date, s.count) for s in self.stats.mastery_history]
