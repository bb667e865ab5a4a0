"""
Application controller — owns the roadmap, timer and stats for one user.

State is loaded from storage once at construction and written back after
every change.
"""

import logging

from focusly.config import Settings
from focusly.config import settings as default_settings
from focusly.engine.events import EventBus, SessionCompleted
from focusly.engine.roadmap import RoadmapStore
from focusly.engine.stats import StatsAggregator
from focusly.engine.timer import FocusTimer
from focusly.tools.provider import ContentProvider
from focusly.tools.storage import JsonStorage


class FocuslyController:
    def __init__(
        self,
        settings: Settings | None = None,
        provider: ContentProvider | None = None,
        storage: JsonStorage | None = None,
    ):
        self.settings = settings or default_settings
        self.storage = storage or JsonStorage(self.settings.data_dir)
        self.logger = logging.getLogger("engine.Controller")

        self.events = EventBus()
        self.stats = StatsAggregator(self.storage.load_stats())
        self.store = RoadmapStore(
            provider or ContentProvider(settings=self.settings),
            stats=self.stats,
            events=self.events,
            nodes=self.storage.load_nodes(),
            topic=self.storage.load_topic(),
            unlock_all=self.settings.unlock_all_nodes,
            on_change=self.save,
        )
        self.timer = FocusTimer(
            store=self.store,
            stats=self.stats,
            events=self.events,
            duration=self.settings.work_time,
            short_break=self.settings.short_break,
            long_break=self.settings.long_break,
            long_break_every=self.settings.long_break_every,
        )
        self.hide_noise = False

        #stats change on completion even when the node is gone
        self.events.subscribe(SessionCompleted, lambda _event: self.save())

        self.logger.info(
            f"Loaded {len(self.store.all_nodes())} nodes and "
            f"{self.stats.stats.total_nodes_mastered} mastered from {self.storage.data_dir}"
        )

    def save(self) -> None:
        self.storage.save_nodes(self.store.all_nodes())
        self.storage.save_stats(self.stats.stats)
        self.storage.save_topic(self.store.topic)
        self.logger.debug(f"Saved state to {self.storage.data_dir}")

    def bump_streak(self) -> None:
        self.stats.bump_streak()
        self.save()

    def toggle_noise_filter(self) -> bool:
        self.hide_noise = not self.hide_noise
        return self.hide_noise

    def visible_nodes(self):
        return self.store.visible_nodes(self.hide_noise)
