"""
Focus timer — one Pomodoro session at a time.

idle -> working -> completed -> idle is the happy path. Toggling a working
session pauses it back to idle, toggling again resumes the countdown where it
stopped. Breaks run from idle or completed and never credit anything.
Completion credits the active node and the stats exactly once.
"""

import asyncio
import logging

from focusly.config import LONG_BREAK, SHORT_BREAK, WORK_TIME
from focusly.engine.events import BreakFinished, EventBus, SessionCompleted
from focusly.engine.roadmap import RoadmapStore
from focusly.engine.stats import StatsAggregator
from focusly.models.state import TimerState


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins:02d}:{secs:02d}"


class FocusTimer:
    def __init__(
        self,
        store: RoadmapStore | None = None,
        stats: StatsAggregator | None = None,
        events: EventBus | None = None,
        duration: int = WORK_TIME,
        short_break: int = SHORT_BREAK,
        long_break: int = LONG_BREAK,
        long_break_every: int = 4,
    ):
        self.store = store
        self.stats = stats
        self.events = events or EventBus()
        self.short_break = short_break
        self.long_break = long_break
        self.long_break_every = long_break_every
        self.state = TimerState(duration=duration, time_left=duration, interval=duration)
        self.logger = logging.getLogger("engine.FocusTimer")

    @property
    def is_running(self) -> bool:
        return self.state.status in ("working", "break")

    @property
    def is_paused(self) -> bool:
        return self.state.status == "idle" and self.state.paused_node_id is not None

    @property
    def progress(self) -> float:
        """Percent of the current interval elapsed."""
        interval = self.state.interval
        if interval <= 0:
            return 100.0
        return (interval - self.state.time_left) / interval * 100

    def _reset(self) -> None:
        s = self.state
        s.status = "idle"
        s.active_node_id = None
        s.paused_node_id = None
        s.interval = s.duration
        s.time_left = s.duration

    def start_focus(self, node_id: str) -> None:
        #abandons whatever was running, partial time is not credited
        s = self.state
        s.status = "working"
        s.active_node_id = node_id
        s.paused_node_id = None
        s.interval = s.duration
        s.time_left = s.duration
        self.logger.info(f"Focus started on {node_id}")

    def toggle(self) -> None:
        s = self.state
        if s.status == "working":
            s.status = "idle"
            s.paused_node_id = s.active_node_id
            s.active_node_id = None
            self.logger.info(f"Paused with {format_time(s.time_left)} left")
        elif self.is_paused:
            s.status = "working"
            s.active_node_id = s.paused_node_id
            s.paused_node_id = None
            self.logger.info(f"Resumed with {format_time(s.time_left)} left")

    def exit(self) -> None:
        if self.state.status != "idle" or self.is_paused:
            self.logger.info(f"Left {self.state.status} timer")
        self._reset()

    def start_break(self) -> bool:
        s = self.state
        if s.status not in ("idle", "completed"):
            return False

        long_due = s.total_sessions > 0 and s.total_sessions % self.long_break_every == 0
        length = self.long_break if long_due else self.short_break

        s.status = "break"
        s.active_node_id = None
        s.paused_node_id = None
        s.interval = length
        s.time_left = length
        self.logger.info(f"{'Long' if long_due else 'Short'} break for {format_time(length)}")
        return True

    def tick(self) -> None:
        """Advance one elapsed second."""
        s = self.state
        if s.status not in ("working", "break"):
            return

        if s.time_left > 0:
            s.time_left -= 1
        if s.time_left > 0:
            return

        if s.status == "working":
            self._complete()
        else:
            self._reset()
            self.events.emit(BreakFinished())

    def _complete(self) -> None:
        #status leaves working here, so later ticks cannot re-fire this
        s = self.state
        s.status = "completed"
        s.total_sessions += 1

        if self.stats is not None:
            self.stats.record_session(s.duration)
        if self.store is not None:
            self.store.record_pomodoro(s.active_node_id)

        self.logger.info(f"Session {s.total_sessions} completed on {s.active_node_id}")
        self.events.emit(SessionCompleted(
            node_id=s.active_node_id,
            total_sessions=s.total_sessions,
            duration=s.duration,
        ))

    async def run(self, tick_seconds: float = 1.0) -> None:
        """Tick once per ``tick_seconds`` until the timer stops running.

        Pause or exit between ticks wins: status is checked again after each
        sleep, before the tick is applied.
        """
        while self.is_running:
            await asyncio.sleep(tick_seconds)
            if not self.is_running:
                break
            self.tick()
