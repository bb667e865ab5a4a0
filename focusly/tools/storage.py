"""
JSON persistence for the roadmap, stats and current topic.

Each document lives in its own file under the data directory, wrapped as
{"version": N, "data": ...}. Timer state is never persisted.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from focusly.config import WORK_TIME
from focusly.models.schema import LearningNode, UserStats

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

NODES_KEY = "focusly_nodes"
STATS_KEY = "focusly_stats"
TOPIC_KEY = "focusly_topic"

#node fields from before deep content was nested, they cannot be upgraded
LEGACY_NODE_FIELDS = ("content", "eli7Content")


def migrate_node(raw: dict, version: int) -> dict:
    if version < 1:
        raw = {k: v for k, v in raw.items() if k not in LEGACY_NODE_FIELDS}
    return raw


def migrate_stats(raw: dict, version: int) -> dict:
    """Upgrade an unversioned stats document.

    Early builds counted pomodoros and completed signal items instead of
    focus hours and mastered nodes, and kept per-day samples under ``history``.
    """
    if version >= 1:
        return raw

    raw = dict(raw)
    if "totalSignalCompleted" in raw:
        raw.setdefault("totalNodesMastered", raw.pop("totalSignalCompleted"))
    if "totalPomodoros" in raw:
        pomodoros = raw.pop("totalPomodoros")
        if isinstance(pomodoros, (int, float)):
            raw.setdefault("totalFocusHours", pomodoros * WORK_TIME / 3600)
    if "history" in raw:
        history = raw.pop("history")
        if not isinstance(history, list):
            history = []
        samples = []
        for entry in history:
            count = entry.get("count", entry.get("poms")) if isinstance(entry, dict) else None
            if isinstance(count, int) and "date" in entry:
                samples.append({"date": entry["date"], "count": count})
        if len(samples) < len(history):
            logger.warning(f"Dropped {len(history) - len(samples)} legacy history entries")
        raw.setdefault("masteryHistory", samples)
    return raw


class JsonStorage:
    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read(self, key: str) -> tuple[Any, int] | None:
        #returns (data, version); unversioned documents count as version 0
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, ValueError) as e:
            #ValueError covers JSONDecodeError and UnicodeDecodeError
            logger.warning(f"Ignoring unreadable {path}: {e}")
            return None

        if isinstance(doc, dict) and "version" in doc and "data" in doc:
            version = doc["version"]
            if not isinstance(version, int) or isinstance(version, bool):
                logger.warning(f"Ignoring {path}: bad schema version {version!r}")
                return None
            return doc["data"], version
        return doc, 0

    def _write(self, key: str, data: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({"version": SCHEMA_VERSION, "data": data}, f, indent=2)
        os.replace(tmp_path, path)

        logger.debug(f"Saved {key} to {path}")

    def load_nodes(self) -> list[LearningNode]:
        loaded = self._read(NODES_KEY)
        if loaded is None:
            return []
        data, version = loaded
        if not isinstance(data, list):
            logger.warning(f"Ignoring {NODES_KEY}: expected a list")
            return []

        nodes = []
        for raw in data:
            if not isinstance(raw, dict):
                continue
            try:
                nodes.append(LearningNode.model_validate(migrate_node(raw, version)))
            except ValidationError as e:
                logger.warning(f"Skipping invalid node {raw.get('id')}: {e.error_count()} errors")

        logger.info(f"Loaded {len(nodes)} nodes")
        return nodes

    def save_nodes(self, nodes: list[LearningNode]) -> None:
        self._write(NODES_KEY, [n.model_dump(mode="json", by_alias=True) for n in nodes])

    def load_stats(self) -> UserStats:
        loaded = self._read(STATS_KEY)
        if loaded is None:
            return UserStats()
        data, version = loaded
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {STATS_KEY}: expected an object")
            return UserStats()
        try:
            return UserStats.model_validate(migrate_stats(data, version))
        except ValidationError as e:
            logger.warning(f"Ignoring invalid {STATS_KEY}: {e.error_count()} errors")
            return UserStats()

    def save_stats(self, stats: UserStats) -> None:
        self._write(STATS_KEY, stats.model_dump(mode="json", by_alias=True))

    def load_topic(self) -> str:
        loaded = self._read(TOPIC_KEY)
        if loaded is None:
            return ""
        data, _ = loaded
        return data if isinstance(data, str) else ""

    def save_topic(self, topic: str) -> None:
        self._write(TOPIC_KEY, topic)
