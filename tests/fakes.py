"""
Test doubles for the Gemini client.
"""

import asyncio
import json
from types import SimpleNamespace

from focusly.config import Settings


class FakeResponse:
    def __init__(self, text: str):
        self.text = text


class FakeModels:
    """Stands in for client.aio.models; replays queued outcomes in order."""

    def __init__(self, outcomes: list, gate: asyncio.Event | None = None):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []
        self.gate = gate

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)


class FakeClient:
    def __init__(self, outcomes: list, gate: asyncio.Event | None = None):
        self.models = FakeModels(outcomes, gate)
        self.aio = SimpleNamespace(models=self.models)


class RateLimitError(Exception):
    def __init__(self):
        super().__init__("429 RESOURCE_EXHAUSTED. Quota exceeded.")
        self.code = 429


def make_settings(**overrides) -> Settings:
    values = {
        "gemini_api_key": "test-key",
        "retry_base_delay": 0,
        "retry_max_attempts": 3,
        "data_dir": "unused",
    }
    values.update(overrides)
    return Settings(**values)


def descriptor(title: str, level: int, node_type: str = "signal") -> dict:
    return {
        "title": title,
        "description": f"Why and how of {title}",
        "type": node_type,
        "difficulty_level": level,
        "learning_outcome": f"Can apply {title}",
        "search_queries": [f"{title} explained"],
        "resources": ["Textbook"],
    }


def roadmap_json(levels: list[int], prefix: str = "Node") -> str:
    return json.dumps({"nodes": [descriptor(f"{prefix} {lvl}", lvl) for lvl in levels]})


def content_json(summary: str = "Dense summary", playground: dict | None = None) -> str:
    data = {
        "executiveSummary": summary,
        "technicalMechanics": ["step 1", "step 2"],
        "minuteDetails": ["detail"],
        "expertMentalModel": "A map is not the territory",
        "commonPitfalls": ["skipping basics"],
        "eli7": "It is like building with blocks",
    }
    if playground:
        data["playground"] = playground
    return json.dumps(data)
