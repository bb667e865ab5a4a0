import json
import unittest
from unittest.mock import AsyncMock, patch

from fakes import FakeClient, RateLimitError, content_json, descriptor, make_settings, roadmap_json

from focusly.tools.provider import (
    ContentProvider,
    EmptyResultError,
    ProviderFailureError,
    RateLimitedError,
    is_rate_limited,
)


class TestGenerateRoadmap(unittest.IsolatedAsyncioTestCase):
    async def test_nodes_sorted_by_difficulty(self):
        client = FakeClient([roadmap_json([60, 0, 100, 10, 30, 5])])
        provider = ContentProvider(client=client, settings=make_settings())

        nodes = await provider.generate_roadmap("Rust", 0)

        self.assertEqual([n.difficulty_level for n in nodes], [0, 5, 10, 30, 60, 100])
        call = client.models.calls[0]
        self.assertEqual(call["config"]["response_mime_type"], "application/json")
        self.assertIn("Rust", call["config"]["system_instruction"])

    async def test_drill_down_depth_in_prompt(self):
        client = FakeClient([roadmap_json([0])])
        provider = ContentProvider(client=client, settings=make_settings())

        await provider.generate_roadmap("Ownership", 2)

        self.assertIn("depth 2", client.models.calls[0]["contents"])

    async def test_difficulty_clamped(self):
        payload = json.dumps({"nodes": [descriptor("Too hard", 250), descriptor("Too easy", -5)]})
        provider = ContentProvider(client=FakeClient([payload]), settings=make_settings())

        nodes = await provider.generate_roadmap("X")

        self.assertEqual([n.difficulty_level for n in nodes], [0, 100])

    async def test_empty_nodes(self):
        provider = ContentProvider(client=FakeClient(['{"nodes": []}']), settings=make_settings())
        with self.assertRaises(EmptyResultError):
            await provider.generate_roadmap("X")

    async def test_blank_response(self):
        provider = ContentProvider(client=FakeClient(["  "]), settings=make_settings())
        with self.assertRaises(EmptyResultError):
            await provider.generate_roadmap("X")

    async def test_malformed_response(self):
        bad = json.dumps({"nodes": [{"title": "Missing fields", "type": "maybe"}]})
        provider = ContentProvider(client=FakeClient([bad]), settings=make_settings())
        with self.assertRaises(ProviderFailureError):
            await provider.generate_roadmap("X")

    async def test_other_errors_not_retried(self):
        client = FakeClient([RuntimeError("500 INTERNAL"), roadmap_json([0])])
        provider = ContentProvider(client=client, settings=make_settings())

        with self.assertRaises(ProviderFailureError) as ctx:
            await provider.generate_roadmap("X")

        self.assertNotIsInstance(ctx.exception, RateLimitedError)
        self.assertEqual(len(client.models.calls), 1)

    async def test_missing_api_key(self):
        provider = ContentProvider(settings=make_settings(gemini_api_key=""))
        with self.assertRaises(ProviderFailureError):
            await provider.generate_roadmap("X")


class TestRetry(unittest.IsolatedAsyncioTestCase):
    async def test_rate_limit_then_success(self):
        client = FakeClient([RateLimitError(), content_json("after retry")])
        provider = ContentProvider(client=client, settings=make_settings())

        content = await provider.generate_node_content("Borrowing", "Rust")

        self.assertEqual(content.executive_summary, "after retry")
        self.assertEqual(len(client.models.calls), 2)

    async def test_rate_limit_exhausted(self):
        client = FakeClient([RateLimitError(), RateLimitError(), RateLimitError()])
        provider = ContentProvider(client=client, settings=make_settings(retry_max_attempts=3))

        with self.assertRaises(RateLimitedError) as ctx:
            await provider.generate_node_content("Borrowing", "Rust")

        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(len(client.models.calls), 3)

    async def test_backoff_doubles_up_to_max(self):
        client = FakeClient([RateLimitError()] * 4 + [roadmap_json([0])])
        settings = make_settings(retry_base_delay=1.0, retry_max_delay=3.0, retry_max_attempts=5)
        provider = ContentProvider(client=client, settings=settings)

        with patch("focusly.tools.provider.asyncio.sleep", new=AsyncMock()) as sleep:
            await provider.generate_roadmap("X")

        self.assertEqual([c.args[0] for c in sleep.await_args_list], [1.0, 2.0, 3.0, 3.0])

    def test_is_rate_limited(self):
        self.assertTrue(is_rate_limited(RateLimitError()))
        self.assertTrue(is_rate_limited(Exception("RESOURCE_EXHAUSTED")))
        self.assertFalse(is_rate_limited(Exception("400 INVALID_ARGUMENT")))


class TestGenerateNodeContent(unittest.IsolatedAsyncioTestCase):
    async def test_parses_playground(self):
        playground = {"type": "spreadsheet", "initialData": "a,b\n1,2", "prompt": "Sum column b"}
        provider = ContentProvider(client=FakeClient([content_json(playground=playground)]), settings=make_settings())

        content = await provider.generate_node_content("Pivot tables", "Excel")

        self.assertEqual(content.playground.type, "spreadsheet")
        self.assertEqual(content.playground.initial_data, "a,b\n1,2")

    async def test_complexity_clamped_into_prompt(self):
        client = FakeClient([content_json()])
        provider = ContentProvider(client=client, settings=make_settings())

        await provider.generate_node_content("Lifetimes", "Rust", complexity=140)

        self.assertIn("100/100", client.models.calls[0]["contents"])

    async def test_partial_content_rejected(self):
        partial = json.dumps({"executiveSummary": "only this"})
        provider = ContentProvider(client=FakeClient([partial]), settings=make_settings())
        with self.assertRaises(ProviderFailureError):
            await provider.generate_node_content("Lifetimes", "Rust")


if __name__ == "__main__":
    unittest.main()
