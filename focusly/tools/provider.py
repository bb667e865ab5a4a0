"""
Content provider for roadmap and deep content generation.

Calls Gemini with structured output and validates every response into the
typed models before it reaches the roadmap store. Rate-limited calls are
retried with exponential backoff.
"""

import asyncio
import logging

from google import genai
from pydantic import ValidationError

from focusly.config import Settings
from focusly.config import settings as default_settings
from focusly.models.schema import DeepContent, NodeDescriptor, RoadmapResponse

logger = logging.getLogger(__name__)

ROADMAP_INSTRUCTION = """You are a world-class T-Shaped Pedagogical Architect.
Your goal: Transform "{topic}" into a structured 6-node learning spine.

PEDAGOGICAL ONTOLOGY:
1. THE HORIZONTAL (Nodes 1-3): Focus on 'Breadth'.
   - Node 1: Absolute Foundations (Lvl 0).
   - Node 2: Adjacent Domains & Context (Lvl 5).
   - Node 3: Core Mental Models & First Principles (Lvl 10).
2. THE VERTICAL (Nodes 4-6): Focus on 'Depth'.
   - Node 4: Technical Execution & Mechanics (Lvl 30).
   - Node 5: Advanced Optimization & Systems (Lvl 60).
   - Node 6: Expert Nuance, Edge Cases & Mastery (Lvl 100).

OUTPUT REQUIREMENTS:
- Every node MUST have a title that reflects expert terminology.
- Description MUST explain the "Why" and the "How".
- Classify each node as 'signal' (high value) or 'noise' (low value).
- Provide high-precision pro search queries for each.
"""

DEFAULT_CONTEXT_TOPIC = "Expert Mastery"


class ProviderError(Exception):
    """Base class for recoverable content provider failures."""

    retryable = True
    user_message = "Content generation failed. Please try again."


class RateLimitedError(ProviderError):
    user_message = "The content service is busy right now. Try again shortly."


class ProviderFailureError(ProviderError):
    pass


class EmptyResultError(ProviderFailureError):
    user_message = "The content service returned nothing. Please try again."


def is_rate_limited(error: Exception) -> bool:
    #sdk errors carry the http code, fall back to the message for anything else
    if getattr(error, "code", None) == 429:
        return True
    text = str(error)
    return "429" in text or "RESOURCE_EXHAUSTED" in text


class ContentProvider:
    """Gemini-backed generator for roadmap nodes and deep content.

    Pass a preconfigured ``client`` to reuse a connection; otherwise one is
    created lazily from ``settings.gemini_api_key``.
    """

    def __init__(self, client=None, settings: Settings | None = None):
        self.settings = settings or default_settings
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.settings.gemini_api_key:
                raise ProviderFailureError("Gemini API key is not configured")
            self._client = genai.Client(api_key=self.settings.gemini_api_key)
        return self._client

    async def _generate(self, model: str, contents: str, schema, system_instruction: str | None = None) -> str:
        #returns raw json text, retrying only on rate limits

        client = self.client
        config = {
            "response_mime_type": "application/json",
            "response_schema": schema,
        }
        if system_instruction:
            config["system_instruction"] = system_instruction

        attempts = max(1, self.settings.retry_max_attempts)
        backoff = self.settings.retry_base_delay

        for attempt in range(1, attempts + 1):
            try:
                response = await client.aio.models.generate_content(
                    model=model,
                    contents=contents,
                    config=config,
                )
            except Exception as e:
                if not is_rate_limited(e):
                    logger.error(f"Generation failed on {model}: {e}")
                    raise ProviderFailureError(f"Gemini request failed: {e}") from e
                if attempt == attempts:
                    logger.error(f"Still rate limited after {attempts} attempts")
                    raise RateLimitedError(f"Rate limited after {attempts} attempts") from e
                logger.warning(f"Rate limited, waiting {backoff}s (attempt {attempt}/{attempts})...")
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, self.settings.retry_max_delay)
                continue

            text = (response.text or "").strip()
            if not text:
                raise EmptyResultError(f"Empty response from {model}")
            return text

        raise ProviderFailureError("No generation attempt was made")

    async def generate_roadmap(self, topic: str, depth: int = 0) -> list[NodeDescriptor]:
        """Generate node descriptors for ``topic``, sorted by difficulty ascending.

        ``depth`` is the tree depth the nodes will be placed at; drill-downs
        pass ``parent.depth + 1``.
        """
        contents = (
            f'Architect the T-Shaped mastery path for: "{topic}". '
            "Strictly follow the Lvl 0, 5, 10, 30, 60, 100 progression."
        )
        if depth > 0:
            contents += f" This path deepens an existing roadmap at depth {depth}; stay inside \"{topic}\"."

        text = await self._generate(
            self.settings.roadmap_model,
            contents,
            RoadmapResponse,
            system_instruction=ROADMAP_INSTRUCTION.format(topic=topic),
        )

        try:
            roadmap = RoadmapResponse.model_validate_json(text)
        except ValidationError as e:
            raise ProviderFailureError(f"Malformed roadmap response: {e.error_count()} errors") from e

        if not roadmap.nodes:
            raise EmptyResultError(f"No roadmap nodes returned for {topic!r}")

        logger.info(f"Generated {len(roadmap.nodes)} nodes for {topic!r} at depth {depth}")
        return sorted(roadmap.nodes, key=lambda n: n.difficulty_level)

    async def generate_node_content(
        self,
        title: str,
        context_topic: str = DEFAULT_CONTEXT_TOPIC,
        complexity: int | None = None,
    ) -> DeepContent:
        """Generate the deep content payload for one node. Never partial."""

        contents = f"""Perform an exhaustive expert-level pedagogical dissection of "{title}" in the domain of "{context_topic}".

GOAL: Take a user from zero to expert on this specific node.

STRICT STRUCTURE:
1. EXECUTIVE SUMMARY: High-signal, dense theoretical grounding.
2. TECHNICAL MECHANICS: 5 detailed, sequential steps of how this actually functions in practice.
3. MINUTE DETAILS: 4 expert secrets, subtle nuances, or observations that practitioners miss.
4. EXPERT MENTAL MODEL: A powerful analogy or cognitive framework for this concept.
5. COMMON PITFALLS: Where people fail and why.
6. ELI7: A "No Fluff" brilliant simple version.
7. PLAYGROUND (optional): if hands-on practice helps, a 'code' or 'spreadsheet' exercise with starter data and a task prompt.

Tone: Professional, signal-dense, precise."""

        if complexity is not None:
            complexity = max(0, min(100, complexity))
            contents += f"\n\nTarget complexity: {complexity}/100 (0 = complete beginner, 100 = specialist)."

        text = await self._generate(self.settings.content_model, contents, DeepContent)

        try:
            content = DeepContent.model_validate_json(text)
        except ValidationError as e:
            raise ProviderFailureError(f"Malformed content response: {e.error_count()} errors") from e

        logger.info(f"Generated deep content for {title!r}")
        return content
