"""
Roadmap store — the authoritative collection of learning nodes.

Owns node creation (generated, drilled-down, manual), parent/child linking,
status and type transitions, deep content attachment and deletion.
Lookups of unknown ids and blank inputs are silent no-ops; provider errors
propagate to the caller and leave the collection untouched.
"""

import datetime
import logging
import time
import uuid
from typing import Callable

from focusly.engine.events import EventBus, NodeMastered
from focusly.engine.stats import StatsAggregator
from focusly.models.schema import DeepContent, LearningNode, NodeDescriptor, NodeStatus, NodeType
from focusly.tools.provider import DEFAULT_CONTEXT_TOPIC, ContentProvider, EmptyResultError

#difficulty at or below this is breadth (horizontal), above is depth (vertical)
HORIZONTAL_MAX_DIFFICULTY = 10

MANUAL_DIFFICULTY = {"signal": 50, "noise": 0}


def _now_ms() -> int:
    return int(time.time() * 1000)


def node_from_descriptor(
    descriptor: NodeDescriptor,
    parent_id: str | None,
    depth: int,
    status: NodeStatus,
) -> LearningNode:
    return LearningNode(
        id=str(uuid.uuid4()),
        parent_id=parent_id,
        title=descriptor.title,
        description=descriptor.description,
        type=descriptor.type,
        status=status,
        depth=depth,
        difficulty_level=descriptor.difficulty_level,
        learning_outcome=descriptor.learning_outcome,
        search_queries=list(descriptor.search_queries),
        resources=list(descriptor.resources),
        created_at=_now_ms(),
    )


class RoadmapStore:
    """Ordered node collection plus the mutation rules around it.

    ``on_change`` is called after every successful mutation so the owner can
    persist state.
    """

    def __init__(
        self,
        provider: ContentProvider,
        stats: StatsAggregator | None = None,
        events: EventBus | None = None,
        nodes: list[LearningNode] | None = None,
        topic: str = "",
        unlock_all: bool = False,
        on_change: Callable[[], None] | None = None,
    ):
        self.provider = provider
        self.stats = stats or StatsAggregator()
        self.events = events or EventBus()
        self.nodes: dict[str, LearningNode] = {n.id: n for n in nodes or []}
        self.topic = topic
        self.unlock_all = unlock_all
        self.on_change = on_change
        self._fetching: set[str] = set()
        self.logger = logging.getLogger("engine.RoadmapStore")

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()

    def get(self, node_id: str | None) -> LearningNode | None:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def all_nodes(self) -> list[LearningNode]:
        return list(self.nodes.values())

    def is_fetching(self, node_id: str) -> bool:
        return node_id in self._fetching

    # ─── Creation ───

    async def create_roadmap(self, topic: str) -> list[LearningNode]:
        """Replace the roadmap with freshly generated root nodes for ``topic``."""
        topic = topic.strip()
        if not topic:
            self.logger.debug("Ignoring blank topic")
            return []

        descriptors = await self.provider.generate_roadmap(topic, 0)
        if not descriptors:
            raise EmptyResultError(f"No roadmap nodes returned for {topic!r}")

        new_nodes = [
            node_from_descriptor(
                d,
                parent_id=None,
                depth=0,
                status="available" if i == 0 or self.unlock_all else "locked",
            )
            for i, d in enumerate(descriptors)
        ]

        self.topic = topic
        self.nodes = {n.id: n for n in new_nodes}
        self._fetching.clear()
        self.logger.info(f"Created roadmap for {topic!r} with {len(new_nodes)} nodes")
        self._changed()
        return new_nodes

    async def drill_down(self, parent_id: str) -> list[LearningNode]:
        """Generate children one level below ``parent_id``."""
        parent = self.nodes.get(parent_id)
        if parent is None:
            self.logger.debug(f"Drill-down on unknown node {parent_id}")
            return []

        child_depth = parent.depth + 1
        descriptors = await self.provider.generate_roadmap(parent.title, child_depth)
        if not descriptors:
            raise EmptyResultError(f"No child nodes returned for {parent.title!r}")

        #parent may have been deleted while the provider call was in flight
        parent = self.nodes.get(parent_id)
        if parent is None:
            self.logger.info(f"Parent {parent_id} deleted during drill-down, discarding result")
            return []

        children = [
            node_from_descriptor(d, parent_id=parent_id, depth=child_depth, status="available")
            for d in descriptors
        ]

        #link both directions with no await in between
        parent.children_ids.extend(c.id for c in children)
        for child in children:
            self.nodes[child.id] = child

        self.logger.info(f"Drilled into {parent.title!r}: {len(children)} children at depth {child_depth}")
        self._changed()
        return children

    def add_manual_node(self, title: str, node_type: NodeType = "signal") -> LearningNode | None:
        title = title.strip()
        if not title:
            return None

        node = LearningNode(
            id=str(uuid.uuid4()),
            parent_id=None,
            title=title,
            description="Manual expert capture",
            type=node_type,
            status="available",
            depth=0,
            difficulty_level=MANUAL_DIFFICULTY[node_type],
            learning_outcome="Manual objective completion",
            created_at=_now_ms(),
        )
        #newest capture goes first
        self.nodes = {node.id: node, **self.nodes}
        self._changed()
        return node

    # ─── Mutation ───

    def toggle_type(self, node_id: str) -> None:
        node = self.nodes.get(node_id)
        if node is None:
            return
        node.type = "noise" if node.type == "signal" else "signal"
        self._changed()

    def toggle_mastery(self, node_id: str, day: datetime.date | None = None) -> NodeStatus | None:
        """Flip a node between mastered and available, returning the new status.

        Only the transition into ``mastered`` is counted; toggling back leaves
        the stats as they are.
        """
        node = self.nodes.get(node_id)
        if node is None:
            return None

        if node.status == "mastered":
            node.status = "available"
        else:
            node.status = "mastered"
            self.stats.record_mastery(day)
            self.events.emit(NodeMastered(node_id=node.id, title=node.title))

        self._changed()
        return node.status

    def record_pomodoro(self, node_id: str | None) -> None:
        node = self.get(node_id)
        if node is None:
            return
        node.pomodoros_spent += 1
        self._changed()

    def delete_node(self, node_id: str) -> None:
        #children are left in place with a dangling parent_id
        node = self.nodes.pop(node_id, None)
        if node is None:
            return

        parent = self.get(node.parent_id)
        if parent is not None and node_id in parent.children_ids:
            parent.children_ids.remove(node_id)

        self._fetching.discard(node_id)
        self._changed()

    def clear(self) -> None:
        self.nodes = {}
        self.topic = ""
        self._fetching.clear()
        self._changed()

    async def fetch_deep_content(self, node_id: str, complexity: int | None = None) -> DeepContent | None:
        """Fetch and cache deep content for a node, at most once.

        Returns the cached content without a provider call when it is already
        present or a fetch for the same node is in flight.
        """
        node = self.nodes.get(node_id)
        if node is None:
            return None
        if node.deep_content is not None or node_id in self._fetching:
            return node.deep_content

        self._fetching.add(node_id)
        try:
            content = await self.provider.generate_node_content(
                node.title,
                self.topic or DEFAULT_CONTEXT_TOPIC,
                complexity,
            )
        finally:
            self._fetching.discard(node_id)

        node = self.nodes.get(node_id)
        if node is None:
            return None
        if node.deep_content is None:
            node.deep_content = content
            self._changed()
        return node.deep_content

    # ─── Views ───

    def visible_nodes(self, hide_noise: bool = False) -> list[LearningNode]:
        nodes = self.all_nodes()
        if hide_noise:
            return [n for n in nodes if n.type == "signal"]
        return nodes

    def grouped_nodes(self, hide_noise: bool = False) -> tuple[list[LearningNode], list[LearningNode]]:
        """Split nodes by difficulty into (horizontal, vertical) bands."""
        ordered = sorted(self.visible_nodes(hide_noise), key=lambda n: n.difficulty_level)
        horizontal = [n for n in ordered if n.difficulty_level <= HORIZONTAL_MAX_DIFFICULTY]
        vertical = [n for n in ordered if n.difficulty_level > HORIZONTAL_MAX_DIFFICULTY]
        return horizontal, vertical
