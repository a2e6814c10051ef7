"""In-memory DAG of generated content nodes."""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from ..errors import NodeNotFoundError, ValidationError
from .models import ContentNode

# Fields annotate() may replace; everything else is identity
_ANNOTATION_FIELDS = {"score", "seo_metadata", "geo_score", "tokens_used"}


class ContentGraph:
    """Content nodes of one working session, in display order.

    Nodes can only be appended after their parent exists, so the graph is
    acyclic by construction. Nodes themselves are immutable; annotate()
    swaps in a copy with the same id and provenance.

    Usage:
        graph = ContentGraph()
        graph.add(base_node)
        graph.add(styled_node)  # derived_from=base_node.id
        graph.children_of(base_node.id)
    """

    def __init__(self, nodes: Iterable[ContentNode] = ()):
        self._nodes: dict[str, ContentNode] = {}
        self._order: list[str] = []
        for node in nodes:
            self.add(node)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[ContentNode]:
        return iter([self._nodes[node_id] for node_id in self._order])

    @property
    def ids(self) -> list[str]:
        return list(self._order)

    def add(self, node: ContentNode) -> ContentNode:
        """Append a node.

        Raises:
            ValidationError: Duplicate id or derived_from pointing nowhere.
        """
        if node.id in self._nodes:
            raise ValidationError(f"Duplicate node id: {node.id}", field="id", value=node.id)
        if node.derived_from is not None and node.derived_from not in self._nodes:
            raise ValidationError(
                f"Node {node.id} is derived from unknown node {node.derived_from}",
                field="derived_from",
                value=node.derived_from,
            )
        self._nodes[node.id] = node
        self._order.append(node.id)
        return node

    def get(self, node_id: str) -> ContentNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def children_of(self, node_id: str) -> list[ContentNode]:
        """Nodes derived directly from node_id, in display order."""
        self.get(node_id)
        return [n for n in self if n.derived_from == node_id]

    def lineage(self, node_id: str) -> list[ContentNode]:
        """The node and its ancestors, from the node up to its base."""
        chain = [self.get(node_id)]
        while chain[-1].derived_from is not None:
            chain.append(self.get(chain[-1].derived_from))
        return chain

    def annotate(self, node_id: str, **fields: Any) -> ContentNode:
        """Replace optional annotation fields of a node.

        Args:
            node_id: Node to update.
            **fields: Any of score, seo_metadata, geo_score, tokens_used.

        Returns:
            The updated node.
        """
        unknown = set(fields) - _ANNOTATION_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot annotate fields: {', '.join(sorted(unknown))}",
                field="fields",
                value=sorted(unknown),
            )
        node = self.get(node_id).model_copy(update=fields)
        self._nodes[node_id] = node
        return node

    def replace_all(self, nodes: Iterable[ContentNode]) -> None:
        """Swap the whole graph for the given nodes (validated as a new graph)."""
        fresh = ContentGraph(nodes)
        self._nodes = fresh._nodes
        self._order = fresh._order

    def clear(self) -> None:
        self._nodes = {}
        self._order = []

    def snapshot(self) -> list[ContentNode]:
        """Nodes in display order. Safe to keep; nodes are immutable."""
        return list(self)
