# src/navigation/graph.py
"""
GraphStore: immutable-after-load building graph.

Responsibilities:
- Hold nodes (id, name, planar coordinate, floor) and directed weighted edges.
- Mirror every loaded edge so the graph is effectively undirected.
- Join stair/landing nodes on different floors with fixed-cost connector edges.
- Answer neighbor lookups for the planner and the intersection resolver.

It does NOT:
- Parse any file format (the caller hands over validated records).
- Know anything about routes or motion.

Parallel edges between the same pair of nodes are legal input; they are
kept in the underlying networkx MultiDiGraph and collapsed by target id in
neighbor_ids().
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

import networkx as nx

from .errors import UnknownNodeError
from .geometry import distance
from .types import Edge, Node, Point

logger = logging.getLogger(__name__)

DEFAULT_CONNECTOR_COST = 50.0

EDGE_KIND_WALK = "walk"
EDGE_KIND_CONNECTOR = "connector"


class GraphStore:
    """Read-only node/edge store with neighbor queries."""

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        self._graph = nx.MultiDiGraph()
        self._frozen = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        connectors: Iterable[Tuple[str, str]] = (),
        connector_cost: float = DEFAULT_CONNECTOR_COST,
    ) -> "GraphStore":
        """
        Build and freeze a store.

        Every edge (u, v, c) is stored together with its mirror (v, u, c).
        `connectors` lists (stair_id, landing_id) pairs on different floors;
        each becomes a pair of edges with `connector_cost`.
        """
        store = cls()
        for node in nodes:
            store._add_node(node)

        edge_count = 0
        for edge in edges:
            store._add_edge(edge, kind=EDGE_KIND_WALK)
            store._add_edge(edge.mirrored(), kind=EDGE_KIND_WALK)
            edge_count += 1

        connector_count = 0
        for a, b in connectors:
            store._add_connector(a, b, connector_cost)
            connector_count += 1

        store._freeze()
        logger.info(
            "GraphStore built: %d nodes, %d edges (+mirrors), %d floor connectors",
            len(store._nodes),
            edge_count,
            connector_count,
        )
        return store

    def _add_node(self, node: Node) -> None:
        if node.id in self._nodes:
            raise ValueError(f"Duplicate node id: {node.id!r}")
        if not (math.isfinite(node.x) and math.isfinite(node.y)):
            raise ValueError(f"Node {node.id!r} has non-finite coordinates")
        self._nodes[node.id] = node
        self._graph.add_node(node.id)

    def _add_edge(self, edge: Edge, kind: str) -> None:
        for node_id in (edge.source, edge.target):
            if node_id not in self._nodes:
                raise UnknownNodeError(node_id)
        if not math.isfinite(edge.cost) or edge.cost < 0:
            raise ValueError(
                f"Edge {edge.source!r}->{edge.target!r} has invalid cost {edge.cost!r}"
            )
        self._graph.add_edge(edge.source, edge.target, cost=float(edge.cost), kind=kind)

    def _add_connector(self, a: str, b: str, cost: float) -> None:
        node_a = self.node(a)
        node_b = self.node(b)
        if node_a.floor == node_b.floor:
            raise ValueError(
                f"Connector {a!r}<->{b!r} must join different floors "
                f"(both on floor {node_a.floor})"
            )
        edge = Edge(source=a, target=b, cost=cost)
        self._add_edge(edge, kind=EDGE_KIND_CONNECTOR)
        self._add_edge(edge.mirrored(), kind=EDGE_KIND_CONNECTOR)

    def _freeze(self) -> None:
        nx.freeze(self._graph)
        self._frozen = True

    # ------------------------------------------------------------------
    # Node queries
    # ------------------------------------------------------------------

    def node(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def nodes(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def point(self, node_id: str) -> Point:
        return self.node(node_id).point

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Edge queries
    # ------------------------------------------------------------------

    def neighbors(self, node_id: str) -> Set[Tuple[str, float]]:
        """All outgoing (target, cost) pairs, parallel edges included."""
        if node_id not in self._nodes:
            raise UnknownNodeError(node_id)
        return {
            (target, data["cost"])
            for _, target, data in self._graph.out_edges(node_id, data=True)
        }

    def out_edges(self, node_id: str) -> List[Tuple[str, float]]:
        """Outgoing (target, cost) pairs in load order, parallel edges included."""
        if node_id not in self._nodes:
            raise UnknownNodeError(node_id)
        return [
            (target, data["cost"])
            for _, target, data in self._graph.out_edges(node_id, data=True)
        ]

    def neighbor_ids(self, node_id: str) -> List[str]:
        """Outgoing target ids, one per target, in load order."""
        if node_id not in self._nodes:
            raise UnknownNodeError(node_id)
        return list(self._graph.successors(node_id))

    def edges(self) -> Iterator[Edge]:
        for source, target, data in self._graph.edges(data=True):
            yield Edge(source=source, target=target, cost=data["cost"])

    def has_edge(self, source: str, target: str) -> bool:
        return self._graph.has_edge(source, target)

    def edge_cost(self, source: str, target: str) -> float:
        """Cheapest cost among (possibly parallel) edges source -> target."""
        if not self._graph.has_edge(source, target):
            raise KeyError(f"No edge {source!r}->{target!r}")
        return min(data["cost"] for data in self._graph[source][target].values())

    def is_connector(self, source: str, target: str) -> bool:
        if not self._graph.has_edge(source, target):
            return False
        return any(
            data.get("kind") == EDGE_KIND_CONNECTOR
            for data in self._graph[source][target].values()
        )

    # ------------------------------------------------------------------
    # Spatial helpers
    # ------------------------------------------------------------------

    def nearest_node(self, point: Point, floor: Optional[int] = None) -> str:
        """Id of the node closest to `point`, optionally limited to one floor."""
        best_id: Optional[str] = None
        best = math.inf
        for node in self._nodes.values():
            if floor is not None and node.floor != floor:
                continue
            d = distance(point, node.point)
            if d < best:
                best = d
                best_id = node.id
        if best_id is None:
            raise ValueError(f"No nodes available on floor {floor!r}")
        return best_id

    def to_networkx(self) -> nx.MultiDiGraph:
        """Frozen view of the underlying graph (for analysis and tests)."""
        return self._graph
