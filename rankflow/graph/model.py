"""
Graph snapshot types and the indexed graph used by the ranking loops.

Snapshots are immutable: every ranking operation returns a new snapshot built
with ``dataclasses.replace`` so callers can keep a step history safely.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from rankflow.config import MODES, PAGERANK, RankConfig, default_config, normalize_mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    id: str
    rank: Optional[float] = None
    label: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError(f"Node id must be a non-empty string, got {self.id!r}")
        if self.rank is not None and (math.isnan(self.rank) or self.rank < 0):
            raise ValueError(f"Node {self.id!r} has invalid rank {self.rank}")

    @property
    def display_label(self) -> str:
        return self.label or self.id


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    weight: float = 1.0
    # votes carried along this edge by the last vote-flow step
    flow: Optional[float] = None

    def __post_init__(self) -> None:
        if math.isnan(self.weight) or self.weight < 0:
            raise ValueError(f"Edge {self.source!r}->{self.target!r} has invalid weight {self.weight}")


NodeLike = Union[Node, Mapping[str, Any], str]
EdgeLike = Union[Edge, Mapping[str, Any], Sequence[Any]]


def as_node(item: NodeLike) -> Node:
    if isinstance(item, Node):
        return item
    if isinstance(item, str):
        return Node(id=item)
    if isinstance(item, Mapping):
        if "id" not in item:
            raise ValueError(f"Node descriptor is missing 'id': {dict(item)!r}")
        rank = item.get("rank")
        return Node(
            id=str(item["id"]),
            rank=None if rank is None else float(rank),
            label=item.get("label"),
            x=_opt_float(item.get("x")),
            y=_opt_float(item.get("y")),
        )
    raise ValueError(f"Unsupported node descriptor: {item!r}")


def as_edge(item: EdgeLike) -> Edge:
    if isinstance(item, Edge):
        return item
    if isinstance(item, Mapping):
        try:
            source, target = item["source"], item["target"]
        except KeyError as exc:
            raise ValueError(f"Edge descriptor is missing {exc.args[0]!r}: {dict(item)!r}") from exc
        weight = item.get("weight")
        return Edge(
            source=str(source),
            target=str(target),
            weight=1.0 if weight is None else float(weight),
            flow=_opt_float(item.get("flow")),
        )
    if isinstance(item, (tuple, list)) and len(item) in (2, 3):
        weight = float(item[2]) if len(item) == 3 else 1.0
        return Edge(source=str(item[0]), target=str(item[1]), weight=weight)
    raise ValueError(f"Unsupported edge descriptor: {item!r}")


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _check_unique(ids: Sequence[str]) -> None:
    seen = set()
    for nid in ids:
        if nid in seen:
            raise ValueError(f"Duplicate node id: {nid!r}")
        seen.add(nid)


@dataclass(frozen=True)
class GraphSnapshot:
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    config: RankConfig = field(default_factory=RankConfig)
    current_iteration: int = 0
    converged: bool = False
    algo: str = PAGERANK
    dropped_edges: int = 0
    max_delta: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(as_node(n) for n in self.nodes))
        object.__setattr__(self, "edges", tuple(as_edge(e) for e in self.edges))
        _check_unique([n.id for n in self.nodes])
        if self.current_iteration < 0:
            raise ValueError(f"current_iteration must be >= 0, got {self.current_iteration}")

    def ranks(self) -> Dict[str, float]:
        """Node ranks by id; a missing rank reads as 1/N, as in build_graph."""
        uniform = 1.0 / len(self.nodes) if self.nodes else 0.0
        return {n.id: (uniform if n.rank is None else float(n.rank)) for n in self.nodes}

    def total_rank(self) -> float:
        return float(sum(self.ranks().values()))

    def with_ranks(self, ranks: Iterable[float], **changes: Any) -> "GraphSnapshot":
        nodes = tuple(replace(n, rank=float(r)) for n, r in zip(self.nodes, ranks))
        return replace(self, nodes=nodes, **changes)


class Graph:
    """Adjacency-indexed view over a node/edge list.

    Only edges whose endpoints both exist take part in ranking; the rest are
    counted in ``dropped_edges``. ``edge_positions`` maps each kept edge back
    to its position in the input edge list so flows can be written back.
    """

    def __init__(
        self,
        node_ids: List[str],
        ranks: np.ndarray,
        edge_positions: List[int],
        sources: List[int],
        targets: List[int],
        weights: List[float],
        dropped_edges: int = 0,
    ) -> None:
        n = len(node_ids)
        self.node_ids = list(node_ids)
        self.index: Dict[str, int] = {nid: i for i, nid in enumerate(self.node_ids)}
        self.ranks = np.asarray(ranks, dtype=np.float64)
        self.edge_positions = np.asarray(edge_positions, dtype=np.int64)
        self.sources = np.asarray(sources, dtype=np.int64)
        self.targets = np.asarray(targets, dtype=np.int64)
        self.weights = np.asarray(weights, dtype=np.float64)
        self.dropped_edges = int(dropped_edges)

        self.out_degree = np.bincount(self.sources, minlength=n)
        self.out_weight = np.bincount(self.sources, weights=self.weights, minlength=n).astype(np.float64)

        self.outgoing: List[List[Tuple[int, float]]] = [[] for _ in range(n)]
        self.incoming: List[List[Tuple[int, float]]] = [[] for _ in range(n)]
        for s, t, w in zip(sources, targets, weights):
            self.outgoing[s].append((t, float(w)))
            self.incoming[t].append((s, float(w)))

    def __len__(self) -> int:
        return len(self.node_ids)

    @property
    def num_edges(self) -> int:
        return int(self.sources.shape[0])

    def edge_shares(self, weighted: bool = False) -> np.ndarray:
        """Fraction of its source's mass each kept edge carries.

        Unweighted: 1 / out_degree(source). Weighted: weight / out_weight(source),
        with zero-weight fan-outs carrying nothing.
        """
        if self.num_edges == 0:
            return np.zeros(0, dtype=np.float64)
        if weighted:
            denom = self.out_weight[self.sources]
            shares = np.zeros_like(denom)
            np.divide(self.weights, denom, out=shares, where=denom > 0)
            return shares
        return 1.0 / self.out_degree[self.sources].astype(np.float64)

    def is_dangling(self, weighted: bool = False) -> np.ndarray:
        if weighted:
            return self.out_weight <= 0
        return self.out_degree == 0

    @classmethod
    def from_snapshot(cls, snapshot: GraphSnapshot) -> "Graph":
        return build_graph(snapshot.nodes, snapshot.edges)


def build_graph(nodes: Iterable[NodeLike], edges: Iterable[EdgeLike]) -> Graph:
    """Index nodes and edges for O(N + E) rank propagation.

    Nodes without a rank start at 1/N. Edges naming an unknown node are
    skipped, never raised on.
    """
    node_list = [as_node(n) for n in nodes]
    ids = [n.id for n in node_list]
    _check_unique(ids)
    n = len(ids)
    uniform = 1.0 / n if n else 0.0
    ranks = np.array(
        [uniform if nd.rank is None else float(nd.rank) for nd in node_list],
        dtype=np.float64,
    )
    index = {nid: i for i, nid in enumerate(ids)}

    positions: List[int] = []
    sources: List[int] = []
    targets: List[int] = []
    weights: List[float] = []
    dropped = 0
    for pos, item in enumerate(edges):
        edge = as_edge(item)
        s = index.get(edge.source)
        t = index.get(edge.target)
        if s is None or t is None:
            dropped += 1
            logger.debug("Ignoring dangling edge %s->%s", edge.source, edge.target)
            continue
        positions.append(pos)
        sources.append(s)
        targets.append(t)
        weights.append(float(edge.weight))

    if dropped:
        logger.warning("Dropped %d edge(s) referencing unknown node ids", dropped)
    return Graph(ids, ranks, positions, sources, targets, weights, dropped_edges=dropped)


def snapshot_from_lists(
    nodes: Iterable[NodeLike],
    edges: Iterable[EdgeLike],
    config: Optional[RankConfig] = None,
    algo: str = PAGERANK,
) -> GraphSnapshot:
    """Build a fresh snapshot with resolved initial ranks."""
    mode = normalize_mode(algo)
    if mode not in MODES:
        raise ValueError(f"Unknown ranking mode: {algo!r} (expected one of {', '.join(MODES)})")
    node_list = tuple(as_node(n) for n in nodes)
    edge_list = tuple(as_edge(e) for e in edges)
    graph = build_graph(node_list, edge_list)
    node_list = tuple(replace(nd, rank=float(r)) for nd, r in zip(node_list, graph.ranks))
    return GraphSnapshot(
        nodes=node_list,
        edges=edge_list,
        config=config or default_config(mode),
        algo=mode,
        dropped_edges=graph.dropped_edges,
    )
