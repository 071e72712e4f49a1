"""
Wire format for graph snapshots.

Uses the camelCase layout the visualization front end exchanges::

    {"nodes": [{"id": "A", "rank": 0.25, "label": "A", "x": 100, "y": 100}],
     "links": [{"source": "A", "target": "B", "weight": 1, "flow": 12.5}],
     "currentIteration": 0, "maxIterations": 10, "dampingFactor": 0.85,
     "threshold": 0.0001, "algo": "pagerank"}
"""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from rankflow.config import PAGERANK, RankConfig, config_from_mapping, default_config, normalize_mode
from rankflow.graph.model import Edge, GraphSnapshot, Node, snapshot_from_lists
from rankflow.utils.io import load_structured, write_json

_CONFIG_KEYS = {
    "dampingFactor": "damping_factor",
    "threshold": "threshold",
    "maxIterations": "max_iterations",
    "weighted": "weighted",
}


def snapshot_from_dict(data: Mapping[str, Any], config: Optional[RankConfig] = None) -> GraphSnapshot:
    """Parse a GraphData mapping; ``config`` overrides the embedded scalars."""
    if not isinstance(data, Mapping):
        raise ValueError("graph data must be a mapping")
    nodes = data.get("nodes")
    links = data.get("links", data.get("edges", []))
    if not isinstance(nodes, list):
        raise ValueError("Invalid graph data: 'nodes' must be a list")
    if not isinstance(links, list):
        raise ValueError("Invalid graph data: 'links' must be a list")

    mode = normalize_mode(data.get("algo") or PAGERANK)
    if config is None:
        overrides = {
            name: data[key] for key, name in _CONFIG_KEYS.items() if data.get(key) is not None
        }
        config = config_from_mapping(overrides, default_config(mode))

    snap = snapshot_from_lists(nodes, links, config=config, algo=mode)
    return replace(
        snap,
        current_iteration=int(data.get("currentIteration") or 0),
        converged=bool(data.get("converged", False)),
    )


def _node_to_dict(node: Node) -> Dict[str, Any]:
    out: Dict[str, Any] = {"id": node.id, "rank": node.rank}
    for key in ("label", "x", "y"):
        value = getattr(node, key)
        if value is not None:
            out[key] = value
    return out


def _edge_to_dict(edge: Edge) -> Dict[str, Any]:
    out: Dict[str, Any] = {"source": edge.source, "target": edge.target, "weight": edge.weight}
    if edge.flow is not None:
        out["flow"] = edge.flow
    return out


def snapshot_to_dict(snapshot: GraphSnapshot) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "nodes": [_node_to_dict(n) for n in snapshot.nodes],
        "links": [_edge_to_dict(e) for e in snapshot.edges],
        "currentIteration": snapshot.current_iteration,
        "maxIterations": snapshot.config.max_iterations,
        "dampingFactor": snapshot.config.damping_factor,
        "threshold": snapshot.config.threshold,
        "weighted": snapshot.config.weighted,
        "algo": snapshot.algo,
        "converged": snapshot.converged,
        "droppedEdges": snapshot.dropped_edges,
    }
    if snapshot.max_delta is not None:
        out["maxDelta"] = snapshot.max_delta
    return out


def load_graph(path: Union[str, Path], config: Optional[RankConfig] = None) -> GraphSnapshot:
    return snapshot_from_dict(load_structured(str(path)), config=config)


def dump_graph(snapshot: GraphSnapshot, path: Union[str, Path]) -> None:
    write_json(str(path), snapshot_to_dict(snapshot))


def sample_graph(algo: str = PAGERANK) -> GraphSnapshot:
    """Four-page demo: A->B, A->C, B->C, C->A, D->C with equal starting ranks."""
    nodes = [
        Node("A", rank=0.25, label="A", x=100, y=100),
        Node("B", rank=0.25, label="B", x=250, y=100),
        Node("C", rank=0.25, label="C", x=175, y=200),
        Node("D", rank=0.25, label="D", x=50, y=200),
    ]
    edges = [("A", "B"), ("A", "C"), ("B", "C"), ("C", "A"), ("D", "C")]
    return snapshot_from_lists(nodes, edges, algo=algo)
