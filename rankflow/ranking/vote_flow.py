"""
Discrete vote-flow model used for step-by-step visualization.

Each node holds ``rank * 100`` votes. On every step it splits them evenly over
its outgoing edges (parallel edges count separately), or keeps them all when
it has none. Totals are then renormalized back to 100 votes and each edge's
``flow`` records how many votes it carried on that scale.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional

import numpy as np

from rankflow.config import RankConfig
from rankflow.graph.model import Graph, GraphSnapshot
from rankflow.ranking.normalize import normalize_to_sum

logger = logging.getLogger(__name__)

TOTAL_VOTES = 100.0


def vote_flow_step(snapshot: GraphSnapshot, config: Optional[RankConfig] = None) -> GraphSnapshot:
    cfg = config or snapshot.config
    graph = Graph.from_snapshot(snapshot)

    votes = graph.ranks * TOTAL_VOTES
    new_votes = np.zeros(len(graph), dtype=np.float64)
    flows = np.zeros(len(snapshot.edges), dtype=np.float64)

    if graph.num_edges:
        edge_votes = votes[graph.sources] * graph.edge_shares(cfg.weighted)
        np.add.at(new_votes, graph.targets, edge_votes)
        flows[graph.edge_positions] = edge_votes

    # no way out: keep everything
    dangling = graph.is_dangling(cfg.weighted)
    new_votes[dangling] += votes[dangling]

    total = float(new_votes.sum())
    logger.debug(
        "vote-flow step %d: %.6f votes in, %.6f votes out",
        snapshot.current_iteration + 1, float(votes.sum()), total,
    )
    if total > 0:
        flows *= TOTAL_VOTES / total
    else:
        flows[:] = 0.0

    edges = tuple(replace(e, flow=float(f)) for e, f in zip(snapshot.edges, flows))
    return snapshot.with_ranks(
        normalize_to_sum(new_votes, 1.0),
        edges=edges,
        config=cfg,
        current_iteration=snapshot.current_iteration + 1,
        dropped_edges=graph.dropped_edges,
    )


def run_vote_flow(
    snapshot: GraphSnapshot,
    steps: Optional[int] = None,
    config: Optional[RankConfig] = None,
) -> List[GraphSnapshot]:
    """Return the starting snapshot followed by one snapshot per step.

    Without ``steps``, runs until ``current_iteration`` reaches ``max_iterations``.
    """
    cfg = config or snapshot.config
    if steps is None:
        steps = max(cfg.max_iterations - snapshot.current_iteration, 0)
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")

    current = replace(snapshot, config=cfg)
    history = [current]
    for _ in range(steps):
        current = vote_flow_step(current, cfg)
        history.append(current)
    return history
