"""
Damped random-walk PageRank over a graph snapshot.

Implements the synchronous power-iteration update

    r_{t+1}(v) = (1 - d) / N + d * sum_{u -> v} r_t(u) / outDegree(u)

Nodes without outgoing edges pass nothing on, so total mass can shrink
between rounds; the final ranks are renormalized to sum to 1.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator, List, Optional, Tuple

import numpy as np

from rankflow.config import PAGERANK, RankConfig
from rankflow.graph.model import Graph, GraphSnapshot
from rankflow.ranking.normalize import max_absolute_delta, normalize_to_sum

logger = logging.getLogger(__name__)


def pagerank_round(
    graph: Graph,
    ranks: np.ndarray,
    config: RankConfig,
    shares: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, float]:
    """Apply one update to every node from the previous ranks.

    Returns the new (unnormalized) rank vector and the max per-node change.
    ``shares`` may be passed in to reuse ``graph.edge_shares`` across rounds.
    """
    n = len(graph)
    ranks = np.asarray(ranks, dtype=np.float64)
    if n == 0:
        return np.zeros(0, dtype=np.float64), 0.0

    d = config.damping_factor
    teleport = (1.0 - d) / n
    rank_sum = np.zeros(n, dtype=np.float64)
    if graph.num_edges:
        if shares is None:
            shares = graph.edge_shares(config.weighted)
        np.add.at(rank_sum, graph.targets, ranks[graph.sources] * shares)

    new_ranks = teleport + d * rank_sum
    return new_ranks, max_absolute_delta(ranks, new_ranks)


def _rounds(graph: Graph, config: RankConfig) -> Iterator[Tuple[int, np.ndarray, float, bool]]:
    shares = graph.edge_shares(config.weighted)
    ranks = graph.ranks.copy()
    for iteration in range(1, config.max_iterations + 1):
        ranks, delta = pagerank_round(graph, ranks, config, shares=shares)
        converged = delta < config.threshold
        logger.debug("round %d: max_delta=%.6g mass=%.6f", iteration, delta, float(ranks.sum()))
        yield iteration, ranks, delta, converged
        if converged:
            return


def _empty_result(snapshot: GraphSnapshot, config: RankConfig, graph: Graph) -> GraphSnapshot:
    return replace(
        snapshot,
        config=config,
        algo=PAGERANK,
        current_iteration=0,
        converged=True,
        max_delta=0.0,
        dropped_edges=graph.dropped_edges,
    )


def run_pagerank(snapshot: GraphSnapshot, config: Optional[RankConfig] = None) -> GraphSnapshot:
    """Iterate until the max delta drops below ``threshold`` or the cap is hit.

    ``current_iteration`` on the result is the number of rounds this run
    performed; edges are returned untouched.
    """
    cfg = config or snapshot.config
    graph = Graph.from_snapshot(snapshot)
    if len(graph) == 0:
        return _empty_result(snapshot, cfg, graph)

    iteration, ranks, delta, converged = 0, graph.ranks, 0.0, False
    for iteration, ranks, delta, converged in _rounds(graph, cfg):
        pass

    logger.info(
        "PageRank stopped after %d/%d iteration(s), converged=%s, max_delta=%.6g",
        iteration, cfg.max_iterations, converged, delta,
    )
    return snapshot.with_ranks(
        normalize_to_sum(ranks, 1.0),
        config=cfg,
        algo=PAGERANK,
        current_iteration=iteration,
        converged=converged,
        max_delta=delta,
        dropped_edges=graph.dropped_edges,
    )


def pagerank_history(snapshot: GraphSnapshot, config: Optional[RankConfig] = None) -> List[GraphSnapshot]:
    """Initial state plus one renormalized snapshot per PageRank round."""
    cfg = config or snapshot.config
    graph = Graph.from_snapshot(snapshot)
    if len(graph) == 0:
        return [_empty_result(snapshot, cfg, graph)]

    initial = snapshot.with_ranks(
        normalize_to_sum(graph.ranks, 1.0),
        config=cfg,
        algo=PAGERANK,
        current_iteration=0,
        converged=False,
        max_delta=None,
        dropped_edges=graph.dropped_edges,
    )
    states = [initial]
    for iteration, ranks, delta, converged in _rounds(graph, cfg):
        states.append(
            initial.with_ranks(
                normalize_to_sum(ranks, 1.0),
                current_iteration=iteration,
                converged=converged,
                max_delta=delta,
            )
        )
    return states
