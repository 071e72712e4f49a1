"""Mode dispatch over the two ranking operations."""

from typing import Callable, Dict, Optional

from rankflow.config import MODES, PAGERANK, VOTE_FLOW, RankConfig, normalize_mode
from rankflow.graph.model import GraphSnapshot
from rankflow.ranking.pagerank import run_pagerank
from rankflow.ranking.vote_flow import vote_flow_step

RankFn = Callable[[GraphSnapshot, Optional[RankConfig]], GraphSnapshot]

_DISPATCH: Dict[str, RankFn] = {
    PAGERANK: run_pagerank,
    VOTE_FLOW: vote_flow_step,
}


def resolve_mode(mode: Optional[str], snapshot: GraphSnapshot) -> str:
    name = normalize_mode(mode or snapshot.algo)
    if name not in _DISPATCH:
        raise ValueError(f"Unknown ranking mode: {mode or snapshot.algo!r} (expected one of {', '.join(MODES)})")
    return name


def rank_graph(
    snapshot: GraphSnapshot,
    mode: Optional[str] = None,
    config: Optional[RankConfig] = None,
) -> GraphSnapshot:
    """Run PageRank to convergence or a single vote-flow step.

    ``mode`` defaults to the snapshot's own ``algo`` tag.
    """
    name = resolve_mode(mode, snapshot)
    return _DISPATCH[name](snapshot, config)
