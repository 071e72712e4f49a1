import argparse
import logging
from dataclasses import replace
from typing import List, Optional

from rankflow.config import MODES, PAGERANK, VOTE_FLOW, load_config, normalize_mode
from rankflow.graph.io import dump_graph, sample_graph, snapshot_from_dict
from rankflow.graph.model import GraphSnapshot
from rankflow.ranking.leaderboard import format_leaderboard, leaderboard
from rankflow.ranking.pagerank import pagerank_history
from rankflow.ranking.vote_flow import run_vote_flow
from rankflow.utils.io import load_structured
from rankflow.utils.logging import setup_logging

log = logging.getLogger("rankflow.cli")


def run(
    graph_path: Optional[str],
    config_path: Optional[str],
    mode: str,
    steps: Optional[int] = None,
    out_path: Optional[str] = None,
) -> GraphSnapshot:
    mode = normalize_mode(mode)
    if mode not in MODES:
        raise ValueError(f"Unknown ranking mode: {mode!r}")
    # without --config the graph file's own scalars apply
    cfg = load_config(config_path, mode=mode) if config_path else None
    if graph_path:
        data = load_structured(graph_path)
        if not isinstance(data, dict):
            raise ValueError(f"{graph_path}: graph data must be a mapping")
        snap = snapshot_from_dict({**data, "algo": mode}, config=cfg)
    else:
        snap = sample_graph(algo=mode)
        if cfg is not None:
            snap = replace(snap, config=cfg)

    if mode == PAGERANK:
        history = pagerank_history(snap)
    else:
        history = run_vote_flow(snap, steps=steps)
    final = history[-1]

    for state in history[1:]:
        log.info(
            "iteration %d: %s",
            state.current_iteration,
            ", ".join(f"{n.id}={n.rank:.4f}" for n in state.nodes),
        )
    if mode == PAGERANK:
        log.info("converged=%s after %d iteration(s)", final.converged, final.current_iteration)

    print(format_leaderboard(leaderboard(final)))
    if out_path:
        dump_graph(final, out_path)
        log.info("Wrote final snapshot to %s", out_path)
    return final


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Rank graph nodes with PageRank or vote flow")
    ap.add_argument("--graph", default=None, help="graph JSON/YAML (defaults to the built-in sample)")
    ap.add_argument("--config", default=None, help="YAML config with a 'rank' section")
    ap.add_argument("--mode", default=PAGERANK, choices=[PAGERANK, VOTE_FLOW, "vote-flow"])
    ap.add_argument("--steps", type=int, default=None, help="vote-flow steps (default: up to max_iterations)")
    ap.add_argument("--out", default=None, help="write the final snapshot as JSON")
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args(argv)

    setup_logging(args.log_level)
    run(args.graph, args.config, args.mode, steps=args.steps, out_path=args.out)


if __name__ == "__main__":
    main()
