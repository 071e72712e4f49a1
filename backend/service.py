from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict

from rankflow.config import (
    MODES,
    PAGERANK,
    VOTE_FLOW,
    RankConfig,
    config_from_mapping,
    load_config,
    normalize_mode,
)
from rankflow.graph.io import snapshot_from_dict, snapshot_to_dict
from rankflow.graph.model import GraphSnapshot
from rankflow.ranking.leaderboard import leaderboard
from rankflow.ranking.pagerank import pagerank_history, run_pagerank
from rankflow.ranking.vote_flow import vote_flow_step

from .models import (
    GraphPayload,
    HistoryResponse,
    LeaderboardEntryModel,
    LeaderboardResponse,
)

ROOT_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CONFIG = ROOT_DIR / "configs/default.yaml"

logger = logging.getLogger(__name__)


class RankingService:
    """
    Converts request payloads to snapshots and runs the ranking core.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG) -> None:
        if not config_path.exists():
            raise FileNotFoundError(f"Missing ranking config: {config_path}")
        self.defaults: Dict[str, RankConfig] = {
            mode: load_config(config_path, mode=mode) for mode in MODES
        }

    def pagerank(self, payload: GraphPayload) -> GraphPayload:
        snap = self._to_snapshot(payload, PAGERANK)
        t0 = time.perf_counter()
        result = run_pagerank(snap)
        logger.info(
            "pagerank: %d nodes, %d iterations, converged=%s in %.2f ms",
            len(result.nodes), result.current_iteration, result.converged,
            (time.perf_counter() - t0) * 1000,
        )
        return self._to_payload(result)

    def pagerank_history(self, payload: GraphPayload) -> HistoryResponse:
        snap = self._to_snapshot(payload, PAGERANK)
        return HistoryResponse(states=[self._to_payload(s) for s in pagerank_history(snap)])

    def vote_flow_step(self, payload: GraphPayload) -> GraphPayload:
        snap = self._to_snapshot(payload, VOTE_FLOW)
        return self._to_payload(vote_flow_step(snap))

    def leaderboard(self, payload: GraphPayload) -> LeaderboardResponse:
        snap = self._to_snapshot(payload, payload.algo)
        return LeaderboardResponse(
            entries=[LeaderboardEntryModel(**e.to_dict()) for e in leaderboard(snap)]
        )

    def _to_snapshot(self, payload: GraphPayload, mode: str) -> GraphSnapshot:
        data = payload.model_dump(by_alias=True, exclude_none=True)
        mode = normalize_mode(mode)
        data["algo"] = mode
        overrides = {
            "damping_factor": payload.damping_factor,
            "threshold": payload.threshold,
            "max_iterations": payload.max_iterations,
            "weighted": payload.weighted,
        }
        base = self.defaults.get(mode, self.defaults[PAGERANK])
        cfg = config_from_mapping({k: v for k, v in overrides.items() if v is not None}, base)
        return snapshot_from_dict(data, config=cfg)

    @staticmethod
    def _to_payload(snapshot: GraphSnapshot) -> GraphPayload:
        return GraphPayload.model_validate(snapshot_to_dict(snapshot))
