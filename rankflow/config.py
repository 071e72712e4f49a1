from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from rankflow.utils.io import load_yaml

PAGERANK = "pagerank"
VOTE_FLOW = "vote_flow"
MODES = (PAGERANK, VOTE_FLOW)

DEFAULT_MAX_ITERATIONS: Dict[str, int] = {
    PAGERANK: 100,
    VOTE_FLOW: 10,
}


@dataclass(frozen=True)
class RankConfig:
    """Scalar parameters shared by both ranking modes.

    - damping_factor: probability of following a link, in (0, 1).
    - threshold: strict upper bound on the max per-node delta for convergence.
    - max_iterations: hard cap on PageRank rounds (vote-flow only echoes it).
    - weighted: split rank by edge weight instead of evenly per edge.
    """

    damping_factor: float = 0.85
    threshold: float = 0.0001
    max_iterations: int = DEFAULT_MAX_ITERATIONS[PAGERANK]
    weighted: bool = False

    def __post_init__(self) -> None:
        if not 0.0 < float(self.damping_factor) < 1.0:
            raise ValueError(f"damping_factor must be in (0, 1), got {self.damping_factor}")
        if not float(self.threshold) > 0.0:
            raise ValueError(f"threshold must be > 0, got {self.threshold}")
        if (
            isinstance(self.max_iterations, bool)
            or not isinstance(self.max_iterations, (int, float))
            or not math.isfinite(self.max_iterations)
            or int(self.max_iterations) != self.max_iterations
        ):
            raise ValueError(f"max_iterations must be an integer, got {self.max_iterations!r}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not isinstance(self.weighted, bool):
            raise ValueError(f"weighted must be a boolean, got {self.weighted!r}")
        object.__setattr__(self, "max_iterations", int(self.max_iterations))
        object.__setattr__(self, "damping_factor", float(self.damping_factor))
        object.__setattr__(self, "threshold", float(self.threshold))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def default_config(mode: str = PAGERANK) -> RankConfig:
    return RankConfig(max_iterations=DEFAULT_MAX_ITERATIONS.get(normalize_mode(mode), 100))


def normalize_mode(mode: str) -> str:
    name = (mode or "").strip().lower().replace("-", "_")
    if name in ("votes", "voteflow"):
        return VOTE_FLOW
    return name


def config_from_mapping(data: Optional[Mapping[str, Any]], base: Optional[RankConfig] = None) -> RankConfig:
    """Overlay a plain mapping (YAML section, request body) onto ``base``."""
    base = base or RankConfig()
    if not data:
        return base
    known = {f.name for f in fields(RankConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    merged = base.to_dict()
    merged.update(data)
    return RankConfig(
        damping_factor=float(merged["damping_factor"]),
        threshold=float(merged["threshold"]),
        max_iterations=merged["max_iterations"],
        weighted=merged["weighted"],
    )


def load_config(path: Union[str, Path], mode: Optional[str] = None) -> RankConfig:
    """Load a RankConfig from YAML.

    The file holds a top-level ``rank:`` section and optional per-mode
    overrides under ``modes.<mode>:``.
    """
    cfg = load_yaml(str(path)) or {}
    base = default_config(mode or PAGERANK)
    out = config_from_mapping(cfg.get("rank", {}) or {}, base)
    if mode:
        overrides = (cfg.get("modes", {}) or {}).get(normalize_mode(mode), {}) or {}
        out = config_from_mapping(overrides, out)
    return out
