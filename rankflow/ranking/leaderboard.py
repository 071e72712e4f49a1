from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from rankflow.graph.model import GraphSnapshot

TOTAL_VISITORS = 100


@dataclass(frozen=True)
class LeaderboardEntry:
    position: int
    id: str
    label: str
    rank: float
    votes: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def leaderboard(snapshot: GraphSnapshot, total: int = TOTAL_VISITORS) -> List[LeaderboardEntry]:
    """Nodes sorted by rank, highest first; ties keep input order."""
    ranks = snapshot.ranks()
    ordered = sorted(snapshot.nodes, key=lambda n: -ranks[n.id])
    return [
        LeaderboardEntry(
            position=i + 1,
            id=node.id,
            label=node.display_label,
            rank=ranks[node.id],
            votes=_round_half_up(ranks[node.id] * total),
        )
        for i, node in enumerate(ordered)
    ]


def format_leaderboard(entries: List[LeaderboardEntry]) -> str:
    lines = [f"{e.position:>3}. {e.label:<12} {e.rank:.4f} ({e.votes} votes)" for e in entries]
    return "\n".join(lines)
