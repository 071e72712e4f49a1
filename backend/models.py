from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Algo = Literal["pagerank", "vote_flow", "vote-flow"]


class NodeModel(BaseModel):
    id: str = Field(..., min_length=1)
    rank: Optional[float] = Field(default=None, ge=0)
    label: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None


class LinkModel(BaseModel):
    source: str
    target: str
    weight: float = Field(default=1.0, ge=0)
    flow: Optional[float] = None


class GraphPayload(BaseModel):
    """GraphData as exchanged with the visualization front end (camelCase)."""

    model_config = ConfigDict(populate_by_name=True)

    nodes: List[NodeModel] = Field(default_factory=list)
    links: List[LinkModel] = Field(default_factory=list)
    current_iteration: int = Field(default=0, ge=0, alias="currentIteration")
    max_iterations: Optional[int] = Field(default=None, ge=1, alias="maxIterations")
    damping_factor: Optional[float] = Field(default=None, gt=0, lt=1, alias="dampingFactor")
    threshold: Optional[float] = Field(default=None, gt=0)
    weighted: Optional[bool] = None
    algo: Algo = "pagerank"
    converged: bool = False
    dropped_edges: int = Field(default=0, ge=0, alias="droppedEdges")
    max_delta: Optional[float] = Field(default=None, alias="maxDelta")


class HistoryResponse(BaseModel):
    states: List[GraphPayload]


class LeaderboardEntryModel(BaseModel):
    position: int
    id: str
    label: str
    rank: float
    votes: int


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntryModel]
