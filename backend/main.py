from __future__ import annotations

import logging
from typing import Callable, TypeVar

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from rankflow.utils.logging import setup_logging

from .models import GraphPayload, HistoryResponse, LeaderboardResponse
from .service import RankingService


logger = logging.getLogger(__name__)

T = TypeVar("T")

setup_logging()

app = FastAPI(
    title="Rankflow API",
    version="0.1.0",
    description="PageRank and vote-flow ranking for graph visualizations",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

service = RankingService()


def _call(fn: Callable[[GraphPayload], T], payload: GraphPayload) -> T:
    try:
        return fn(payload)
    except ValueError as exc:
        logger.warning("Bad request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # pragma: no cover - unexpected failures
        logger.exception("Unexpected error during ranking")
        raise HTTPException(status_code=500, detail="Ranking failed") from exc


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/pagerank", response_model=GraphPayload, response_model_by_alias=True)
def pagerank(payload: GraphPayload) -> GraphPayload:
    return _call(service.pagerank, payload)


@app.post("/pagerank/history", response_model=HistoryResponse, response_model_by_alias=True)
def pagerank_history(payload: GraphPayload) -> HistoryResponse:
    return _call(service.pagerank_history, payload)


@app.post("/vote-flow/step", response_model=GraphPayload, response_model_by_alias=True)
def vote_flow_step(payload: GraphPayload) -> GraphPayload:
    return _call(service.vote_flow_step, payload)


@app.post("/leaderboard", response_model=LeaderboardResponse)
def leaderboard(payload: GraphPayload) -> LeaderboardResponse:
    return _call(service.leaderboard, payload)


__all__ = ["app"]
