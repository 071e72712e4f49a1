from __future__ import annotations

import pytest

from rankflow.config import RankConfig, config_from_mapping, default_config, load_config
from rankflow.graph.io import sample_graph
from rankflow.ranking.engine import rank_graph
from rankflow.ranking.leaderboard import format_leaderboard, leaderboard
from rankflow.graph.model import GraphSnapshot, Node, snapshot_from_lists


def test_dispatch_follows_snapshot_algo():
    pr = rank_graph(sample_graph("pagerank"))
    vf = rank_graph(sample_graph("vote_flow"))
    assert pr.converged and pr.current_iteration > 1
    assert vf.current_iteration == 1
    assert vf.ranks()["C"] == pytest.approx(0.625)


def test_explicit_mode_overrides_algo():
    result = rank_graph(sample_graph("pagerank"), mode="vote-flow")
    assert result.current_iteration == 1
    assert all(e.flow is not None for e in result.edges)


def test_unknown_mode():
    with pytest.raises(ValueError, match="Unknown ranking mode"):
        rank_graph(sample_graph(), mode="hits")


def test_config_argument_wins():
    result = rank_graph(sample_graph(), config=RankConfig(max_iterations=2))
    assert result.current_iteration == 2
    assert not result.converged


class TestConfig:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"damping_factor": 0.0},
            {"damping_factor": 1.0},
            {"damping_factor": -0.5},
            {"threshold": 0.0},
            {"max_iterations": 0},
            {"max_iterations": -3},
            {"max_iterations": 2.5},
            {"max_iterations": float("inf")},
            {"max_iterations": float("nan")},
            {"weighted": "false"},
            {"weighted": 1},
        ],
    )
    def test_invalid_values_fail_fast(self, kwargs):
        with pytest.raises(ValueError):
            RankConfig(**kwargs)

    def test_mode_defaults(self):
        assert default_config("pagerank").max_iterations == 100
        assert default_config("vote_flow").max_iterations == 10
        assert default_config("vote-flow").damping_factor == 0.85

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "rank.yaml"
        path.write_text(
            "rank:\n  damping_factor: 0.9\n  threshold: 0.001\n"
            "modes:\n  vote_flow:\n    max_iterations: 5\n",
            encoding="utf-8",
        )
        cfg = load_config(path, mode="vote_flow")
        assert cfg == RankConfig(damping_factor=0.9, threshold=0.001, max_iterations=5)
        assert load_config(path).max_iterations == 100

    def test_load_yaml_unknown_key(self, tmp_path):
        path = tmp_path / "rank.yaml"
        path.write_text("rank:\n  dampening: 0.9\n", encoding="utf-8")
        with pytest.raises(ValueError, match="dampening"):
            load_config(path)

    def test_weighted_must_be_boolean(self, tmp_path):
        with pytest.raises(ValueError, match="weighted"):
            config_from_mapping({"weighted": "false"})
        path = tmp_path / "rank.yaml"
        path.write_text("rank:\n  weighted: \"yes\"\n", encoding="utf-8")
        with pytest.raises(ValueError, match="weighted"):
            load_config(path)
        assert config_from_mapping({"weighted": True}).weighted is True


class TestLeaderboard:
    def test_sorted_by_rank(self):
        snap = rank_graph(sample_graph("vote_flow"))
        entries = leaderboard(snap)
        assert [e.id for e in entries] == ["C", "A", "B", "D"]
        assert [e.position for e in entries] == [1, 2, 3, 4]
        assert [e.votes for e in entries] == [63, 25, 13, 0]

    def test_ties_keep_input_order(self):
        snap = snapshot_from_lists(["x", "y", "z"], [])
        assert [e.id for e in leaderboard(snap)] == ["x", "y", "z"]

    def test_label_fallback(self):
        snap = snapshot_from_lists([{"id": "p1", "label": "Home"}, "p2"], [])
        labels = [e.label for e in leaderboard(snap)]
        assert labels == ["Home", "p2"]

    def test_missing_ranks_read_as_uniform(self):
        snap = GraphSnapshot(nodes=[Node("A"), Node("B")])
        entries = leaderboard(snap)
        assert [e.rank for e in entries] == [0.5, 0.5]
        assert [e.votes for e in entries] == [50, 50]

    def test_format(self):
        text = format_leaderboard(leaderboard(sample_graph()))
        assert text.splitlines()[0].startswith("  1. A")
        assert "25 votes" in text
