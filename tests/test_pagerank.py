"""Unit tests for the PageRank iterator."""

import pytest

from rankflow.config import RankConfig
from rankflow.graph.io import sample_graph
from rankflow.graph.model import build_graph, snapshot_from_lists
from rankflow.ranking.pagerank import pagerank_history, pagerank_round, run_pagerank


@pytest.fixture
def diamond():
    return sample_graph()


@pytest.fixture
def triangle():
    # strongly connected, no dangling nodes
    return snapshot_from_lists(["A", "B", "C"], [("A", "B"), ("A", "C"), ("B", "C"), ("C", "A")])


class TestRound:
    def test_no_edges_hits_teleport_floor(self):
        graph = build_graph(["A", "B", "C", "D"], [])
        new, delta = pagerank_round(graph, graph.ranks, RankConfig())
        for value in new:
            assert value == pytest.approx(0.15 / 4)
        assert delta == pytest.approx(0.25 - 0.15 / 4)

    def test_dangling_node_leaks_mass(self):
        graph = build_graph(["A", "B"], [("A", "B")])
        new, _ = pagerank_round(graph, graph.ranks, RankConfig())
        assert new[0] == pytest.approx(0.075)
        assert new[1] == pytest.approx(0.075 + 0.85 * 0.5)
        assert new.sum() < 1.0

    def test_empty(self):
        graph = build_graph([], [])
        new, delta = pagerank_round(graph, graph.ranks, RankConfig())
        assert new.size == 0
        assert delta == 0.0


class TestRunPagerank:
    def test_diamond_converges(self, diamond):
        result = run_pagerank(diamond, RankConfig())
        ranks = result.ranks()
        assert result.converged
        assert 1 < result.current_iteration < 100
        assert ranks["A"] == pytest.approx(0.3725, abs=2e-3)
        assert ranks["B"] == pytest.approx(0.1958, abs=2e-3)
        assert ranks["C"] == pytest.approx(0.3941, abs=2e-3)
        assert ranks["D"] == pytest.approx(0.0375, abs=2e-3)
        assert result.max_delta < 0.0001

    def test_normalized_and_non_negative(self, diamond):
        result = run_pagerank(diamond)
        assert result.total_rank() == pytest.approx(1.0, rel=1e-9)
        assert all(n.rank >= 0 for n in result.nodes)

    def test_iteration_cap_without_convergence(self, diamond):
        result = run_pagerank(diamond, RankConfig(max_iterations=1))
        assert result.converged is False
        assert result.current_iteration == 1
        assert result.config.max_iterations == 1
        assert result.total_rank() == pytest.approx(1.0)

    def test_threshold_is_strict(self):
        snap = snapshot_from_lists(["A", "B"], [])
        cfg = RankConfig(damping_factor=0.5, threshold=0.25, max_iterations=1)
        # first round moves every node from 0.5 to exactly 0.25
        assert run_pagerank(snap, cfg).converged is False
        looser = RankConfig(damping_factor=0.5, threshold=0.2500001, max_iterations=1)
        assert run_pagerank(snap, looser).converged is True

    def test_no_edges_renormalizes_to_uniform(self):
        snap = snapshot_from_lists(["A", "B", "C", "D"], [])
        result = run_pagerank(snap)
        assert result.converged
        assert result.current_iteration == 2
        for rank in result.ranks().values():
            assert rank == pytest.approx(0.25)

    def test_dangling_mass_restored(self):
        snap = snapshot_from_lists(["A", "B"], [("A", "B")])
        result = run_pagerank(snap)
        assert result.total_rank() == pytest.approx(1.0)
        assert result.ranks()["B"] > result.ranks()["A"]

    def test_empty_graph(self):
        result = run_pagerank(snapshot_from_lists([], []))
        assert result.nodes == ()
        assert result.current_iteration == 0
        assert result.converged is True

    def test_input_not_mutated(self, diamond):
        before = diamond.ranks()
        result = run_pagerank(diamond)
        assert diamond.ranks() == before
        assert diamond.current_iteration == 0
        assert result is not diamond
        assert result.edges == diamond.edges

    def test_dangling_edges_ignored(self, diamond):
        noisy = snapshot_from_lists(diamond.nodes, list(diamond.edges) + [("A", "ghost")])
        result = run_pagerank(noisy)
        clean = run_pagerank(diamond)
        assert result.dropped_edges == 1
        for nid, rank in clean.ranks().items():
            assert result.ranks()[nid] == pytest.approx(rank)

    def test_config_echoed(self, diamond):
        cfg = RankConfig(damping_factor=0.5, threshold=0.001, max_iterations=30)
        result = run_pagerank(diamond, cfg)
        assert result.config == cfg
        assert result.algo == "pagerank"

    def test_weighted_split(self):
        nodes = ["A", "B", "C"]
        edges = [("A", "B", 3.0), ("A", "C", 1.0), ("B", "A"), ("C", "A")]
        snap = snapshot_from_lists(nodes, edges)
        plain = run_pagerank(snap, RankConfig()).ranks()
        weighted = run_pagerank(snap, RankConfig(weighted=True)).ranks()
        assert plain["B"] == pytest.approx(plain["C"])
        assert weighted["B"] > weighted["C"]


class TestHistory:
    def test_starts_with_initial_state(self, diamond):
        states = pagerank_history(diamond)
        assert states[0].current_iteration == 0
        assert states[0].ranks() == diamond.ranks()
        assert [s.current_iteration for s in states] == list(range(len(states)))

    def test_last_state_matches_run(self, diamond):
        states = pagerank_history(diamond)
        result = run_pagerank(diamond)
        assert states[-1].current_iteration == result.current_iteration
        assert states[-1].converged == result.converged
        for nid, rank in result.ranks().items():
            assert states[-1].ranks()[nid] == pytest.approx(rank)

    def test_every_state_normalized(self, diamond):
        for state in pagerank_history(diamond, RankConfig(max_iterations=10)):
            assert state.total_rank() == pytest.approx(1.0)

    def test_updates_diminish(self, triangle):
        cfg = RankConfig(threshold=1e-12, max_iterations=20)
        deltas = [s.max_delta for s in pagerank_history(triangle, cfg)[1:]]
        assert len(deltas) == 20
        for prev, cur in zip(deltas, deltas[1:]):
            assert cur <= prev + 1e-15
