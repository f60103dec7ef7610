# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cluster rebalance: round-robin placement over connected hosts."""
from __future__ import annotations

import pytest

from fakes.fake_directory import FakeDirectory
from fakes.fake_logger import FakeLogger
from fakes.fake_topology import FakeTopology
from vradrain.core.exceptions import PreconditionError
from vradrain.core.models import Host, ProtectionAssignment, RebalancePlan, RebalanceResult, Workload
from vradrain.orchestrator.rebalance import ClusterRebalancer


def _rebalancer(directory, topology, **kw):
    return ClusterRebalancer(FakeLogger(), directory, topology, **kw)


@pytest.mark.unit
class TestRoundRobin:
    def test_worked_example(self):
        directory = FakeDirectory({"H1": ["A", "B", "E"], "H2": ["C"], "H3": ["D"]})
        topology = FakeTopology(clusters={"C1": ["H1", "H2", "H3"]})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        # Plan order is host order, then manager order: A B E C D.
        assert result.mapping == [("A", "H1"), ("B", "H2"), ("E", "H3"), ("C", "H1"), ("D", "H2")]
        assert directory.calls == [
            ("B", "H1", "H2"),
            ("E", "H1", "H3"),
            ("C", "H2", "H1"),
            ("D", "H3", "H2"),
        ]
        assert result.already_placed == 1
        assert result.moved == 4
        assert result.processed == result.total == 5
        assert result.ok

    def test_literal_assignment_order(self):
        directory = FakeDirectory({"H1": ["A", "B", "E"], "H2": ["C"], "H3": ["D"]})
        hosts = (Host("H1"), Host("H2"), Host("H3"))
        plan = RebalancePlan(
            cluster="C1",
            hosts=hosts,
            assignments=tuple(
                ProtectionAssignment(Workload(w), Host(h))
                for h, w in [("H1", "A"), ("H1", "B"), ("H2", "C"), ("H3", "D"), ("H1", "E")]
            ),
        )
        result = RebalanceResult(cluster="C1")

        _rebalancer(directory, FakeTopology())._round_robin_assign(plan, result, FakeLogger())

        assert directory.calls == [
            ("B", "H1", "H2"),
            ("C", "H2", "H3"),
            ("D", "H3", "H1"),
            ("E", "H1", "H2"),
        ]
        assert result.already_placed == 1
        assert result.moved == 4

    @pytest.mark.parametrize("n,m", [(6, 3), (7, 3), (5, 2), (1, 4), (10, 1)])
    def test_counts_differ_by_at_most_one(self, n, m):
        hosts = [f"H{i}" for i in range(m)]
        directory = FakeDirectory({hosts[0]: [f"W{i}" for i in range(n)]})
        topology = FakeTopology(clusters={"C1": hosts})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        counts = [directory.count(h) for h in hosts]
        assert sum(counts) == n
        assert max(counts) - min(counts) <= 1
        assert result.processed == n

    def test_balanced_cluster_costs_no_calls(self):
        directory = FakeDirectory({"H1": ["A"], "H2": ["B"], "H3": ["C"]})
        topology = FakeTopology(clusters={"C1": ["H1", "H2", "H3"]})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        assert directory.calls == []
        assert result.already_placed == 3
        assert result.moved == 0

    def test_deterministic(self):
        def run():
            directory = FakeDirectory({"H1": ["A", "B", "C", "D"], "H2": ["E"]})
            topology = FakeTopology(clusters={"C1": ["H1", "H2", "H3"]})
            _rebalancer(directory, topology).rebalance_cluster("C1")
            return directory.calls

        assert run() == run()

    def test_appliances_excluded_from_plan(self):
        directory = FakeDirectory({"H1": ["A", "Z-VRA-H1"], "H2": []})
        topology = FakeTopology(clusters={"C1": ["H1", "H2"]})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        assert result.total == 1
        assert [m[0] for m in result.mapping] == ["A"]

    def test_duplicate_reports_keep_first_position(self):
        directory = FakeDirectory({"H1": ["A", "A", "B"], "H2": ["B"]})
        topology = FakeTopology(clusters={"C1": ["H1", "H2"]})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        assert result.mapping == [("A", "H1"), ("B", "H2")]
        assert result.processed == result.total == 2
        assert directory.calls == [("B", "H1", "H2")]
        assert result.ok


@pytest.mark.unit
class TestFailures:
    def test_empty_cluster_name(self):
        with pytest.raises(PreconditionError):
            _rebalancer(FakeDirectory(), FakeTopology()).rebalance_cluster("  ")

    def test_host_resolution_failure_aborts(self):
        directory = FakeDirectory({"H1": ["A"]})
        topology = FakeTopology(fail_clusters={"C1"})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        assert result.aborted is not None
        assert result.aborted.phase == "resolve_hosts"
        assert result.failures == [result.aborted]
        assert result.processed == 0
        assert directory.list_calls == []
        assert directory.calls == []

    def test_host_enumeration_failure_keeps_host_in_rotation(self):
        directory = FakeDirectory({"H1": ["A", "B", "C"], "H2": ["X"]}, fail_list={"H2"})
        topology = FakeTopology(clusters={"C1": ["H1", "H2", "H3"]})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        assert result.mapping == [("A", "H1"), ("B", "H2"), ("C", "H3")]
        assert [(f.item, f.phase) for f in result.failures] == [("H2", "enumerate")]
        assert result.aborted is None

    def test_reassign_failure_continues(self):
        directory = FakeDirectory({"H1": ["A", "B", "C"]}, fail_reassign={"B"})
        topology = FakeTopology(clusters={"C1": ["H1", "H2", "H3"]})

        result = _rebalancer(directory, topology).rebalance_cluster("C1")

        assert [c[0] for c in directory.calls] == ["B", "C"]
        assert result.moved == 1
        assert result.processed == 3
        assert [(f.item, f.phase) for f in result.failures] == [("B", "reassign")]

    def test_no_connected_hosts(self):
        result = _rebalancer(FakeDirectory(), FakeTopology(clusters={"C1": []})).rebalance_cluster("C1")
        assert result.total == 0
        assert result.processed == 0
        assert result.aborted is None


@pytest.mark.unit
class TestDryRun:
    def test_dry_run_computes_mapping_without_calls(self):
        directory = FakeDirectory({"H1": ["A", "B", "C", "D"]})
        topology = FakeTopology(clusters={"C1": ["H1", "H2"]})

        result = _rebalancer(directory, topology, dry_run=True).rebalance_cluster("C1")

        assert directory.calls == []
        assert result.mapping == [("A", "H1"), ("B", "H2"), ("C", "H1"), ("D", "H2")]
        assert result.moved == 0
        assert result.already_placed == 2
        assert result.processed == 4

