# SPDX-License-Identifier: LGPL-3.0-or-later
import json

import pytest

from vradrain.core.models import (
    DrainPlan,
    DrainResult,
    Host,
    ItemFailure,
    PhaseReport,
    ProtectionAssignment,
    RebalancePlan,
    RebalanceResult,
    Workload,
)


@pytest.mark.unit
class TestEntities:
    def test_workload_identity_is_name(self):
        assert Workload("web01", identifier="1") == Workload("web01", identifier="2")
        assert str(Workload("web01")) == "web01"

    def test_host_identity_ignores_state(self):
        assert Host("esx01") == Host("esx01", connection_state="disconnected")
        assert Host("esx01").connected
        assert not Host("esx01", connection_state="notResponding").connected


@pytest.mark.unit
class TestPlans:
    def test_drain_plan_drops_duplicate_names(self):
        plan = DrainPlan.build(
            Host("H1"), Host("H2"), [Workload("A"), Workload("B"), Workload("A")]
        )
        assert [w.name for w in plan.workloads] == ["A", "B"]
        assert len(plan) == 2

    def test_round_robin_targets(self):
        hosts = (Host("H1"), Host("H2"), Host("H3"))
        assignments = tuple(
            ProtectionAssignment(Workload(w), Host(h))
            for h, w in [("H1", "A"), ("H1", "B"), ("H2", "C"), ("H3", "D"), ("H1", "E")]
        )
        plan = RebalancePlan("C1", hosts, assignments)

        targets = [(a.workload.name, t.name) for a, t in plan.targets()]

        assert targets == [("A", "H1"), ("B", "H2"), ("C", "H3"), ("D", "H1"), ("E", "H2")]

    def test_no_hosts_yields_nothing(self):
        plan = RebalancePlan("C1", (), (ProtectionAssignment(Workload("A"), Host("H1")),))
        assert list(plan.targets()) == []
        assert len(plan) == 1


@pytest.mark.unit
class TestResults:
    def test_phase_report_counts(self):
        p = PhaseReport("migrate")
        p.record_ok()
        f = p.record_failure("web01", "rejected")
        assert (p.attempted, p.succeeded, p.failed) == (2, 1, 1)
        assert f == ItemFailure("web01", "rejected", "migrate")

    def test_drain_result_collects_failures_across_phases(self):
        r = DrainResult(source="H1", target="H2", plan=["A", "B"])
        r.migrate.record_ok()
        r.migrate.record_failure("B", "x")
        r.shutdown_appliances.record_failure("Z-VRA-1", "y")

        assert r.migrated == 1
        assert [f.item for f in r.failures] == ["B", "Z-VRA-1"]
        assert not r.ok

    def test_cancelled_drain_is_not_ok(self):
        r = DrainResult(source="H1", target="H2")
        assert r.ok
        r.cancelled = True
        assert not r.ok

    def test_drain_result_is_json_serialisable(self):
        r = DrainResult(source="H1", target="H2", plan=["A"])
        r.maintenance.skip("maintenance mode not requested")
        d = json.loads(json.dumps(r.to_jsonable()))
        assert d["migrate"]["name"] == "migrate"
        assert d["maintenance"]["skip_reason"] == "maintenance mode not requested"
        assert d["ok"] is True

    def test_rebalance_result_mapping_shape(self):
        r = RebalanceResult(cluster="C1", hosts=["H1", "H2"])
        r.mapping.append(("A", "H1"))
        d = r.to_jsonable()
        assert d["mapping"] == [{"workload": "A", "target": "H1"}]
        assert d["aborted"] is None

    def test_rebalance_abort_marks_not_ok(self):
        r = RebalanceResult(cluster="C1")
        r.aborted = r.record_failure("C1", "not found", "resolve_hosts")
        assert not r.ok
        assert r.failures == [r.aborted]
