# SPDX-License-Identifier: LGPL-3.0-or-later
import pytest

from vradrain.core.exceptions import PreconditionError
from vradrain.core.models import Host
from vradrain.core.naming import DEFAULT_APPLIANCE_PATTERN, AppliancePolicy


@pytest.mark.unit
class TestAppliancePolicy:
    def test_default_prefix(self):
        policy = AppliancePolicy()
        assert policy.pattern == DEFAULT_APPLIANCE_PATTERN
        assert policy.is_infrastructure_appliance("Z-VRA-esx01.example.com")
        assert policy.is_infrastructure_appliance("Z-VRA-0042")

    def test_workload_names_do_not_match(self):
        policy = AppliancePolicy()
        assert not policy.is_infrastructure_appliance("web01")
        assert not policy.is_infrastructure_appliance("my-Z-VRA-copy")
        assert not policy.is_infrastructure_appliance("")

    def test_split_keeps_order(self):
        policy = AppliancePolicy()
        names = ["db01", "Z-VRA-1", "web01", "Z-VRA-2"]
        assert policy.appliances(names) == ["Z-VRA-1", "Z-VRA-2"]
        assert policy.workloads(names) == ["db01", "web01"]

    def test_custom_pattern(self):
        policy = AppliancePolicy(r"^vra[-_]")
        assert policy.is_infrastructure_appliance("vra_esx01")
        assert not policy.is_infrastructure_appliance("Z-VRA-esx01")

    def test_invalid_pattern_rejected(self):
        with pytest.raises(PreconditionError) as ei:
            AppliancePolicy("(")
        assert ei.value.code == 2

    def test_host_helper(self):
        assert Host("Z-VRA-7").is_infrastructure_appliance(AppliancePolicy())
        assert not Host("esx01").is_infrastructure_appliance(AppliancePolicy())
