# SPDX-License-Identifier: LGPL-3.0-or-later
"""Two-phase parsing: YAML as parser defaults, CLI flags win, validation."""
from __future__ import annotations

import pytest

from fakes.fake_logger import FakeLogger
from vradrain.cli.args.parser import build_parser, parse_args_with_config
from vradrain.core.exceptions import Fatal
from vradrain.core.naming import DEFAULT_APPLIANCE_PATTERN

_DRAIN = [
    "--cmd", "drain-host",
    "--vcenter", "vc", "--vc-user", "administrator",
    "--zvm", "zvm", "--zvm-user", "admin",
    "--source-host", "esx01", "--target-host", "esx02",
]


def _parse(argv):
    return parse_args_with_config(argv=argv, logger=FakeLogger())


@pytest.mark.unit
class TestDefaults:
    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.zvm_port == 9669
        assert args.vc_port == 443
        assert args.poll_interval == 10.0
        assert args.appliance_pattern == DEFAULT_APPLIANCE_PATTERN
        assert args.maintenance is False
        assert args.dry_run is False

    def test_drain_from_cli(self):
        args, conf, _ = _parse(_DRAIN + ["--maintenance", "--poll-interval", "2.5"])
        assert args.cmd == "drain-host"
        assert args.maintenance is True
        assert args.poll_interval == 2.5
        assert conf == {}


@pytest.mark.unit
class TestConfigFiles:
    def test_yaml_selects_cmd_and_fills_required(self, tmp_path):
        cfg = tmp_path / "rebalance.yaml"
        cfg.write_text(
            "cmd: rebalance-cluster\n"
            "vcenter: vc\nvc-user: administrator\n"
            "zvm: zvm\nzvm_user: admin\n"
            "cluster: Prod\n",
            encoding="utf-8",
        )

        args, conf, _ = _parse(["--config", str(cfg)])

        assert args.cmd == "rebalance-cluster"
        assert args.cluster == "Prod"
        assert args.vc_user == "administrator"
        assert conf["cmd"] == "rebalance-cluster"

    def test_cli_overrides_config(self, tmp_path):
        cfg = tmp_path / "drain.yaml"
        cfg.write_text("target_host: esx09\ndry_run: false\n", encoding="utf-8")

        args, _, _ = _parse(["--config", str(cfg)] + _DRAIN + ["--dry-run"])

        assert args.target_host == "esx02"
        assert args.dry_run is True

    def test_dump_config_exits(self, tmp_path, capsys):
        cfg = tmp_path / "c.yaml"
        cfg.write_text("cluster: C1\n", encoding="utf-8")
        with pytest.raises(SystemExit) as ei:
            _parse(["--config", str(cfg), "--dump-config"])
        assert ei.value.code == 0
        assert '"cluster": "C1"' in capsys.readouterr().out

    def test_dump_args_hides_passwords(self, capsys):
        with pytest.raises(SystemExit):
            _parse(_DRAIN + ["--vc-password", "hunter2", "--dump-args"])
        out = capsys.readouterr().out
        assert "hunter2" not in out
        assert '"source_host": "esx01"' in out


@pytest.mark.unit
class TestValidation:
    def _fatal(self, argv):
        with pytest.raises(Fatal) as ei:
            _parse(argv)
        assert ei.value.code == 2
        return str(ei.value)

    def test_no_cmd(self):
        assert "No operation selected" in self._fatal([])

    def test_unknown_cmd(self):
        assert "Unknown cmd" in self._fatal(["--cmd", "evacuate"])

    def test_missing_required(self):
        msg = self._fatal(["--cmd", "rebalance-cluster", "--vcenter", "vc"])
        assert "--vc-user" in msg
        assert "--cluster" in msg

    def test_same_source_and_target(self):
        argv = list(_DRAIN)
        argv[argv.index("esx02")] = "ESX01"
        assert "must differ" in self._fatal(argv)

    def test_negative_poll_interval(self):
        assert "--poll-interval" in self._fatal(_DRAIN + ["--poll-interval", "-1"])

    def test_bad_port(self):
        assert "--zvm-port" in self._fatal(_DRAIN + ["--zvm-port", "70000"])

    def test_bad_regex(self):
        assert "--appliance-pattern" in self._fatal(_DRAIN + ["--appliance-pattern", "("])
