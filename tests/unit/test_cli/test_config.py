# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Unit Tests for configuration file loading and merging.
"""

import argparse
import json
import tempfile
import unittest
from pathlib import Path

import yaml

from fakes.fake_logger import FakeLogger
from vradrain.config.config_loader import Config
from vradrain.core.exceptions import Fatal


class TestConfigLoader(unittest.TestCase):
    def setUp(self):
        self.logger = FakeLogger()
        self._td = tempfile.TemporaryDirectory()
        self.td = Path(self._td.name)

    def tearDown(self):
        self._td.cleanup()

    def _write(self, name, text):
        p = self.td / name
        p.write_text(text, encoding="utf-8")
        return p

    def test_yaml_keys_normalized(self):
        p = self._write("a.yaml", "source-host: esx01\nvc_user: admin\n")
        conf = Config.load_one(self.logger, p)
        self.assertEqual(conf, {"source_host": "esx01", "vc_user": "admin"})

    def test_json_by_suffix(self):
        p = self._write("a.json", json.dumps({"cluster": "C1"}))
        self.assertEqual(Config.load_one(self.logger, p), {"cluster": "C1"})

    def test_empty_yaml(self):
        p = self._write("empty.yaml", "")
        self.assertEqual(Config.load_one(self.logger, p), {})

    def test_non_mapping_rejected(self):
        p = self._write("list.yaml", yaml.safe_dump(["a", "b"]))
        with self.assertRaises(Fatal) as cm:
            Config.load_one(self.logger, p)
        self.assertEqual(cm.exception.code, 2)

    def test_invalid_yaml_rejected(self):
        p = self._write("bad.yaml", "a: [1, 2\n")
        with self.assertRaises(Fatal):
            Config.load_one(self.logger, p)

    def test_later_file_wins_and_nested_merge(self):
        a = self._write("a.yaml", "cluster: C1\nextra:\n  x: 1\n  y: 2\n")
        b = self._write("b.yaml", "cluster: C2\nextra:\n  y: 3\n")
        conf = Config.load_many(self.logger, [a, b])
        self.assertEqual(conf["cluster"], "C2")
        self.assertEqual(conf["extra"], {"x": 1, "y": 3})

    def test_expand_glob_sorted(self):
        self._write("20-b.yaml", "a: 1\n")
        self._write("10-a.yaml", "a: 2\n")
        paths = Config.expand_configs(self.logger, [str(self.td / "*.yaml")])
        self.assertEqual([p.name for p in paths], ["10-a.yaml", "20-b.yaml"])

    def test_missing_file_is_fatal(self):
        with self.assertRaises(Fatal):
            Config.expand_configs(self.logger, [str(self.td / "nope.yaml")])

    def test_empty_glob_is_fatal(self):
        with self.assertRaises(Fatal):
            Config.expand_configs(self.logger, [str(self.td / "*.json")])

    def test_apply_as_defaults_only_known_dests(self):
        parser = argparse.ArgumentParser()
        parser.add_argument("--cluster", default=None)
        Config.apply_as_defaults(self.logger, parser, {"cluster": "C1", "unknown_key": 1})

        args = parser.parse_args([])
        self.assertEqual(args.cluster, "C1")
        self.assertFalse(hasattr(args, "unknown_key"))
        self.assertEqual(parser.parse_args(["--cluster", "C9"]).cluster, "C9")


if __name__ == "__main__":
    unittest.main()
