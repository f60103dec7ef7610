# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/cli/help_texts.py
from __future__ import annotations

YAML_EXAMPLE = """\
  # drain.yaml
  cmd: drain-host
  vcenter: vcenter.example.com
  vc_user: administrator@vsphere.local
  vc_password_env: VC_PASSWORD
  zvm: zvm.example.com
  zvm_user: admin
  zvm_password_env: ZVM_PASSWORD
  source_host: esx01.example.com
  target_host: esx02.example.com
  maintenance: true

  # rebalance.yaml
  cmd: rebalance-cluster
  vcenter: vcenter.example.com
  vc_user: administrator@vsphere.local
  zvm: zvm.example.com
  zvm_user: admin
  cluster: Prod-Cluster

  vradrain --config drain.yaml --dry-run
  vradrain --config rebalance.yaml --report-json out/rebalance.json
"""

CONCURRENCY_NOTE = """\
  Runs are strictly sequential and take no locks. Do not start two drains,
  or a drain and a rebalance, against overlapping hosts at the same time.
  The --maintenance wait has no timeout; Ctrl+C stops it at the next poll
  and leaves the appliances running. A second Ctrl+C aborts immediately.
"""
