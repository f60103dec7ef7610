# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/vmware/client.py
"""
vSphere / vCenter client for vradrain.
"""
from __future__ import annotations

import logging
import socket
import ssl
import time
from typing import Any, Callable, List, Optional, TypeVar

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim

from ..core.exceptions import QueryError, wrap_query
from ..core.models import Host
from .topology import ClusterTopology

T = TypeVar("T")


class VSphereClient(ClusterTopology):
    """
    vSphere/vCenter client for host, cluster and guest operations.
    """

    def __init__(
        self,
        logger: logging.Logger,
        host: str,
        user: str,
        password: str,
        *,
        port: int = 443,
        insecure: bool = False,
        timeout: Optional[float] = None,
        task_poll_s: float = 1.0,
    ) -> None:
        self.logger = logger
        self.host = (host or "").strip()
        self.user = (user or "").strip()
        self.password = password or ""
        self.port = int(port)
        self.insecure = bool(insecure)
        self.timeout = timeout
        self.task_poll_s = float(task_poll_s)

        self.si: Any = None

    # Context managers

    def __enter__(self) -> "VSphereClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.disconnect()
        return False

    # Connection

    def _ssl_context(self) -> ssl.SSLContext:
        """
        SSL context for vSphere connections.

        insecure=True disables certificate verification entirely; only use it
        against vCenters with self-signed certificates on trusted networks.
        """
        if self.insecure:
            self.logger.warning("TLS certificate verification is DISABLED for %s (insecure=True)", self.host)
            ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            return ctx
        return ssl.create_default_context()

    def connect(self) -> None:
        ctx = self._ssl_context()
        old_timeout = socket.getdefaulttimeout()
        try:
            if self.timeout is not None:
                socket.setdefaulttimeout(self.timeout)
            self.si = SmartConnect(
                host=self.host,
                user=self.user,
                pwd=self.password,
                port=self.port,
                sslContext=ctx,
            )
        except Exception as e:
            self.si = None
            raise wrap_query(f"Failed to connect to vSphere {self.host}:{self.port}: {e}", e, host=self.host)
        finally:
            socket.setdefaulttimeout(old_timeout)
        self.logger.info("Connected to vSphere: %s:%s", self.host, self.port)

    def disconnect(self) -> None:
        try:
            if self.si is not None:
                Disconnect(self.si)
        except Exception as e:
            self.logger.error("Error during vSphere disconnect: %s", e)
        finally:
            self.si = None

    def _content(self) -> Any:
        if not self.si:
            raise QueryError(code=50, msg="Not connected to vSphere")
        try:
            return self.si.RetrieveContent()
        except Exception as e:
            raise wrap_query(f"Failed to retrieve vSphere content: {e}", e)

    def _call(self, what: str, fn: Callable[[], T]) -> T:
        """Run a pyVmomi call, turning any SDK/transport error into QueryError."""
        try:
            return fn()
        except QueryError:
            raise
        except Exception as e:
            raise wrap_query(f"{what} failed: {getattr(e, 'msg', None) or e}", e)

    # Inventory lookup

    def _find_by_name(self, vimtype: Any, name: str) -> Any:
        content = self._content()
        view = content.viewManager.CreateContainerView(content.rootFolder, [vimtype], True)
        try:
            for obj in view.view:
                if getattr(obj, "name", None) == name:
                    return obj
            return None
        finally:
            try:
                view.Destroy()
            except Exception as e:
                self.logger.debug("ContainerView.Destroy failed (non-fatal): %s", e)

    def _require(self, vimtype: Any, name: str, kind: str) -> Any:
        obj = self._call(f"lookup {kind} {name}", lambda: self._find_by_name(vimtype, name))
        if obj is None:
            raise QueryError(code=50, msg=f"{kind} not found in vSphere: {name}")
        return obj

    def wait_for_task(self, task: Any) -> None:
        while task.info.state not in (vim.TaskInfo.State.success, vim.TaskInfo.State.error):
            time.sleep(self.task_poll_s)
        if task.info.state == vim.TaskInfo.State.error:
            err = task.info.error
            raise QueryError(code=50, msg=str(getattr(err, "msg", None) or err))

    # ClusterTopology

    def list_connected_hosts(self, cluster: str) -> List[Host]:
        cluster_obj = self._require(vim.ClusterComputeResource, cluster, "Cluster")

        def _hosts() -> List[Host]:
            out: List[Host] = []
            for h in cluster_obj.host:
                runtime = getattr(h, "runtime", None)
                state = str(getattr(runtime, "connectionState", "unknown"))
                out.append(Host(name=str(h.name), connection_state=state))
            return out

        hosts = self._call(f"list hosts of cluster {cluster}", _hosts)
        connected = [h for h in hosts if h.connected]
        skipped = [h.name for h in hosts if not h.connected]
        if skipped:
            self.logger.info("Skipping %d non-connected host(s) in %s: %s", len(skipped), cluster, ", ".join(skipped))
        return connected

    def list_guest_vms(self, host: Host) -> List[str]:
        host_obj = self._require(vim.HostSystem, host.name, "Host")
        return self._call(f"list guests on {host.name}", lambda: [str(vm.name) for vm in host_obj.vm])

    def set_maintenance_mode(self, host: Host) -> None:
        host_obj = self._require(vim.HostSystem, host.name, "Host")
        runtime = getattr(host_obj, "runtime", None)
        if runtime is not None and getattr(runtime, "inMaintenanceMode", False) is True:
            self.logger.info("Host %s already in maintenance mode", host.name)
            return
        # Submitted only; the caller watches the guest list instead of the task.
        self._call(
            f"enter maintenance mode on {host.name}",
            lambda: host_obj.EnterMaintenanceMode_Task(timeout=0, evacuatePoweredOffVms=True),
        )
        self.logger.info("Maintenance mode requested for %s", host.name)

    def shutdown_guest(self, vm_name: str) -> None:
        vm_obj = self._require(vim.VirtualMachine, vm_name, "VM")
        power = getattr(getattr(vm_obj, "runtime", None), "powerState", None)
        if power == vim.VirtualMachinePowerState.poweredOff:
            self.logger.info("%s already powered off", vm_name)
            return
        task = self._call(f"power off {vm_name}", vm_obj.PowerOffVM_Task)
        self._call(f"power off {vm_name}", lambda: self.wait_for_task(task))
