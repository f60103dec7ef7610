# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/replication/client.py
"""
REST client for the replication manager (ZVM).

Only the calls the orchestrators need are implemented: resolve a host's
replication appliance, list protected VMs and change the recovery appliance
of a VM.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
import urllib3

from ..core.exceptions import QueryError, wrap_query
from ..core.models import Host, Workload
from .directory import ReplicationDirectory

SESSION_HEADER = "x-zerto-session"
DEFAULT_PORT = 9669
DEFAULT_TIMEOUT_S = 60.0


def _host_key(name: str) -> str:
    return (name or "").strip().casefold()


class ZVMClient(ReplicationDirectory):
    """
    Replication manager client.

    Usage:
        with ZVMClient(logger, "zvm.example.com", "admin", "secret") as zvm:
            zvm.list_workloads_protected_by(Host("esx01.example.com"))
    """

    def __init__(
        self,
        logger: logging.Logger,
        host: str,
        user: str,
        password: str,
        *,
        port: int = DEFAULT_PORT,
        insecure: bool = False,
        timeout: Optional[float] = DEFAULT_TIMEOUT_S,
        session: Optional[Any] = None,  # For testing/mocking
    ) -> None:
        if not (host or "").strip():
            raise ValueError("Host cannot be empty")
        if not 1 <= int(port) <= 65535:
            raise ValueError(f"Invalid port: {port}")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"Invalid timeout: {timeout}")

        self.logger = logger
        self.host = host.strip()
        self.user = (user or "").strip()
        self.password = password or ""
        self.port = int(port)
        self.insecure = bool(insecure)
        self.timeout = timeout

        self._session = session if session is not None else requests.Session()
        self._session.verify = not self.insecure
        self._session_token: Optional[str] = None

        # host name (casefolded) -> VraIdentifier
        self._vra_by_host: Dict[str, str] = {}

        self._disable_tls_warnings()

    @property
    def base_url(self) -> str:
        return f"https://{self.host}:{self.port}/v1"

    def _disable_tls_warnings(self) -> None:
        if self.insecure:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    # Context managers

    def __enter__(self) -> "ZVMClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.disconnect()
        return False

    # Session

    @property
    def connected(self) -> bool:
        return self._session_token is not None

    def connect(self) -> None:
        url = f"{self.base_url}/session/add"
        try:
            resp = self._session.post(
                url,
                auth=(self.user, self.password),
                json={"AuthenticationMethod": 1},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise wrap_query(f"Failed to connect to replication manager {self.host}:{self.port}: {e}", e, host=self.host)

        if resp.status_code not in (200, 201):
            raise QueryError(
                code=50,
                msg=f"Replication manager login failed: HTTP {resp.status_code}",
                context={"host": self.host, "user": self.user},
            )
        token = resp.headers.get(SESSION_HEADER)
        if not token:
            raise QueryError(code=50, msg=f"Replication manager login returned no {SESSION_HEADER} header")

        self._session_token = token
        self._session.headers[SESSION_HEADER] = token
        self.logger.info("Connected to replication manager: %s:%s", self.host, self.port)

    def disconnect(self) -> None:
        if self._session_token is None:
            return
        try:
            self._session.delete(f"{self.base_url}/session", timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.debug("Replication manager logout failed (non-fatal): %s", e)
        finally:
            self._session.headers.pop(SESSION_HEADER, None)
            self._session_token = None
            self._vra_by_host = {}

    # Transport

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        expected: Tuple[int, ...] = (200,),
    ) -> Any:
        if self._session_token is None:
            raise QueryError(code=50, msg="Not connected to replication manager")

        url = f"{self.base_url}/{path.lstrip('/')}"
        self.logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise wrap_query(f"{method} /{path.lstrip('/')} failed: {e}", e)

        if resp.status_code not in expected:
            body = (resp.text or "").strip()
            raise QueryError(
                code=50,
                msg=f"{method} /{path.lstrip('/')} returned HTTP {resp.status_code}: {body[:200]}",
                context={"status": resp.status_code},
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise wrap_query(f"{method} /{path.lstrip('/')} returned malformed JSON", e)

    def _get_list(self, path: str) -> List[Dict[str, Any]]:
        data = self._request("GET", path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise QueryError(code=50, msg=f"GET /{path} returned {type(data).__name__}, expected a list")
        return [x for x in data if isinstance(x, dict)]

    # Appliances

    def _refresh_vras(self) -> None:
        table: Dict[str, str] = {}
        for vra in self._get_list("vras"):
            vra_id = vra.get("VraIdentifier")
            if not vra_id:
                continue
            for key in ("HostDisplayName", "VraName"):
                name = vra.get(key)
                if name:
                    table[_host_key(str(name))] = str(vra_id)
        self._vra_by_host = table

    def vra_identifier(self, host: Host) -> str:
        key = _host_key(host.name)
        if key not in self._vra_by_host:
            self._refresh_vras()
        vra_id = self._vra_by_host.get(key)
        if not vra_id:
            raise QueryError(code=50, msg=f"No replication appliance registered for host {host.name}")
        return vra_id

    # ReplicationDirectory

    def _protected_vms(self) -> Iterable[Dict[str, Any]]:
        return self._get_list("vms")

    def list_workloads_protected_by(self, host: Host) -> List[Workload]:
        key = _host_key(host.name)
        out: List[Workload] = []
        for vm in self._protected_vms():
            if _host_key(str(vm.get("RecoveryHostName") or "")) != key:
                continue
            name = vm.get("VmName")
            if not name:
                continue
            ident = vm.get("VmIdentifier")
            out.append(Workload(name=str(name), identifier=str(ident) if ident else None))
        self.logger.debug("%d workload(s) protected by %s", len(out), host.name)
        return out

    def _workload_identifier(self, workload: Workload) -> str:
        if workload.identifier:
            return workload.identifier
        for vm in self._protected_vms():
            if vm.get("VmName") == workload.name and vm.get("VmIdentifier"):
                return str(vm["VmIdentifier"])
        raise QueryError(code=50, msg=f"Workload {workload.name} is not known to the replication manager")

    def reassign_protecting_host(self, workload: Workload, current_host: Host, new_host: Host) -> None:
        current_id = self.vra_identifier(current_host)
        new_id = self.vra_identifier(new_host)
        self._request(
            "POST",
            f"vras/{current_id}/changerecoveryvra",
            json={"NewVraIdentifier": new_id, "VmIdentifiers": [self._workload_identifier(workload)]},
            expected=(200, 201, 202, 204),
        )
        self.logger.debug("Reassigned %s: %s -> %s", workload.name, current_host.name, new_host.name)
