"""Host use cases: searching, filtering, storing and blocking hosts."""

from __future__ import annotations

from typing import Any

from netsentinel.models import Host


class HostNotFoundError(LookupError):
    """Raised when no known host matches a lookup."""


class HostSearcher:
    """Fetches hosts from a host service and remembers the last result."""

    def __init__(self, service: Any) -> None:
        self._service = service
        self._current_hosts: list[Host] = []

    def get_all_hosts(self) -> list[Host]:
        hosts = self._service.get_all_hosts()
        self._current_hosts = hosts
        return hosts

    def get_hosts(self) -> list[Host]:
        return self._current_hosts


class HostsFilter:
    """Selects hosts from a searcher, fetching them when none are cached."""

    def __init__(self, searcher: Any) -> None:
        self._searcher = searcher

    def _current(self) -> list[Host]:
        current = self._searcher.get_hosts()
        if not current:
            current = self._searcher.get_all_hosts()
        return list(current or [])

    def get_local_hosts(self) -> list[Host]:
        return [host for host in self._current() if host.private_host]

    def get_remote_hosts(self) -> list[Host]:
        return [host for host in self._current() if not host.private_host]

    def get_host(self, attr: str) -> Host:
        """Return the first host whose IP or name equals ``attr``."""
        last_ip = ""
        for host in self._current():
            if attr in (host.ip, host.name):
                return host
            last_ip = host.ip
        raise HostNotFoundError("There's no host with this IP " + last_ip)


class HostsStorage:
    """Persists the hosts reported by a searcher."""

    def __init__(self, host_searcher: Any, host_repo: Any) -> None:
        self._host_searcher = host_searcher
        self._host_repo = host_repo

    def store_hosts(self) -> None:
        active_hosts = self._host_searcher.get_all_hosts()
        if active_hosts is not None:
            self._host_repo.store_hosts(active_hosts)

    def get_host_by_ip(self, ip: str) -> Host:
        return self._host_repo.get_host_by_ip(ip)


class Blocker:
    """Blocks hosts through a blocking service."""

    def __init__(self, block_service: Any) -> None:
        self._block_service = block_service

    def block(self, host: str) -> str:
        """Block ``host`` and return it."""
        self._block_service.block_host(host)
        return host


class HostsRepo:
    """Host repository backed by a database."""

    def __init__(self, database: Any) -> None:
        self.database = database

    def store_hosts(self, hosts: list[Host]) -> None:
        self.database.add_hosts(hosts)

    def get_host_by_ip(self, ip: str) -> Host:
        return self.database.get_host_by_ip(ip)