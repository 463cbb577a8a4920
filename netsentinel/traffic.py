"""Traffic use cases: searching, aggregating and storing active flows."""

from __future__ import annotations

import ipaddress
from collections import defaultdict
from dataclasses import replace
from typing import Any

from netsentinel.models import (
    ActiveFlow,
    BytesPerCountry,
    BytesPerDestination,
    Client,
    Server,
)

_PRIVATE_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("fc00::/7"),
)


def _is_private(ip: str) -> bool:
    """Tell whether ``ip`` lies in an RFC 1918 or RFC 4193 range.

    Text that is not an IP address is not private.
    """
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped
    return any(
        address.version == network.version and address in network
        for network in _PRIVATE_NETWORKS
    )


class TrafficSearcher:
    """Fetches active flows from a traffic service and remembers the last result."""

    def __init__(self, service: Any) -> None:
        self._service = service
        self._active_flows: list[ActiveFlow] = []

    def get_all_active_traffic(self) -> list[ActiveFlow]:
        flows = self._service.get_all_active_traffic()
        self._active_flows = flows
        return flows

    def get_active_flows(self) -> list[ActiveFlow]:
        return self._active_flows


class BytesAggregatorParser:
    """Sums stored traffic towards public servers by destination or country."""

    def __init__(self, flows_storage: Any) -> None:
        self._flows_storage = flows_storage

    def _public_flows(self) -> list[ActiveFlow]:
        servers = self._flows_storage.get_servers() or []
        return [
            replace(self._flows_storage.get_flow_by_key(server.key), server=server)
            for server in servers
            if not _is_private(server.ip)
        ]

    def get_bytes_per_destination(self) -> list[BytesPerDestination]:
        totals: dict[str, int] = defaultdict(int)
        for flow in self._public_flows():
            destination = flow.server.name or flow.server.ip
            totals[destination] += flow.bytes
        return [
            BytesPerDestination(destination=destination, bytes=total)
            for destination, total in totals.items()
        ]

    def get_bytes_per_country(self) -> list[BytesPerCountry]:
        totals: dict[str, int] = defaultdict(int)
        for flow in self._public_flows():
            totals[flow.server.country] += flow.bytes
        return [
            BytesPerCountry(country=country, bytes=total)
            for country, total in totals.items()
        ]


class FlowsStorage:
    """Enriches active flows with host data and stores them."""

    def __init__(self, traffic_searcher: Any, traffic_repo: Any, host_storage: Any) -> None:
        self._traffic_searcher = traffic_searcher
        self._traffic_repo = traffic_repo
        self._host_storage = host_storage

    def store_flows(self) -> None:
        active_flows = self._traffic_searcher.get_active_flows()
        if not active_flows:
            active_flows = self._traffic_searcher.get_all_active_traffic()
        self._traffic_repo.store_flows(self._enrich(active_flows or []))

    def _enrich(self, flows: list[ActiveFlow]) -> list[ActiveFlow]:
        enriched = []
        for flow in flows:
            host = self._host_storage.get_host_by_ip(flow.server.ip)
            server = replace(flow.server, country=host.country)
            if server.is_broadcast_domain:
                server = replace(server, name=server.ip)
            enriched.append(replace(flow, server=server))
        return enriched


class FlowsRepo:
    """Traffic repository backed by a database."""

    def __init__(self, database: Any) -> None:
        self.database = database

    def get_server_by_attr(self, attr: str) -> Server:
        return self.database.get_server_by_attr(attr)

    def get_clients(self) -> list[Client]:
        return self.database.get_clients()

    def get_servers(self) -> list[Server]:
        return self.database.get_servers()

    def get_flow_by_key(self, key: str) -> ActiveFlow:
        return self.database.get_flow_by_key(key)

    def store_flows(self, flows: list[ActiveFlow]) -> None:
        self.database.add_active_flows(flows)