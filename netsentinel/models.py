"""Domain entities shared by the hosts, traffic and alerts layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _put_if_set(target: dict[str, Any], key: str, value: Any) -> None:
    """Add ``value`` under ``key`` only when it is not the zero value."""
    if value:
        target[key] = value


@dataclass(frozen=True, kw_only=True)
class Client:
    """The local end of a flow."""

    key: str = ""
    name: str = ""
    port: int = 0
    ip: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        _put_if_set(data, "Key", self.key)
        _put_if_set(data, "Name", self.name)
        data["Port"] = self.port
        data["IP"] = self.ip
        return data


@dataclass(frozen=True, kw_only=True)
class Server:
    """The remote end of a flow."""

    key: str = ""
    ip: str = ""
    is_broadcast_domain: bool = False
    is_dhcp: bool = False
    port: int = 0
    name: str = ""
    country: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        _put_if_set(data, "Key", self.key)
        data["IP"] = self.ip
        _put_if_set(data, "IsBroadcastDomain", self.is_broadcast_domain)
        _put_if_set(data, "IsDHCP", self.is_dhcp)
        data["Port"] = self.port
        _put_if_set(data, "Name", self.name)
        _put_if_set(data, "Country", self.country)
        return data


@dataclass(frozen=True, kw_only=True)
class Protocol:
    """Layer 4 and layer 7 protocol of a flow."""

    key: str = ""
    l4: str = ""
    l7: str = ""
    label: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        _put_if_set(data, "Key", self.key)
        _put_if_set(data, "L4", self.l4)
        _put_if_set(data, "L7", self.l7)
        _put_if_set(data, "Label", self.label)
        return data


@dataclass(frozen=True, kw_only=True)
class ActiveFlow:
    """A network flow seen by the monitoring tool."""

    key: str = ""
    first_seen: int = 0
    last_seen: int = 0
    client: Client = field(default_factory=Client)
    server: Server = field(default_factory=Server)
    bytes: int = 0
    protocol: Protocol = field(default_factory=Protocol)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "Client": self.client.to_dict(),
            "Server": self.server.to_dict(),
            "Bytes": self.bytes,
            "Protocol": self.protocol.to_dict(),
        }


@dataclass(frozen=True, kw_only=True)
class BytesPerDestination:
    """Total bytes sent to one destination."""

    bytes: int = 0
    destination: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"Bytes": self.bytes, "Destination": self.destination}


@dataclass(frozen=True, kw_only=True)
class BytesPerCountry:
    """Total bytes sent to one country."""

    bytes: int = 0
    country: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"bytes": self.bytes, "country": self.country}


@dataclass(frozen=True, kw_only=True)
class Host:
    """A host connected to the network."""

    name: str = ""
    asname: str = ""
    private_host: bool = False
    ip: str = ""
    mac: str = ""
    city: str = ""
    country: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"Name": self.name}
        _put_if_set(data, "ASname", self.asname)
        data["PrivateHost"] = self.private_host
        data["IP"] = self.ip
        data["Mac"] = self.mac
        data["City"] = self.city
        data["Country"] = self.country
        return data


@dataclass(frozen=True, kw_only=True)
class AlertFlow:
    """The flow an alert was raised on."""

    client: Client = field(default_factory=Client)
    server: Server = field(default_factory=Server)

    def to_dict(self) -> dict[str, Any]:
        return {"Client": self.client.to_dict(), "Server": self.server.to_dict()}


@dataclass(frozen=True, kw_only=True)
class Alert:
    """An alert reported by the monitoring tool."""

    name: str = ""
    family: str = ""
    category: str = ""
    time: str = ""
    severity: str = ""
    alert_flow: AlertFlow = field(default_factory=AlertFlow)
    alert_protocol: Protocol = field(default_factory=Protocol)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Family": self.family,
            "Category": self.category,
            "Time": self.time,
            "Severity": self.severity,
            "AlertFlow": self.alert_flow.to_dict(),
            "AlertProtocol": self.alert_protocol.to_dict(),
        }