"""Interfaces of the external services the application depends on."""

from __future__ import annotations

from typing import Protocol

from netsentinel.models import ActiveFlow, Alert, Client, Host, Server


class Tool(Protocol):
    """A network monitoring tool that reports hosts, flows and alerts."""

    def set_interface_id(self) -> None:
        """Select the monitored network interface."""

    def get_all_hosts(self) -> list[Host]:
        """Return every host the tool knows about."""

    def get_all_active_traffic(self) -> list[ActiveFlow]:
        """Return every active flow."""

    def get_all_alerts(self, epoch_begin: int, epoch_end: int) -> list[Alert]:
        """Return the alerts raised between two Unix timestamps."""

    def enable_checks(self) -> None:
        """Turn on the tool's detection checks."""


class Terminal(Protocol):
    """A console able to block traffic to a host."""

    def block_host(self, host: str) -> None:
        """Drop all traffic to ``host``."""


class NotificationChannel(Protocol):
    """A channel that delivers messages to the user."""

    def configure(self, token: str, username: str) -> None:
        """Set up the channel for the given user."""

    def send_message(self, message: str) -> None:
        """Deliver one message."""


class Database(Protocol):
    """Persistent storage for flows and hosts."""

    def add_active_flows(self, flows: list[ActiveFlow]) -> None:
        """Store flows."""

    def get_server_by_attr(self, attr: str) -> Server:
        """Return the server whose name or IP matches ``attr``."""

    def get_clients(self) -> list[Client]:
        """Return stored clients."""

    def get_servers(self) -> list[Server]:
        """Return stored servers."""

    def get_flow_by_key(self, key: str) -> ActiveFlow:
        """Return the flow stored under ``key``."""

    def add_hosts(self, hosts: list[Host]) -> None:
        """Store hosts."""

    def get_host_by_ip(self, ip: str) -> Host:
        """Return the host with the given IP."""