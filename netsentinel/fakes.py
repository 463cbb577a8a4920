"""In-memory stand-ins for the external services, used outside production."""

from __future__ import annotations

from netsentinel.models import (
    ActiveFlow,
    Alert,
    AlertFlow,
    Client,
    Host,
    Protocol,
    Server,
)


class FakeTool:
    """A monitoring tool that always reports the same hosts, flows and alerts."""

    def __init__(self) -> None:
        self.interface_id: int | None = None

    def set_interface_id(self) -> None:
        """Select the fake's single implicit interface."""
        self.interface_id = 0

    def get_all_hosts(self) -> list[Host]:
        return [
            Host(name="Test1", ip="13.13.13.13", private_host=True),
            Host(name="Test2", ip="14.14.14.14", private_host=False),
            Host(name="Test3", ip="15.15.15.15", private_host=True),
            Host(name="Test4", ip="16.16.16.16", private_host=False),
            Host(name="lib.gen.rus", ip="172.98.98.109", private_host=False),
            Host(name="lib.gen.rus", ip="123.123.123.123", private_host=False),
            Host(name="lib.gen.rus", ip="172.98.98.109", private_host=False),
        ]

    def get_all_active_traffic(self) -> list[ActiveFlow]:
        client = Client(name="test", port=55672, ip="192.168.4.9")
        protocol = Protocol(l4="UDP.Youtube", l7="TLS.GoogleServices")

        def flow(key: str, server_ip: str, byte_count: int) -> ActiveFlow:
            return ActiveFlow(
                key=key,
                client=client,
                server=Server(
                    key=key,
                    ip=server_ip,
                    port=443,
                    name="lib.gen.rus",
                    country="RU",
                ),
                first_seen=1589741868,
                last_seen=1589741868,
                bytes=byte_count,
                protocol=protocol,
            )

        return [
            flow("345", "123.1.5.1", 345),
            flow("346", "123.123.123.123", 10000),
            flow("347", "172.98.98.109", 1000),
        ]

    def get_all_alerts(self, epoch_begin: int, epoch_end: int) -> list[Alert]:
        protocol = Protocol(l4="TCP", l7="TLS.Google", label="TCP:TLS.Google")
        server = Server(ip="104.15.15.60", port=443, name="test2")

        def alert(client_port: int) -> Alert:
            return Alert(
                name="test",
                family="flow",
                time="10/10/10 11:11:11",
                severity="Advertencia",
                alert_flow=AlertFlow(
                    client=Client(
                        name="192.168.4.14", ip="192.168.4.14", port=client_port
                    ),
                    server=server,
                ),
                alert_protocol=protocol,
            )

        return [alert(3550), alert(33566)]

    def enable_checks(self) -> list:
        """Enable nothing; there are no checks to wait for."""
        return []


class FakeConsole:
    """A console that only reports what it would block."""

    def block_host(self, host: str) -> None:
        print(f"Blocking... {host} ", end="")


class FakeBot:
    """A notification channel that keeps what it is given instead of sending it."""

    def __init__(self) -> None:
        self.token = ""
        self.username = ""
        self.sent: list[str] = []

    def send_message(self, message: str) -> None:
        self.sent.append(message)
        print("Mensaje enviado", end="")

    def configure(self, token: str, username: str) -> None:
        self.token = token
        self.username = username
        print("Configurado", end="")


class FakeSQLClient:
    """A database that finds nothing; it only counts what it is offered."""

    def __init__(self) -> None:
        self.offered_flows = 0
        self.offered_hosts = 0

    def add_active_flows(self, flows: list[ActiveFlow]) -> None:
        """Count the flows without keeping them."""
        self.offered_flows += len(flows)

    def get_server_by_attr(self, attr: str) -> Server:
        return Server()

    def get_clients(self) -> list[Client]:
        return []

    def get_servers(self) -> list[Server]:
        return []

    def get_flow_by_key(self, key: str) -> ActiveFlow:
        return ActiveFlow()

    def add_hosts(self, hosts: list[Host]) -> None:
        """Count the hosts without keeping them."""
        self.offered_hosts += len(hosts)

    def get_host_by_ip(self, ip: str) -> Host:
        return Host()