"""SQLite storage for flows and hosts."""

from __future__ import annotations

import sqlite3
import threading
from typing import Any, Iterable, Sequence

from netsentinel.models import ActiveFlow, Client, Host, Protocol, Server

_SERVER_COLUMNS = "key,name,ip,port,is_broadcast_domain,is_dhcp,country"


def _server(row: Sequence[Any]) -> Server:
    key, name, ip, port, broadcast, dhcp, country = row
    return Server(
        key=key,
        name=name,
        ip=ip,
        port=port,
        is_broadcast_domain=bool(broadcast),
        is_dhcp=bool(dhcp),
        country=country,
    )


class SQLClient:
    """Stores flows and hosts in an SQLite database whose tables already exist."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._lock = threading.Lock()

    def _execute(self, sql: str, params: Sequence[Any]) -> None:
        with self._lock, self._conn:
            self._conn.execute(sql, params)

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def add_active_flows(self, flows: Iterable[ActiveFlow]) -> None:
        """Store each flow with its client, server and protocol.

        Flows stored before a failing one stay stored.
        """
        for flow in flows:
            self._add_active_flow(flow)

    def _add_active_flow(self, flow: ActiveFlow) -> None:
        self._execute(
            "INSERT INTO traffic(key,first_seen,last_seen,bytes) VALUES(?,?,?,?) "
            "ON CONFLICT(key) DO UPDATE SET bytes=?;",
            (flow.key, flow.first_seen, flow.last_seen, flow.bytes, flow.bytes),
        )
        self._insert_client(flow.client, flow.key)
        self._insert_server(flow.server, flow.key)
        self._insert_protocol(flow.protocol, flow.key)

    def _insert_client(self, client: Client, key: str) -> None:
        self._execute(
            "INSERT INTO clients(key,name,ip,port) VALUES(?,?,?,?);",
            (key, client.name, client.ip, client.port),
        )

    def _insert_server(self, server: Server, key: str) -> None:
        self._execute(
            "INSERT INTO servers(key,name,ip,port,is_broadcast_domain,is_dhcp,country) "
            "VALUES(?,?,?,?,?,?,?);",
            (
                key,
                server.name,
                server.ip,
                server.port,
                server.is_broadcast_domain,
                server.is_dhcp,
                server.country,
            ),
        )

    def _insert_protocol(self, protocol: Protocol, key: str) -> None:
        self._execute(
            "INSERT INTO protocols(key,l4,l7) VALUES(?,?,?);",
            (key, protocol.l4, protocol.l7),
        )

    def get_server_by_attr(self, attr: str) -> Server:
        """Return the server whose name, or failing that IP, matches ``attr``.

        An empty server is returned when nothing matches.
        """
        rows = self._query(
            f"SELECT {_SERVER_COLUMNS} FROM servers WHERE name LIKE ? LIMIT 1", (attr,)
        )
        if not rows:
            rows = self._query(
                f"SELECT {_SERVER_COLUMNS} FROM servers WHERE ip LIKE ? LIMIT 1", (attr,)
            )
        return _server(rows[-1]) if rows else Server()

    def get_clients(self) -> list[Client]:
        rows = self._query("SELECT key,name,ip,port FROM clients GROUP BY key")
        return [
            Client(key=key, name=name, ip=ip, port=port) for key, name, ip, port in rows
        ]

    def get_servers(self) -> list[Server]:
        rows = self._query(f"SELECT {_SERVER_COLUMNS} FROM servers GROUP BY key")
        return [_server(row) for row in rows]

    def get_flow_by_key(self, key: str) -> ActiveFlow:
        """Return the stored flow for ``key``, or an empty flow when there is none."""
        rows = self._query(
            "SELECT key,first_seen,last_seen,bytes FROM traffic WHERE key LIKE ?", (key,)
        )
        if not rows:
            return ActiveFlow()
        flow_key, first_seen, last_seen, byte_count = rows[-1]
        return ActiveFlow(
            key=flow_key, first_seen=first_seen, last_seen=last_seen, bytes=byte_count
        )

    def add_hosts(self, hosts: Iterable[Host]) -> None:
        for host in hosts:
            self._execute(
                "INSERT INTO hosts(name,asname,privatehost,ip,mac,city,country) "
                "VALUES(?,?,?,?,?,?,?);",
                (
                    host.name,
                    host.asname,
                    host.private_host,
                    host.ip,
                    host.mac,
                    host.city,
                    host.country,
                ),
            )

    def get_host_by_ip(self, ip: str) -> Host:
        """Return the host with IP ``ip``, or an empty host when there is none."""
        rows = self._query(
            "SELECT name,asname,privatehost,ip,mac,city,country FROM hosts "
            "WHERE ip LIKE ? LIMIT 1",
            (ip,),
        )
        if not rows:
            return Host()
        name, asname, private_host, host_ip, mac, city, country = rows[-1]
        return Host(
            name=name,
            asname=asname,
            private_host=bool(private_host),
            ip=host_ip,
            mac=mac,
            city=city,
            country=country,
        )