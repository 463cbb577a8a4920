import sqlite3

import pytest

from netsentinel.database import SQLClient
from netsentinel.models import ActiveFlow, Client, Host, Protocol, Server

SCHEMA = """
CREATE TABLE traffic(key TEXT PRIMARY KEY, first_seen INTEGER, last_seen INTEGER, bytes INTEGER);
CREATE TABLE clients(key TEXT, name TEXT, ip TEXT, port INTEGER);
CREATE TABLE servers(key TEXT, name TEXT, ip TEXT, port INTEGER,
                     is_broadcast_domain INTEGER, is_dhcp INTEGER, country TEXT);
CREATE TABLE protocols(key TEXT, l4 TEXT, l7 TEXT);
CREATE TABLE hosts(name TEXT, asname TEXT, privatehost INTEGER, ip TEXT,
                   mac TEXT, city TEXT, country TEXT);
"""

CLIENT = Client(name="test", port=55672, ip="192.168.4.9")
SERVER = Server(
    ip="123.123.123.123", port=443, name="lib.gen.rus", country="US", key="12344567"
)
PROTOCOL = Protocol(l4="UDP.Youtube", l7="TLS.GoogleServices")


def make_flow(key, byte_count=1000, server=SERVER):
    return ActiveFlow(
        key=key,
        first_seen=1589741868,
        last_seen=1589741868,
        client=CLIENT,
        server=server,
        bytes=byte_count,
        protocol=PROTOCOL,
    )


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA)
    yield conn
    conn.close()


@pytest.fixture
def db(connection):
    return SQLClient(connection)


def test_flow_round_trip(db):
    flow = make_flow("12345")
    db.add_active_flows([flow])
    got = db.get_flow_by_key("12345")
    assert got == ActiveFlow(
        key="12345", first_seen=flow.first_seen, last_seen=flow.last_seen, bytes=1000
    )


def test_missing_flow_is_empty(db):
    assert db.get_flow_by_key("nothing") == ActiveFlow()


def test_storing_same_key_updates_bytes(db):
    db.add_active_flows([make_flow("12345", 1000)])
    db.add_active_flows([make_flow("12345", 5566778)])
    assert db.get_flow_by_key("12345").bytes == 5566778


def test_clients_grouped_by_key(db):
    db.add_active_flows([make_flow("12345"), make_flow("12345"), make_flow("12346")])
    clients = db.get_clients()
    assert sorted(c.key for c in clients) == ["12345", "12346"]
    assert all(c.ip == CLIENT.ip and c.port == CLIENT.port for c in clients)


def test_servers_round_trip(db):
    broadcast = Server(
        ip="1.1.1.1", is_broadcast_domain=True, port=443, name="SARASA", country="US"
    )
    db.add_active_flows([make_flow("12345"), make_flow("12346", server=broadcast)])
    servers = {s.key: s for s in db.get_servers()}
    assert servers["12345"] == Server(
        key="12345", ip=SERVER.ip, port=443, name=SERVER.name, country="US"
    )
    assert servers["12346"].is_broadcast_domain is True
    assert servers["12346"].is_dhcp is False


def test_server_by_name_then_ip(db):
    db.add_active_flows([make_flow("12345")])
    by_name = db.get_server_by_attr("lib.gen.rus")
    by_ip = db.get_server_by_attr("123.123.123.123")
    assert by_name == by_ip
    assert by_name.key == "12345"
    assert db.get_server_by_attr("LIB.GEN.RUS") == by_name


def test_missing_server_is_empty(db):
    db.add_active_flows([make_flow("12345")])
    assert db.get_server_by_attr("telegram.com") == Server()


def test_host_round_trip(db):
    host = Host(
        name="test.randomdns.com",
        private_host=True,
        ip="13.13.13.13",
        city="BuenosAires",
        country="AR",
        mac="00:00:5e:00:53:01",
    )
    db.add_hosts([host, Host(name="test", ip="123.123.123.123", country="US")])
    assert db.get_host_by_ip("13.13.13.13") == host
    assert db.get_host_by_ip("123.123.123.123").country == "US"


def test_missing_host_is_empty(db):
    assert db.get_host_by_ip("10.10.10.10") == Host()


def test_missing_table_raises(connection, db):
    connection.execute("DROP TABLE hosts")
    with pytest.raises(sqlite3.OperationalError):
        db.add_hosts([Host(ip="13.13.13.13")])


def test_traffic_row_kept_when_later_insert_fails(connection, db):
    connection.execute("DROP TABLE clients")
    with pytest.raises(sqlite3.OperationalError):
        db.add_active_flows([make_flow("12345"), make_flow("12346")])
    assert db.get_flow_by_key("12345").key == "12345"
    assert db.get_flow_by_key("12346") == ActiveFlow()