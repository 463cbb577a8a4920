from collections import Counter
from unittest.mock import Mock

import pytest

from netsentinel.models import (
    ActiveFlow,
    BytesPerCountry,
    BytesPerDestination,
    Client,
    Host,
    Protocol,
    Server,
)
from netsentinel.traffic import (
    BytesAggregatorParser,
    FlowsRepo,
    FlowsStorage,
    TrafficSearcher,
)

LOCAL_CLIENT = Client(name="Local", port=12345, ip="192.168.4.1")
GOOGLE_PROTO = Protocol(l4="TCP", l7="TLS.Google")

server1 = Server(ip="8.8.8.8", port=443, name="google.com.ar", country="US", key="12344567")
server2 = Server(ip="8.8.8.8", port=443, name="google.com.ar", country="US", key="12344568")
server3 = Server(ip="8.8.10.8", port=443, name="telegram.com", country="RU", key="12344569")
no_name_server = Server(ip="8.8.10.10", port=443, name="", country="US", key="12344570")

expected_flow_from_searcher = [
    ActiveFlow(client=LOCAL_CLIENT, server=server1, protocol=GOOGLE_PROTO, bytes=5566778),
]
expected_flow_without_name = [
    ActiveFlow(client=LOCAL_CLIENT, server=no_name_server, protocol=GOOGLE_PROTO, bytes=5566778),
]
second_expected_flow = [
    ActiveFlow(client=LOCAL_CLIENT, server=server1, protocol=GOOGLE_PROTO, bytes=5566778),
    ActiveFlow(client=LOCAL_CLIENT, server=server2, protocol=GOOGLE_PROTO, bytes=100000),
]
expected_per_country = [
    ActiveFlow(client=LOCAL_CLIENT, server=server1, protocol=GOOGLE_PROTO, bytes=5566778),
    ActiveFlow(
        client=LOCAL_CLIENT,
        server=server3,
        protocol=Protocol(l4="TCP", l7="TLS.Telegram"),
        bytes=5566778,
    ),
    ActiveFlow(
        client=LOCAL_CLIENT,
        server=Server(ip="8.8.10.82", port=443, name="telegram.com"),
        protocol=GOOGLE_PROTO,
        bytes=5566778,
    ),
]

client = Client(name="test", port=55672, ip="192.168.4.9")
server = Server(
    ip="123.123.123.123", port=443, name="lib.gen.rus", country="US", key="12344567"
)
protocols = Protocol(l4="UDP.Youtube", l7="TLS.GoogleServices")
host = Host(name="test", private_host=False, ip="123.123.123.123", country="US")

broadcast_server = Server(
    ip="1.1.1.1", is_broadcast_domain=True, port=443, name="SARASA", country="US", key="12344569"
)
broadcast_server_changed = Server(
    ip="1.1.1.1", is_broadcast_domain=True, port=443, name="1.1.1.1", country="US", key="12344569"
)
public_host = Host(name="SARASA", private_host=False, ip="1.1.1.1", country="US")


def _repo_with(servers, flows_by_key):
    repo = Mock()
    repo.get_servers.return_value = servers
    repo.get_flow_by_key.side_effect = lambda key: flows_by_key[key]
    return repo


# ---- TrafficSearcher ----


def test_get_all_traffic_returns_flows_and_caches_them():
    flows = [
        ActiveFlow(
            client=client,
            server=Server(ip="123.123.123.123", port=443, name="lib.gen.rus"),
            bytes=1000,
            protocol=protocols,
        )
    ]
    service = Mock()
    service.get_all_active_traffic.return_value = flows
    searcher = TrafficSearcher(service)
    assert searcher.get_all_active_traffic() == flows
    assert searcher.get_active_flows() == flows


def test_get_all_traffic_propagates_error():
    service = Mock()
    service.get_all_active_traffic.side_effect = RuntimeError("Testing Error")
    searcher = TrafficSearcher(service)
    with pytest.raises(RuntimeError):
        searcher.get_all_active_traffic()
    assert searcher.get_active_flows() == []


# ---- BytesAggregatorParser ----


def test_bytes_per_destination_single_server():
    repo = _repo_with([server1], {server1.key: expected_flow_from_searcher[0]})
    got = BytesAggregatorParser(repo).get_bytes_per_destination()
    assert got == [BytesPerDestination(bytes=5566778, destination="google.com.ar")]


def test_bytes_per_destination_more_than_one_server():
    repo = _repo_with(
        [server1, server2, server3],
        {
            server1.key: second_expected_flow[0],
            server2.key: second_expected_flow[1],
            server3.key: expected_per_country[1],
        },
    )
    got = BytesAggregatorParser(repo).get_bytes_per_destination()
    expected = [
        BytesPerDestination(bytes=5566778 + 100000, destination="google.com.ar"),
        BytesPerDestination(bytes=5566778, destination="telegram.com"),
    ]
    assert Counter(got) == Counter(expected)


def test_bytes_per_destination_get_servers_error():
    repo = Mock()
    repo.get_servers.side_effect = RuntimeError("Test error")
    with pytest.raises(RuntimeError):
        BytesAggregatorParser(repo).get_bytes_per_destination()


def test_bytes_per_destination_get_flow_by_key_error():
    repo = Mock()
    repo.get_servers.return_value = [server]
    repo.get_flow_by_key.side_effect = RuntimeError("Test error")
    with pytest.raises(RuntimeError):
        BytesAggregatorParser(repo).get_bytes_per_destination()
    repo.get_flow_by_key.assert_called_once_with(server.key)


def test_bytes_per_destination_sums_same_destination():
    repo = _repo_with(
        [server1, server2],
        {server1.key: second_expected_flow[0], server2.key: second_expected_flow[1]},
    )
    got = BytesAggregatorParser(repo).get_bytes_per_destination()
    assert got == [BytesPerDestination(bytes=5666778, destination="google.com.ar")]


def test_bytes_per_destination_with_server_without_name_uses_ip():
    repo = _repo_with(
        [server1, server2, server3, no_name_server],
        {
            server1.key: second_expected_flow[0],
            server2.key: second_expected_flow[1],
            server3.key: expected_per_country[1],
            no_name_server.key: expected_flow_without_name[0],
        },
    )
    got = BytesAggregatorParser(repo).get_bytes_per_destination()
    expected = [
        BytesPerDestination(bytes=5666778, destination="google.com.ar"),
        BytesPerDestination(bytes=5566778, destination="telegram.com"),
        BytesPerDestination(bytes=5566778, destination="8.8.10.10"),
    ]
    assert Counter(got) == Counter(expected)


def test_bytes_per_country():
    repo = _repo_with(
        [server1, server2, server3],
        {
            server1.key: expected_per_country[0],
            server2.key: second_expected_flow[1],
            server3.key: expected_per_country[1],
        },
    )
    got = BytesAggregatorParser(repo).get_bytes_per_country()
    expected = [
        BytesPerCountry(country="US", bytes=5566778 + 100000),
        BytesPerCountry(country="RU", bytes=5566778),
    ]
    assert Counter(got) == Counter(expected)


def test_bytes_per_country_get_servers_error():
    repo = Mock()
    repo.get_servers.side_effect = RuntimeError("Test error")
    with pytest.raises(RuntimeError):
        BytesAggregatorParser(repo).get_bytes_per_country()


def test_bytes_per_country_get_flow_by_key_error():
    repo = Mock()
    repo.get_servers.return_value = [server]
    repo.get_flow_by_key.side_effect = RuntimeError("Test error")
    with pytest.raises(RuntimeError):
        BytesAggregatorParser(repo).get_bytes_per_country()


def test_bytes_per_country_with_server_without_name():
    repo = _repo_with(
        [server1, server2, server3, no_name_server],
        {
            server1.key: second_expected_flow[0],
            server2.key: second_expected_flow[1],
            server3.key: expected_per_country[1],
            no_name_server.key: expected_flow_without_name[0],
        },
    )
    got = BytesAggregatorParser(repo).get_bytes_per_country()
    expected = [
        BytesPerCountry(country="US", bytes=5566778 + 100000 + 5566778),
        BytesPerCountry(country="RU", bytes=5566778),
    ]
    assert Counter(got) == Counter(expected)


@pytest.mark.parametrize(
    "ip", ["10.1.2.3", "172.16.0.1", "172.31.255.255", "192.168.4.1", "fd00::1"]
)
def test_private_servers_are_excluded(ip):
    private = Server(ip=ip, name="internal", country="AR", key="k1")
    repo = _repo_with(
        [private, server1], {"k1": ActiveFlow(bytes=99), server1.key: ActiveFlow(bytes=7)}
    )
    got = BytesAggregatorParser(repo).get_bytes_per_destination()
    assert got == [BytesPerDestination(bytes=7, destination="google.com.ar")]


def test_unparseable_ip_counts_as_public():
    odd = Server(ip="not-an-ip", name="", country="ZZ", key="k2")
    repo = _repo_with([odd], {"k2": ActiveFlow(bytes=12)})
    got = BytesAggregatorParser(repo).get_bytes_per_country()
    assert got == [BytesPerCountry(country="ZZ", bytes=12)]


def test_172_outside_private_block_is_public():
    edge = Server(ip="172.32.0.1", name="edge", key="k3")
    repo = _repo_with([edge], {"k3": ActiveFlow(bytes=5)})
    got = BytesAggregatorParser(repo).get_bytes_per_destination()
    assert got == [BytesPerDestination(bytes=5, destination="edge")]


# ---- FlowsStorage ----


def _flow_to_store(srv=server):
    return [ActiveFlow(client=client, server=srv, bytes=1000, protocol=protocols)]


def test_store_traffic_from_searcher_cache():
    flows = _flow_to_store()
    searcher = Mock()
    searcher.get_active_flows.return_value = flows
    hosts = Mock()
    hosts.get_host_by_ip.return_value = host
    repo = Mock()
    FlowsStorage(searcher, repo, hosts).store_flows()
    hosts.get_host_by_ip.assert_called_once_with(server.ip)
    repo.store_flows.assert_called_once_with(flows)
    searcher.get_all_active_traffic.assert_not_called()


def test_store_traffic_fetches_when_cache_empty():
    flows = _flow_to_store()
    searcher = Mock()
    searcher.get_active_flows.return_value = []
    searcher.get_all_active_traffic.return_value = flows
    hosts = Mock()
    hosts.get_host_by_ip.return_value = host
    repo = Mock()
    FlowsStorage(searcher, repo, hosts).store_flows()
    repo.store_flows.assert_called_once_with(flows)


def test_store_traffic_repo_error():
    searcher = Mock()
    searcher.get_active_flows.return_value = _flow_to_store()
    hosts = Mock()
    hosts.get_host_by_ip.return_value = host
    repo = Mock()
    repo.store_flows.side_effect = RuntimeError("Testing Error")
    with pytest.raises(RuntimeError, match="Testing Error"):
        FlowsStorage(searcher, repo, hosts).store_flows()


def test_store_traffic_searcher_error():
    searcher = Mock()
    searcher.get_active_flows.return_value = []
    searcher.get_all_active_traffic.side_effect = RuntimeError("Test error")
    hosts = Mock()
    repo = Mock()
    with pytest.raises(RuntimeError):
        FlowsStorage(searcher, repo, hosts).store_flows()
    repo.store_flows.assert_not_called()


def test_store_traffic_enrich_error():
    searcher = Mock()
    searcher.get_active_flows.return_value = _flow_to_store()
    hosts = Mock()
    hosts.get_host_by_ip.side_effect = RuntimeError("Test error")
    repo = Mock()
    with pytest.raises(RuntimeError):
        FlowsStorage(searcher, repo, hosts).store_flows()
    repo.store_flows.assert_not_called()


def test_store_broadcast_server_uses_ip_as_name():
    searcher = Mock()
    searcher.get_active_flows.return_value = _flow_to_store(broadcast_server)
    hosts = Mock()
    hosts.get_host_by_ip.return_value = public_host
    repo = Mock()
    FlowsStorage(searcher, repo, hosts).store_flows()
    hosts.get_host_by_ip.assert_called_once_with(broadcast_server.ip)
    repo.store_flows.assert_called_once_with(_flow_to_store(broadcast_server_changed))


def test_store_traffic_takes_country_from_host():
    no_country = Server(ip="8.8.8.8", name="dns", key="9")
    searcher = Mock()
    searcher.get_active_flows.return_value = _flow_to_store(no_country)
    hosts = Mock()
    hosts.get_host_by_ip.return_value = Host(ip="8.8.8.8", country="AR")
    repo = Mock()
    FlowsStorage(searcher, repo, hosts).store_flows()
    stored = repo.store_flows.call_args.args[0]
    assert stored[0].server.country == "AR"
    assert stored[0].server.name == "dns"


# ---- FlowsRepo ----


@pytest.mark.parametrize("attr", ["123.123.123.123", "lib.gen.rus"])
def test_get_server_by_attr(attr):
    database = Mock()
    database.get_server_by_attr.return_value = server
    assert FlowsRepo(database).get_server_by_attr(attr) == server
    database.get_server_by_attr.assert_called_once_with(attr)


def test_get_server_by_attr_error():
    database = Mock()
    database.get_server_by_attr.side_effect = RuntimeError("Test Error")
    with pytest.raises(RuntimeError):
        FlowsRepo(database).get_server_by_attr("lib.gen.rus")


def test_get_clients():
    expected = Client(ip="10.10.10.10", name="host1", port=34667)
    database = Mock()
    database.get_clients.return_value = [expected]
    assert FlowsRepo(database).get_clients() == [expected]


def test_get_clients_error():
    database = Mock()
    database.get_clients.side_effect = RuntimeError("Error test")
    with pytest.raises(RuntimeError):
        FlowsRepo(database).get_clients()


def test_get_servers():
    expected = Server(ip="190.190.190.10", name="Google.com", port=443, country="US")
    database = Mock()
    database.get_servers.return_value = [expected]
    assert FlowsRepo(database).get_servers() == [expected]


def test_get_servers_error():
    database = Mock()
    database.get_servers.side_effect = RuntimeError("Error test")
    with pytest.raises(RuntimeError):
        FlowsRepo(database).get_servers()


def test_get_flow_by_key():
    expected = ActiveFlow(key="12345", client=client, server=server, bytes=1000, protocol=protocols)
    database = Mock()
    database.get_flow_by_key.return_value = expected
    assert FlowsRepo(database).get_flow_by_key("12345") == expected
    database.get_flow_by_key.assert_called_once_with("12345")


def test_get_flow_by_key_error():
    database = Mock()
    database.get_flow_by_key.side_effect = RuntimeError("Test error")
    with pytest.raises(RuntimeError):
        FlowsRepo(database).get_flow_by_key("1234")


def test_store_flows():
    flows = [
        ActiveFlow(key=key, client=client, server=server, bytes=1000, protocol=protocols)
        for key in ("12345", "12346", "123457")
    ]
    database = Mock()
    FlowsRepo(database).store_flows(flows)
    database.add_active_flows.assert_called_once_with(flows)


def test_store_flows_error():
    database = Mock()
    database.add_active_flows.side_effect = RuntimeError("Error Test")
    with pytest.raises(RuntimeError, match="Error Test"):
        FlowsRepo(database).store_flows([])