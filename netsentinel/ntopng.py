"""Client for the REST interface of an ntopng monitoring instance."""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, NamedTuple

import requests

from netsentinel.models import (
    ActiveFlow,
    Alert,
    AlertFlow,
    Client,
    Host,
    Protocol,
    Server,
)

logger = logging.getLogger(__name__)

INTERFACES_ENDPOINT = "/lua/rest/v2/get/ntopng/interfaces.lua"
ACTIVE_FLOWS_ENDPOINT = "/lua/rest/v2/get/flow/active.lua"
ALERTS_ENDPOINT = "/lua/rest/v2/get/flow/alert/list.lua"
HOSTS_ENDPOINT = "/lua/rest/v2/get/host/custom_data.lua"
ENABLE_CHECK_ENDPOINT = "/lua/rest/v2/enable/check.lua"

MONITORED_INTERFACE = "wlan0"
HOST_FIELDS = "asname,privatehost,ip,os_detail,mac,city,country"
_CHECK_WORKERS = 5

SEVERITY_SCORE = {
    1: "Depuración",
    2: "Informativo",
    3: "Notificación",
    4: "Advertencia",
    5: "Error",
    6: "Crítico",
    7: "Alerta",
    8: "Emergencia",
}


@dataclass(frozen=True)
class Check:
    """A detection script of the monitoring tool."""

    subdir: str
    script_key: str

    def to_dict(self) -> dict[str, str]:
        return {"check_subdir": self.subdir, "script_key": self.script_key}


_HOST_CHECKS = (
    "domain_names_contacts", "ntp_contacts", "syn_scan", "fin_scan",
    "dangerous_host", "scan_detection", "syn_flood", "dns_contacts",
    "flow_flood", "rst_scan", "smtp_contacts", "countries_contacts",
    "score_threshold", "icmp_flood", "external_host_script",
    "remote_connection", "custom_host_lua_script",
)
_NETWORK_CHECKS = (
    "ip_reassignment", "syn_flood_victim", "flow_flood_victim",
    "broadcast_domain_too_large", "network_discovery", "network_issues",
    "syn_scan_victim",
)
_FLOW_CHECKS = (
    "blacklisted_client_contact", "ndpi_suspicious_entropy",
    "ndpi_http_suspicious_url", "ndpi_http_obsolete_server",
    "ndpi_binary_data_transfer", "ndpi_dns_large_packet",
    "ndpi_url_possible_rce_injection", "ndpi_http_suspicious_content",
    "ndpi_minor_issues", "ndpi_url_possible_sql_injection",
    "device_protocol_not_allowed", "ndpi_url_possible_xss",
    "ndpi_smb_insecure_version", "iec_unexpected_type_id",
    "ndpi_tls_alpn_sni_mismatch", "ndpi_invalid_characters",
    "ndpi_http_crawler_bot", "remote_to_local_insecure_flow",
    "ndpi_periodic_flow", "web_mining", "unexpected_smtp",
    "ndpi_suspicious_dga_domain", "ndpi_desktop_or_file_sharing_session",
    "ndpi_tcp_issues", "remote_to_remote", "ndpi_http_suspicious_header",
    "ndpi_tls_suspicious_extension", "ndpi_malicious_sha1_certificate",
    "ndpi_dns_fragmented", "ndpi_tls_certificate_about_to_expire",
    "ndpi_numeric_ip_host", "ndpi_ssh_obsolete_server",
    "ndpi_tls_suspicious_esni_usage", "ndpi_malicious_ja3",
    "ndpi_http_suspicious_user_agent", "unexpected_dns",
    "ndpi_ssh_obsolete_client", "vlan_bidirectional_traffic",
    "ndpi_tls_fatal_alert", "external_alert_check", "ndpi_risky_domain",
    "iec_invalid_command_transition", "ndpi_anonymous_subscriber",
    "ndpi_tls_not_carrying_https", "not_purged", "custom_lua_script",
    "ndpi_unsafe_protocol", "ndpi_clear_text_credentials", "blacklisted",
    "broadcast_non_udp_traffic", "ndpi_possible_exploit",
    "binary_application_transfer", "ndpi_probing_attempt",
    "ndpi_tls_uncommon_alpn", "zero_tcp_window",
    "ndpi_malware_host_contacted", "country_check",
    "ndpi_dns_suspicious_traffic", "iec_invalid_transition",
    "unexpected_dhcp", "ndpi_risky_asn", "low_goodput", "unexpected_ntp",
    "remote_access", "ndpi_punicody_idn", "ndpi_malformed_packet",
    "ndpi_error_code_detected", "tcp_no_data_exchanged", "tcp_flow_reset",
    "rare_destination", "ndpi_tls_missing_sni",
    "ndpi_unidirectional_traffic", "blacklisted_server_contact",
    "known_proto_on_non_std_port", "ndpi_fully_encrypted",
)
_SYSTEM_CHECKS = ("ids_ips_log",)

CHECKS: tuple[Check, ...] = tuple(
    Check(subdir, key)
    for subdir, keys in (
        ("host", _HOST_CHECKS),
        ("network", _NETWORK_CHECKS),
        ("flow", _FLOW_CHECKS),
        ("system", _SYSTEM_CHECKS),
    )
    for key in keys
)


def _field(data: Any, name: str, default: Any = None) -> Any:
    """Look a JSON member up by name, exact match first, then ignoring case."""
    if not isinstance(data, dict):
        return default
    if name in data:
        value = data[name]
    else:
        lowered = name.lower()
        value = next(
            (v for k, v in data.items() if isinstance(k, str) and k.lower() == lowered),
            None,
        )
    return default if value is None else value


def _text(data: Any, name: str) -> str:
    return str(_field(data, name, ""))


def _number(data: Any, name: str) -> int:
    return int(_field(data, name, 0))


def _flag(data: Any, name: str) -> bool:
    return bool(_field(data, name, False))


def _parse_client(data: Any) -> Client:
    return Client(
        key=_text(data, "Key"),
        name=_text(data, "Name"),
        port=_number(data, "Port"),
        ip=_text(data, "IP"),
    )


def _parse_server(data: Any) -> Server:
    return Server(
        key=_text(data, "Key"),
        ip=_text(data, "IP"),
        is_broadcast_domain=_flag(data, "IsBroadcastDomain"),
        is_dhcp=_flag(data, "IsDHCP"),
        port=_number(data, "Port"),
        name=_text(data, "Name"),
        country=_text(data, "Country"),
    )


def _parse_protocol(data: Any) -> Protocol:
    return Protocol(
        key=_text(data, "Key"),
        l4=_text(data, "L4"),
        l7=_text(data, "L7"),
        label=_text(data, "Label"),
    )


def _parse_flow(data: Any) -> ActiveFlow:
    return ActiveFlow(
        key=_text(data, "key"),
        first_seen=_number(data, "first_seen"),
        last_seen=_number(data, "last_seen"),
        client=_parse_client(_field(data, "Client", {})),
        server=_parse_server(_field(data, "Server", {})),
        bytes=_number(data, "Bytes"),
        protocol=_parse_protocol(_field(data, "Protocol", {})),
    )


def _parse_host(data: Any) -> Host:
    return Host(
        name=_text(data, "Name"),
        asname=_text(data, "ASname"),
        private_host=_flag(data, "PrivateHost"),
        ip=_text(data, "IP"),
        mac=_text(data, "Mac"),
        city=_text(data, "City"),
        country=_text(data, "Country"),
    )


def parse_tool_alerts(raw_alerts: Iterable[dict[str, Any]]) -> list[Alert]:
    """Convert alert records as the tool reports them into alerts.

    Raises ValueError when a port is not an integer.
    """
    alerts = []
    for raw in raw_alerts:
        flow = _field(raw, "flow", {})
        client = _field(flow, "cli_ip", {})
        server = _field(flow, "srv_ip", {})
        protocol = _field(_field(raw, "l7_proto", {}), "Protocol", {})
        cli_port = int(_text(flow, "cli_port"))
        srv_port = int(_text(flow, "srv_port"))
        alerts.append(
            Alert(
                name=_text(_field(raw, "Msg", {}), "fullname"),
                family=_text(raw, "Family"),
                category=_text(_field(raw, "alert_category", {}), "Label"),
                time=_text(_field(raw, "tstamp", {}), "Label"),
                severity=SEVERITY_SCORE.get(_number(_field(raw, "severity", {}), "Value"), ""),
                alert_flow=AlertFlow(
                    client=Client(
                        name=_text(client, "value"),
                        ip=_text(client, "value"),
                        port=cli_port,
                    ),
                    server=Server(
                        name=_text(server, "name"),
                        ip=_text(server, "value"),
                        port=srv_port,
                    ),
                ),
                alert_protocol=Protocol(
                    l4=_text(protocol, "l4_label"),
                    l7=_text(protocol, "l7_label"),
                    label=_text(protocol, "label"),
                ),
            )
        )
    return alerts


class _FlowsPage(NamedTuple):
    flows: list[ActiveFlow]
    current_page: int
    per_page: int


@dataclass
class NtopNG:
    """A monitoring tool reached through the ntopng REST interface."""

    url_client: str
    usr: str
    password: str
    interface_id: int = 0
    timeout: float | None = None

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        response = requests.request(
            method,
            self.url_client + endpoint,
            params=params,
            json=body,
            headers={"Content-Type": "application/json"},
            auth=(self.usr, self.password),
            timeout=self.timeout,
        )
        return json.loads(response.text)

    def set_interface_id(self) -> None:
        """Select the interface named wlan0, or interface 0 when there is none."""
        body = self._request("GET", INTERFACES_ENDPOINT)
        interface_id = 0
        for interface in _field(body, "rsp", []):
            if _text(interface, "name") == MONITORED_INTERFACE:
                interface_id = _number(interface, "ifid")
        self.interface_id = interface_id

    def get_all_hosts(self) -> list[Host]:
        body = self._request(
            "GET",
            HOSTS_ENDPOINT,
            params={"ifid": str(self.interface_id), "field_alias": HOST_FIELDS},
        )
        return [_parse_host(host) for host in _field(body, "Rsp", [])]

    def get_all_active_traffic(self) -> list[ActiveFlow]:
        """Return every active flow, following the pages the tool reports."""
        flows: list[ActiveFlow] = []
        page = self._active_flows_page(1)
        while len(page.flows) > page.per_page:
            flows.extend(page.flows)
            page = self._active_flows_page(page.current_page + 1)
        flows.extend(page.flows)
        return flows

    def _active_flows_page(self, page: int) -> _FlowsPage:
        body = self._request(
            "GET",
            ACTIVE_FLOWS_ENDPOINT,
            params={"ifid": str(self.interface_id), "currentPage": str(page)},
        )
        rsp = _field(body, "Rsp", {})
        return _FlowsPage(
            flows=[_parse_flow(flow) for flow in _field(rsp, "Data", [])],
            current_page=_number(rsp, "CurrentPage"),
            per_page=_number(rsp, "PerPage"),
        )

    def get_all_alerts(self, epoch_begin: int, epoch_end: int) -> list[Alert]:
        body = self._request(
            "GET",
            ALERTS_ENDPOINT,
            params={
                "ifid": str(self.interface_id),
                "epoch_begin": str(epoch_begin),
                "epoch_end": str(epoch_end),
            },
        )
        records = _field(_field(body, "rsp", {}), "records")
        if records is None:
            return []
        return parse_tool_alerts(records)

    def enable_checks(self) -> list[Future[bool]]:
        """Enable every known check in the background.

        Returns one future per check, resolving to whether the tool reported success.
        """
        executor = ThreadPoolExecutor(max_workers=_CHECK_WORKERS)
        futures = [executor.submit(self._enable_and_report, check) for check in CHECKS]
        executor.shutdown(wait=False)
        return futures

    def _enable_and_report(self, check: Check) -> bool:
        logger.info("Enabling %s", check)
        try:
            success = self._enable_check(check)
        except (requests.RequestException, ValueError):
            logger.warning("Error enabling check %s", check)
            return False
        if not success:
            logger.warning("Error enabling check %s", check)
        return success

    def _enable_check(self, check: Check) -> bool:
        body = self._request("POST", ENABLE_CHECK_ENDPOINT, body=check.to_dict())
        return bool(_field(_field(body, "Rsp", {}), "Success", False))