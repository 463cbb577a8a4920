"""HTTP API exposing hosts, traffic, alerts and notification endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from flask import Flask, Response, jsonify, request

from netsentinel.models import Alert, AlertFlow, Host

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


def create_flow_string(flow: AlertFlow) -> tuple[str, str]:
    """Return the ``ip:port`` source and ``name:port`` destination of a flow.

    The destination falls back to the server IP when the server has no name.
    """
    source = f"{flow.client.ip}:{flow.client.port}"
    destination = f"{flow.server.name or flow.server.ip}:{flow.server.port}"
    return source, destination


def parse_host_response(hosts: Iterable[Host] | None) -> list[dict[str, Any]]:
    """Shape hosts for the local hosts endpoint."""
    return [
        {"Privado": host.private_host, "IP": host.ip, "MAC": host.mac}
        for host in hosts or []
    ]


def parse_alerts_response(alerts: Iterable[Alert] | None) -> list[dict[str, Any]]:
    """Shape alerts for the alerts endpoint."""
    response = []
    for alert in alerts or []:
        source, destination = create_flow_string(alert.alert_flow)
        response.append(
            {
                "Nombre": alert.name,
                "Categoría": alert.category,
                "Fecha/hora": alert.time,
                "Severidad": alert.severity,
                "Origen": source,
                "Destino": destination,
            }
        )
    return response


def _dicts(items: Iterable[Any] | None) -> list[dict[str, Any]] | None:
    if items is None:
        return None
    return [item.to_dict() for item in items]


def _ok(payload: Any, method: str) -> Response:
    response = jsonify(payload)
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = method
    return response


def _fail(status: int, message: Any = "error") -> tuple[Response, int]:
    return jsonify({"data": message}), status


def _required_text(body: Any, name: str) -> str | None:
    """Return a non-empty string member of a JSON object, matching names case-insensitively."""
    if not isinstance(body, dict):
        return None
    if name in body:
        value = body[name]
    else:
        lowered = name.lower()
        value = next(
            (v for k, v in body.items() if isinstance(k, str) and k.lower() == lowered),
            None,
        )
    if not isinstance(value, str) or not value:
        return None
    return value


def _request_body() -> Any:
    return request.get_json(force=True, silent=True)


@dataclass
class Api:
    """Wires the use cases to HTTP routes of a Flask application."""

    tool: Any = None
    host_use_case: Any = None
    traffic_searcher: Any = None
    hosts_filter: Any = None
    traffic_bytes_parser: Any = None
    active_flows_storage: Any = None
    alerts_searcher: Any = None
    host_blocker: Any = None
    notif_channel: Any = None
    alerts_sender: Any = None
    hosts_storage: Any = None
    app: Flask = field(default_factory=lambda: Flask("netsentinel"))

    # Handlers

    def get_hosts(self) -> Any:
        try:
            hosts = self.host_use_case.get_all_hosts()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"data": _dicts(hosts)}, "GET")

    def get_traffic(self) -> Any:
        try:
            traffic = self.traffic_searcher.get_all_active_traffic()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"data": _dicts(traffic)}, "GET")

    def get_local_hosts(self) -> Any:
        try:
            hosts = self.hosts_filter.get_local_hosts()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"data": parse_host_response(hosts)}, "GET")

    def get_active_flows_per_destination(self) -> Any:
        try:
            flows = self.traffic_bytes_parser.get_bytes_per_destination()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"data": _dicts(flows)}, "GET")

    def store_active_traffic(self) -> Any:
        try:
            self.active_flows_storage.store_flows()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"message": "ok"}, "POST")

    def get_alerts(self) -> Any:
        try:
            alerts = self.alerts_searcher.get_all_alerts()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"data": parse_alerts_response(alerts)}, "GET")

    def block_host(self) -> Any:
        host = _required_text(_request_body(), "host")
        if host is None:
            return _fail(400)
        try:
            blocked = self.host_blocker.block(host)
        except Exception as exc:
            logger.error("%s", exc)
            return jsonify({"error": str(exc)}), 400
        if blocked is None:
            return _fail(400, "Host not found")
        return _ok({"message": "Host " + host + "has been blocked"}, "POST")

    def send_alert_notification(self) -> Any:
        try:
            self.alerts_sender.send_last_alert_messages()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500, "error getting last alerts")
        return _ok({"message": "ok"}, "POST")

    def config_notification_channel(self) -> Any:
        body = _request_body()
        token = _required_text(body, "token")
        username = _required_text(body, "username")
        if token is None or username is None:
            return _fail(400)
        try:
            self.notif_channel.configure(token, username)
        except Exception as exc:
            logger.error("%s", exc)
            return jsonify({"error": str(exc)}), 500
        return _ok({"Message": "Channel configured"}, "POST")

    def get_active_flows_per_country(self) -> Any:
        try:
            flows = self.traffic_bytes_parser.get_bytes_per_country()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"data": _dicts(flows)}, "GET")

    def store_hosts(self) -> Any:
        try:
            self.hosts_storage.store_hosts()
        except Exception as exc:
            logger.error("%s", exc)
            return _fail(500)
        return _ok({"message": "ok"}, "POST")

    # Routes

    def _route(self, path: str, method: str, view: Any) -> None:
        self.app.add_url_rule(path, view.__name__, view, methods=[method])

    def map_url_to_ping(self) -> None:
        def ping() -> Response:
            return jsonify({"message": "pong"})

        self._route("/ping", "GET", ping)

    def map_get_hosts_url(self) -> None:
        self._route("/hosts", "GET", self.get_hosts)

    def map_get_traffic_url(self) -> None:
        self._route("/traffic", "GET", self.get_traffic)

    def map_get_local_hosts_url(self) -> None:
        self._route("/localhosts", "GET", self.get_local_hosts)

    def map_get_active_flows_per_destination_url(self) -> None:
        self._route("/activeflowsperdest", "GET", self.get_active_flows_per_destination)

    def map_get_active_flows_per_country_url(self) -> None:
        self._route("/activeflowspercountry", "GET", self.get_active_flows_per_country)

    def map_store_active_flows_url(self) -> None:
        self._route("/activeflows", "POST", self.store_active_traffic)

    def map_alerts_url(self) -> None:
        self._route("/alerts", "GET", self.get_alerts)

    def map_block_host_url(self) -> None:
        self._route("/blockhost", "POST", self.block_host)

    def map_notifications_url(self) -> None:
        self._route("/alertnotification", "POST", self.send_alert_notification)

    def map_configure_notif_channel_url(self) -> None:
        self._route("/configurechannel", "POST", self.config_notification_channel)

    def map_store_hosts_url(self) -> None:
        self._route("/hosts", "POST", self.store_hosts)

    def run(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        """Serve the API until interrupted."""
        self.app.run(host=host, port=port)