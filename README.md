# netsentinel

netsentinel is a library for building a small HTTP backend for a home or
office network monitor. It reads data from an ntopng instance and serves it
to a dashboard as JSON:

- the hosts ntopng has seen, and which of them are local;
- the flows active right now, and how many bytes went to each public
  destination or each country;
- the security alerts of the last seven days.

It can also save hosts and flows to an SQLite database, send the newest
cybersecurity alerts to a Telegram chat, and pass a host to be blocked to a
console you supply.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## What is in the package

| Module                  | Contents                                                              |
|-------------------------|-----------------------------------------------------------------------|
| `netsentinel.models`    | `Host`, `ActiveFlow`, `Client`, `Server`, `Protocol`, `Alert`, `AlertFlow`, `BytesPerDestination`, `BytesPerCountry` |
| `netsentinel.ports`     | the interfaces `Tool`, `Terminal`, `NotificationChannel`, `Database`   |
| `netsentinel.ntopng`    | `NtopNG`, a `Tool` talking to the ntopng REST interface                |
| `netsentinel.database`  | `SQLClient`, a `Database` on an SQLite connection                      |
| `netsentinel.telegram`  | `Telegram`, a `NotificationChannel` using a Telegram bot               |
| `netsentinel.fakes`     | `FakeTool`, `FakeConsole`, `FakeBot`, `FakeSQLClient` with sample data |
| `netsentinel.hosts`     | `HostSearcher`, `HostsFilter`, `HostsStorage`, `Blocker`, `HostsRepo`  |
| `netsentinel.traffic`   | `TrafficSearcher`, `BytesAggregatorParser`, `FlowsStorage`, `FlowsRepo`|
| `netsentinel.alerts`    | `AlertSearcher`, `AlertNotifier`, `parse_alerts`                       |
| `netsentinel.api`       | `Api`, the Flask application and its routes                            |

## Assembling and running a server

`Api` holds the use cases and a Flask application. Each `map_..._url`
method adds one route; `run(host, port)` serves the application (by default
on `0.0.0.0:8080`). With the sample services:

```python
from netsentinel.alerts import AlertNotifier, AlertSearcher
from netsentinel.api import Api
from netsentinel.fakes import FakeBot, FakeConsole, FakeSQLClient, FakeTool
from netsentinel.hosts import Blocker, HostSearcher, HostsFilter, HostsRepo, HostsStorage
from netsentinel.traffic import (
    BytesAggregatorParser,
    FlowsRepo,
    FlowsStorage,
    TrafficSearcher,
)

tool, console, channel, database = FakeTool(), FakeConsole(), FakeBot(), FakeSQLClient()

host_searcher = HostSearcher(tool)
hosts_storage = HostsStorage(host_searcher, HostsRepo(database))
traffic_searcher = TrafficSearcher(tool)
flows_repo = FlowsRepo(database)
alerts_searcher = AlertSearcher(tool)

api = Api(
    tool=tool,
    host_use_case=host_searcher,
    hosts_filter=HostsFilter(host_searcher),
    host_blocker=Blocker(console),
    hosts_storage=hosts_storage,
    traffic_searcher=traffic_searcher,
    traffic_bytes_parser=BytesAggregatorParser(flows_repo),
    active_flows_storage=FlowsStorage(traffic_searcher, flows_repo, hosts_storage),
    alerts_searcher=alerts_searcher,
    alerts_sender=AlertNotifier(channel, alerts_searcher),
    notif_channel=channel,
)

for map_route in (
    api.map_url_to_ping,
    api.map_get_hosts_url,
    api.map_get_traffic_url,
    api.map_get_local_hosts_url,
    api.map_get_active_flows_per_destination_url,
    api.map_store_active_flows_url,
    api.map_alerts_url,
    api.map_block_host_url,
    api.map_notifications_url,
    api.map_configure_notif_channel_url,
    api.map_get_active_flows_per_country_url,
    api.map_store_hosts_url,
):
    map_route()

api.run("127.0.0.1", 8080)
```

The fakes return fixed sample data: `FakeConsole` only prints what it would
block, `FakeBot` keeps the messages it is given in `sent`, and
`FakeSQLClient` stores nothing and finds nothing.

To use a real ntopng instance, an SQLite file and Telegram, put these in
place of the fakes:

```python
import sqlite3

from netsentinel.database import SQLClient
from netsentinel.ntopng import NtopNG
from netsentinel.telegram import Telegram

password = "password"
tool = NtopNG(url_client="http://192.0.2.10:3000", usr="admin", password=password)
tool.set_interface_id()   # picks the interface named wlan0, else interface 0
tool.enable_checks()      # enables the host, network, flow and system checks in the background
database = SQLClient(sqlite3.connect("traffic.db", check_same_thread=False))
channel = Telegram()
```

`NtopNG.enable_checks` returns one future per check, which resolves to
whether ntopng reported success.

### Database

`SQLClient` does not create tables. The SQLite file must already have:

- `traffic(key, first_seen, last_seen, bytes)` with `key` unique
- `clients(key, name, ip, port)`
- `servers(key, name, ip, port, is_broadcast_domain, is_dhcp, country)`
- `protocols(key, l4, l7)`
- `hosts(name, asname, privatehost, ip, mac, city, country)`

## HTTP endpoints

| Method | Path                     | What it does                                        |
|--------|--------------------------|-----------------------------------------------------|
| GET    | `/ping`                  | answers `{"message": "pong"}`                       |
| GET    | `/hosts`                 | all hosts known to the tool                         |
| POST   | `/hosts`                 | saves the current hosts to the database             |
| GET    | `/localhosts`            | only the private (local) hosts                      |
| GET    | `/traffic`               | all active flows                                    |
| POST   | `/activeflows`           | saves the active flows to the database              |
| GET    | `/activeflowsperdest`    | bytes per public destination, from the database     |
| GET    | `/activeflowspercountry` | bytes per country, from the database                |
| GET    | `/alerts`                | alerts of the last seven days                       |
| POST   | `/alertnotification`     | sends the last five minutes of cybersecurity alerts |
| POST   | `/configurechannel`      | sets up the notification channel                    |
| POST   | `/blockhost`             | blocks a host by IP address or name                 |

Successful answers carry their result under `"data"` or a short text under
`"message"`. Failures answer with status 500, or 400 for a bad request body
or a host that could not be blocked.

`/blockhost` takes a body such as:

```json
{"host": "203.0.113.7"}
```

`/configurechannel` takes the bot token and the Telegram user name whose
chat will receive the alerts:

```json
{"token": "token", "username": "someone"}
```

After configuring `Telegram`, send any message to the bot from that
Telegram account; the bot then knows which chat to write to. Until that
happens, notifications are dropped silently.

## What the package does not do

- It has no command-line program. A server is assembled and started from
  Python as shown above.
- It has no console that really blocks traffic. `Blocker` hands the host to
  any object with a `block_host(host)` method (the `Terminal` interface);
  the only one included is `FakeConsole`, which just prints. Blocking at the
  firewall needs a console of your own.