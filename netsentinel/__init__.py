"""Building blocks for a network monitoring backend over ntopng: hosts, flows, alerts, storage and an HTTP API."""

__version__ = "0.1.0"