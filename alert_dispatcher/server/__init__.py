"""HTTP transport for webhooks and interactive callbacks."""

from alert_dispatcher.server.app import create_web_app, start_web_server

__all__ = [
    "create_web_app",
    "start_web_server",
]
