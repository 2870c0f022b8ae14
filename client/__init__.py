"""Python client for the session auth API"""
from client.api import AuthApi
from client.broadcast import BroadcastChannel, BroadcastHub
from client.context import AppContext
from client.events import AUTH_FAILURE, AuthEventBus
from client.fetch import AuthFetch
from client.session_store import SessionStore

__all__ = [
    "AUTH_FAILURE",
    "AppContext",
    "AuthApi",
    "AuthEventBus",
    "AuthFetch",
    "BroadcastChannel",
    "BroadcastHub",
    "SessionStore",
]
