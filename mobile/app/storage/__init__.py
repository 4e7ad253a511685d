"""Persistent key-value storage for the login credentials."""

from .adapters import BaseCredentialAdapter, InMemoryCredentialAdapter, RedisCredentialAdapter
from .credentials import CredentialStore

__all__ = [
    "BaseCredentialAdapter",
    "CredentialStore",
    "InMemoryCredentialAdapter",
    "RedisCredentialAdapter",
]
