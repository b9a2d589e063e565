"""Clients for external services."""

from docgate.clients.http import RegistryHTTPClient

__all__ = ["RegistryHTTPClient"]
