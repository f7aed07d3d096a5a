"""Clients for the remote verification service."""

from idcheck.plugins.clients.base import ValidationService
from idcheck.plugins.clients.credential import CredentialTypeClient, parse_verdict

__all__ = ["CredentialTypeClient", "ValidationService", "parse_verdict"]
