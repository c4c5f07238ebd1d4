"""Credential persistence for chatline."""

from .models import Credential, CredentialScope, UserProfile
from .store import CredentialStore

__all__ = [
    "Credential",
    "CredentialScope",
    "CredentialStore",
    "UserProfile",
]
