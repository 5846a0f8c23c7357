"""Configuration and credential stores."""

from icarium.stores.base import CredentialStore, RepositoryStore
from icarium.stores.dynamodb import DynamoCredentialStore, DynamoRepositoryStore

__all__ = [
    "CredentialStore",
    "DynamoCredentialStore",
    "DynamoRepositoryStore",
    "RepositoryStore",
]
