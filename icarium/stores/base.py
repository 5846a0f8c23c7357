"""Abstract base classes for the configuration and credential stores."""

from abc import ABC, abstractmethod

from pydantic import SecretStr

from icarium.models.repository import RepositoryConfig


class RepositoryStore(ABC):
    """Lookup of per-repository build configuration."""

    @abstractmethod
    async def get_repository(
        self, provider: str, repository_full_name: str
    ) -> RepositoryConfig | None:
        """Fetch the build configuration of a repository.

        Args:
            provider: Source hosting provider (e.g. "github")
            repository_full_name: Repository in owner/name format

        Returns:
            The configuration, or None if the repository is not configured

        Raises:
            ConfigStoreError: If the store cannot be queried

        """


class CredentialStore(ABC):
    """Lookup of per-owner source hosting credentials."""

    @abstractmethod
    async def get_token(self, username: str) -> SecretStr | None:
        """Fetch the access token of a repository owner.

        Returns:
            The token (which may be empty), or None if none is stored

        Raises:
            CredentialStoreError: If the store cannot be queried

        """
