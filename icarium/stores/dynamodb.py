"""DynamoDB-backed configuration and credential stores."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import SecretStr, ValidationError

from icarium.exceptions import ConfigStoreError, CredentialStoreError
from icarium.models.repository import BuildRule, RepositoryConfig
from icarium.stores.base import CredentialStore, RepositoryStore

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBClient
    from mypy_boto3_dynamodb.type_defs import AttributeValueTypeDef

log = logging.getLogger(__name__)

NOT_FOUND_CODE = "ResourceNotFoundException"

AttributeMap: TypeAlias = Mapping[str, Mapping[str, Any]]


def is_not_found(error: ClientError) -> bool:
    """Check if a DynamoDB error reports a missing resource."""
    return error.response.get("Error", {}).get("Code") == NOT_FOUND_CODE


def string_attribute(item: AttributeMap, name: str) -> str:
    """Read a string attribute, treating absent or non-string values as empty."""
    value = item.get(name)
    if value is None:
        return ""
    return value.get("S", "")


async def get_item(
    client: "DynamoDBClient", table: str, key: Mapping[str, str]
) -> AttributeMap | None:
    """Fetch a single item by string key, returning None when absent.

    Raises:
        ClientError: For any failure other than a missing resource
        BotoCoreError: For transport failures

    """
    item_key: dict[str, "AttributeValueTypeDef"] = {
        name: {"S": value} for name, value in key.items()
    }
    try:
        response = await asyncio.to_thread(
            client.get_item, TableName=table, Key=item_key
        )
    except ClientError as e:
        if is_not_found(e):
            return None
        raise

    return response.get("Item")


@dataclass(frozen=True, kw_only=True)
class DynamoRepositoryStore(RepositoryStore):
    """Repository configuration stored as one item per repository.

    Items are keyed by ``"<provider>:<owner/name>"`` and hold the owner's
    ``username`` plus an ordered ``tags`` list of rule maps.
    """

    client: "DynamoDBClient" = field(repr=False)
    table: str = "PULLR_REPOS"

    async def get_repository(
        self, provider: str, repository_full_name: str
    ) -> RepositoryConfig | None:
        """Fetch and parse the repository item."""
        key = f"{provider}:{repository_full_name}"
        try:
            item = await get_item(self.client, self.table, {"repository": key})
        except (ClientError, BotoCoreError) as e:
            raise ConfigStoreError(
                f"Failed to read repository {key} from {self.table}: {e}"
            ) from e

        if item is None:
            log.info("Repository %s not found in %s", key, self.table)
            return None

        return self.parse_item(repository_full_name, item)

    def parse_item(
        self, repository_full_name: str, item: AttributeMap
    ) -> RepositoryConfig:
        """Convert a raw DynamoDB item into a repository configuration.

        Raises:
            ConfigStoreError: If the item is missing its owner or holds an
                unknown rule type

        """
        username = string_attribute(item, "username")
        if not username:
            raise ConfigStoreError(
                f"Repository {repository_full_name} has no owner username"
            )

        rules = []
        for entry in item.get("tags", {}).get("L", []):
            attrs = entry.get("M", {})
            try:
                rules.append(
                    BuildRule.model_validate(
                        {
                            "kind": string_attribute(attrs, "type"),
                            "name_pattern": string_attribute(attrs, "name"),
                            "image_tag": string_attribute(attrs, "dockerTag"),
                            "dockerfile_location": string_attribute(
                                attrs, "dockerfileLocation"
                            ),
                        }
                    )
                )
            except ValidationError as e:
                raise ConfigStoreError(
                    f"Invalid build rule for {repository_full_name}: {e}"
                ) from e

        return RepositoryConfig(
            repository_full_name=repository_full_name,
            owner_username=username,
            build_rules=tuple(rules),
        )


@dataclass(frozen=True, kw_only=True)
class DynamoCredentialStore(CredentialStore):
    """Source hosting tokens stored as one identity item per user."""

    client: "DynamoDBClient" = field(repr=False)
    table: str = "MC_IDENTITY"
    attribute: str = "github_token"

    async def get_token(self, username: str) -> SecretStr | None:
        """Fetch the user's token attribute."""
        try:
            item = await get_item(self.client, self.table, {"username": username})
        except (ClientError, BotoCoreError) as e:
            raise CredentialStoreError(
                f"Failed to read identity {username} from {self.table}: {e}"
            ) from e

        if item is None or "S" not in item.get(self.attribute, {}):
            return None

        return SecretStr(item[self.attribute]["S"])
