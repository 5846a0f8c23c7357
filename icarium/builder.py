"""Handling of a single build trigger, from configuration lookup to publish."""

import logging
from dataclasses import dataclass

from icarium.exceptions import MissingCredentialError, UnsupportedProviderError
from icarium.models.event import BuildTriggerEvent
from icarium.models.result import BuildOutcome
from icarium.pipeline import BuildPipeline
from icarium.refs import find_matching_rule
from icarium.stores.base import CredentialStore, RepositoryStore

log = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = frozenset(["github"])


@dataclass(frozen=True, kw_only=True)
class BuildService:
    """Decides whether a push triggers a build and runs it."""

    repositories: RepositoryStore
    credentials: CredentialStore
    pipeline: BuildPipeline

    async def handle(self, event: BuildTriggerEvent) -> BuildOutcome:
        """Build the event's commit if its ref matches a configured rule.

        Args:
            event: Decoded build trigger

        Returns:
            A built outcome, or a skipped outcome when the repository is not
            configured or no rule matches the ref

        Raises:
            UnsupportedProviderError: If the event's provider cannot be built
            ConfigStoreError: If the repository configuration cannot be read
            CredentialStoreError: If the owner's credential cannot be read
            MissingCredentialError: If the owner has no usable credential
            BuildStageError: If a pipeline stage fails

        """
        log.info(
            "Handling push of %s to %s on %s",
            event.commit,
            event.ref,
            event.repository_full_name,
        )
        if event.provider not in SUPPORTED_PROVIDERS:
            raise UnsupportedProviderError(f"Unsupported provider {event.provider}")

        config = await self.repositories.get_repository(
            event.provider, event.repository_full_name
        )
        if config is None:
            return self.skipped(event, "repository is not configured")

        rule = find_matching_rule(config.build_rules, event.ref)
        if rule is None:
            log.info("No build rule matches %s", event.ref)
            return self.skipped(event, "no build rule matches the ref")

        log.info(
            "Ref %s matched %s rule %r", event.ref, rule.kind, rule.name_pattern
        )

        credential = await self.credentials.get_token(config.owner_username)
        if credential is None:
            raise MissingCredentialError(
                f"No credential stored for {config.owner_username}, "
                f"cannot build {event.repository_full_name}"
            )

        image = await self.pipeline.build(config, rule, event, credential)
        log.info("Published %s from %s", image, event.commit)

        return BuildOutcome(
            status="built",
            repository=event.repository_full_name,
            ref=event.ref,
            commit=event.commit,
            image=image,
        )

    def skipped(self, event: BuildTriggerEvent, reason: str) -> BuildOutcome:
        """Return a skipped outcome for the event."""
        return BuildOutcome(
            status="skipped",
            repository=event.repository_full_name,
            ref=event.ref,
            commit=event.commit,
            reason=reason,
        )
