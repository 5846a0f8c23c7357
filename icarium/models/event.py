"""Models for build trigger messages read from the queue."""

from pydantic import Field

from icarium.models.base import Model


class QueueEnvelope(Model):
    """Outer transport envelope wrapping the serialized trigger payload."""

    message: str = Field(..., alias="Message", description="Embedded JSON payload")


class TriggerData(Model):
    """Push details carried by a trigger payload."""

    provider: str = Field(..., description="Source hosting provider (e.g. github)")
    repository: str = Field(..., description="Repository full name (owner/name)")
    ref: str = Field(..., description="Pushed ref (e.g. refs/heads/main)")
    commit: str = Field(..., description="Exact commit to build")


class TriggerPayload(Model):
    """Trigger payload as published by the push notifier."""

    action: str = Field(..., description="Requested action")
    data: TriggerData


class BuildTriggerEvent(Model):
    """One decoded queue message."""

    action: str
    provider: str
    repository_full_name: str
    ref: str
    commit: str

    @classmethod
    def from_payload(cls, payload: TriggerPayload) -> "BuildTriggerEvent":
        """Flatten a trigger payload into an event."""
        return cls(
            action=payload.action,
            provider=payload.data.provider,
            repository_full_name=payload.data.repository,
            ref=payload.data.ref,
            commit=payload.data.commit,
        )

    @property
    def owner(self) -> str:
        """Owner part of the repository full name."""
        return self.repository_full_name.split("/", 1)[0]

    @property
    def repository_name(self) -> str:
        """Name part of the repository full name."""
        return self.repository_full_name.rsplit("/", 1)[-1]
