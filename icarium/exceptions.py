"""Errors raised while consuming and building push notifications."""

from typing import Literal, TypeAlias

DecodeStage: TypeAlias = Literal["envelope", "payload"]
BuildStage: TypeAlias = Literal["checkout", "tag", "build", "push"]


class IcariumError(Exception):
    """Base class for all errors raised by icarium."""


class DecodeError(IcariumError):
    """Raised when a queue message cannot be decoded into a build trigger."""

    def __init__(self, stage: DecodeStage, message: str) -> None:
        super().__init__(f"Failed to decode {stage}: {message}")
        self.stage = stage


class InvalidRefError(IcariumError):
    """Raised when a pushed ref has no category component."""


class InvalidRulePatternError(IcariumError, ValueError):
    """Raised when a build rule's regular expression does not compile.

    Being a ValueError, it is reported as a validation error when a rule is
    loaded.
    """


class UnsupportedProviderError(IcariumError):
    """Raised when a trigger comes from a provider that cannot be built."""


class ConfigStoreError(IcariumError):
    """Raised when the repository configuration store fails."""


class CredentialStoreError(IcariumError):
    """Raised when the credential store fails."""


class MissingCredentialError(IcariumError):
    """Raised when no usable credential exists for a repository owner."""


class QueueReadError(IcariumError):
    """Raised when reading a batch from the queue fails."""


class BuildStageError(IcariumError):
    """Raised when a build pipeline stage fails.

    ``output`` holds the tail of the failed command's stderr with
    credentials already redacted.
    """

    stage: BuildStage

    def __init__(self, message: str, *, output: str = "") -> None:
        detail = f"{message}: {output}" if output else message
        super().__init__(f"[{self.stage}] {detail}")
        self.output = output


class CheckoutError(BuildStageError):
    """Raised when the source checkout fails."""

    stage = "checkout"


class RuleConfigurationError(BuildStageError):
    """Raised when a matched rule cannot produce an image tag."""

    stage = "tag"


class ImageBuildError(BuildStageError):
    """Raised when the image build fails."""

    stage = "build"


class ImagePushError(BuildStageError):
    """Raised when the image push fails."""

    stage = "push"
