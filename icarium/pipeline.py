"""Build pipeline: checkout, image build and image push of one commit."""

import asyncio
import logging
import shutil
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import SecretStr

from icarium.exceptions import (
    BuildStageError,
    CheckoutError,
    ImageBuildError,
    ImagePushError,
    MissingCredentialError,
    RuleConfigurationError,
)
from icarium.models.event import BuildTriggerEvent
from icarium.models.repository import BuildRule, RepositoryConfig
from icarium.refs import short_name

log = logging.getLogger(__name__)

GITHUB_CLONE_URL = "https://{token}@github.com/{repository}.git"
OUTPUT_TAIL_LINES = 20


def resolve_image_tag(rule: BuildRule, ref: str) -> str:
    """Determine the image tag for a matched rule.

    Tag rules without an explicit image tag reuse the pushed tag name.

    Raises:
        RuleConfigurationError: If a branch rule has no image tag

    """
    if rule.image_tag:
        return rule.image_tag
    if rule.kind == "tag":
        return short_name(ref)
    raise RuleConfigurationError(
        f"Branch rule {rule.name_pattern!r} has no image tag configured"
    )


def dockerfile_path(workspace: Path, location: str) -> Path:
    """Resolve a Dockerfile location relative to the repository root.

    A leading slash denotes the repository root, not the host root.

    Raises:
        ImageBuildError: If the location escapes the workspace

    """
    path = workspace / location.lstrip("/")
    if not path.resolve().is_relative_to(workspace.resolve()):
        raise ImageBuildError(
            f"Dockerfile location {location!r} is outside the repository"
        )
    return path


def redact(text: str, secret: SecretStr | None) -> str:
    """Mask every occurrence of a secret value in text."""
    value = secret.get_secret_value() if secret is not None else ""
    return text.replace(value, "***") if value else text


def output_tail(output: bytes, secret: SecretStr | None) -> str:
    """Return the redacted last lines of a command's output."""
    lines = output.decode(errors="replace").strip().splitlines()
    return redact("\n".join(lines[-OUTPUT_TAIL_LINES:]), secret)


async def run_command(
    args: Sequence[str],
    *,
    error_cls: type[BuildStageError],
    description: str,
    secret: SecretStr | None = None,
    cwd: Path | None = None,
) -> bytes:
    """Run an external command and return its stdout.

    The child process is killed if the calling task is cancelled. The stderr
    of a successful command is logged at debug level.

    Raises:
        BuildStageError: Of type ``error_cls`` on a non-zero exit status

    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise error_cls(f"{description} could not start", output=str(e)) from e

    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        process.kill()
        await process.wait()
        raise

    if process.returncode != 0:
        raise error_cls(
            f"{description} failed with exit status {process.returncode}",
            output=output_tail(stderr, secret),
        )

    if stderr:
        log.debug(
            "%s stderr:\n%s",
            description,
            redact(stderr.decode(errors="replace"), secret),
        )

    return stdout


@dataclass(frozen=True, kw_only=True)
class BuildPipeline:
    """Builds and publishes the image of one commit.

    Each invocation works in its own workspace under ``workspace_root`` and
    removes it when done, whatever the outcome.
    """

    workspace_root: Path
    registry: str | None = None
    clone_url: str = GITHUB_CLONE_URL
    git: str = "git"
    docker: str = "docker"

    def allocate_workspace(self, event: BuildTriggerEvent) -> Path:
        """Return a fresh workspace path and create its parent directory."""
        parent = self.workspace_root / event.owner / event.repository_name
        parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        return parent / uuid.uuid4().hex

    def image_reference(self, repository_name: str, tag: str) -> str:
        """Return the image reference, prefixed by the registry if any."""
        image = f"{repository_name}:{tag}"
        return f"{self.registry}/{image}" if self.registry else image

    async def build(
        self,
        config: RepositoryConfig,
        rule: BuildRule,
        event: BuildTriggerEvent,
        credential: SecretStr,
    ) -> str:
        """Check out, build and push the event's commit.

        Args:
            config: Configuration of the event's repository
            rule: The build rule matched by the event's ref
            event: The build trigger
            credential: Access token of the repository owner

        Returns:
            The reference of the built image

        Raises:
            MissingCredentialError: If the credential is empty
            BuildStageError: If a stage fails; later stages are skipped

        """
        if not credential.get_secret_value():
            raise MissingCredentialError(
                f"Credential of {config.owner_username} is empty, "
                f"refusing to build {event.repository_full_name}"
            )

        workspace = self.allocate_workspace(event)
        try:
            await self.checkout(event, workspace, credential)

            tag = resolve_image_tag(rule, event.ref)
            image = self.image_reference(event.repository_name, tag)

            await self.build_image(workspace, image, rule.dockerfile_location)
            await self.push_image(image)
            return image
        finally:
            shutil.rmtree(workspace, ignore_errors=True)
            log.debug("Removed workspace %s", workspace)

    async def checkout(
        self, event: BuildTriggerEvent, workspace: Path, credential: SecretStr
    ) -> None:
        """Clone the repository and detach at the event's exact commit."""
        url = self.clone_url.format(
            token=credential.get_secret_value(),
            repository=event.repository_full_name,
        )

        log.info("Cloning %s into %s", event.repository_full_name, workspace)
        await run_command(
            [self.git, "clone", "--quiet", "--no-checkout", url, str(workspace)],
            error_cls=CheckoutError,
            description=f"Clone of {event.repository_full_name}",
            secret=credential,
        )

        log.info("Checking out commit %s", event.commit)
        await run_command(
            [self.git, "checkout", "--quiet", "--detach", event.commit],
            error_cls=CheckoutError,
            description=f"Checkout of {event.commit}",
            secret=credential,
            cwd=workspace,
        )

    async def build_image(
        self, workspace: Path, image: str, dockerfile_location: str = ""
    ) -> None:
        """Build the image from the workspace.

        Raises:
            ImageBuildError: If the Dockerfile location points outside the
                workspace, or docker fails

        """
        args = [self.docker, "build", "-t", image]
        if dockerfile_location:
            args += ["-f", str(dockerfile_path(workspace, dockerfile_location))]
        args.append(str(workspace))

        log.info("Building image %s in %s", image, workspace)
        stdout = await run_command(
            args, error_cls=ImageBuildError, description=f"Build of {image}"
        )
        log.debug("Build output for %s:\n%s", image, stdout.decode(errors="replace"))

    async def push_image(self, image: str) -> None:
        """Push the image to the configured registry."""
        if not self.registry:
            log.info("No registry configured, skipping push of %s", image)
            return

        log.info("Pushing image %s", image)
        await run_command(
            [self.docker, "push", image],
            error_cls=ImagePushError,
            description=f"Push of {image}",
        )
