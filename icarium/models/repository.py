"""Models for per-repository build configuration."""

import re
from collections.abc import Sequence
from typing import Literal, TypeAlias

from pydantic import Field, field_validator

from icarium.exceptions import InvalidRulePatternError
from icarium.models.base import Model

RuleKind: TypeAlias = Literal["branch", "tag"]


def is_regex_pattern(name_pattern: str) -> bool:
    """Whether a rule name is a /regex/ rather than a literal."""
    return (
        len(name_pattern) >= 2
        and name_pattern.startswith("/")
        and name_pattern.endswith("/")
    )


class BuildRule(Model):
    """A configured condition under which a push triggers an image build."""

    kind: RuleKind = Field(..., description="Ref category the rule applies to")
    name_pattern: str = Field(
        ..., description="Literal ref name, or a /regex/ over the ref short name"
    )
    image_tag: str = Field(default="", description="Image tag to build")
    dockerfile_location: str = Field(
        default="", description="Dockerfile path relative to the repository root"
    )

    @field_validator("name_pattern")
    @classmethod
    def check_pattern(cls, value: str) -> str:
        """Reject /regex/ names that do not compile."""
        if is_regex_pattern(value):
            try:
                re.compile(value[1:-1])
            except re.error as e:
                raise InvalidRulePatternError(
                    f"Invalid pattern {value!r}: {e}"
                ) from e
        return value

    @property
    def is_regex(self) -> bool:
        """Whether the name pattern is a /regex/."""
        return is_regex_pattern(self.name_pattern)


class RepositoryConfig(Model):
    """Build configuration for one source repository."""

    repository_full_name: str
    owner_username: str
    build_rules: Sequence[BuildRule] = Field(default_factory=tuple)
