"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories.pydantic_factory import ModelFactory

from icarium.models.event import BuildTriggerEvent
from icarium.models.repository import BuildRule, RepositoryConfig


class BuildTriggerEventFactory(ModelFactory[BuildTriggerEvent]):
    """Factory for BuildTriggerEvent."""

    action = "build"
    provider = "github"
    repository_full_name = "acme/widget"
    ref = "refs/heads/main"
    commit = Use(lambda: ModelFactory.__faker__.sha1())


class BuildRuleFactory(ModelFactory[BuildRule]):
    """Factory for BuildRule."""

    kind = "branch"
    name_pattern = "main"
    image_tag = "latest"
    dockerfile_location = ""


class RepositoryConfigFactory(ModelFactory[RepositoryConfig]):
    """Factory for RepositoryConfig."""

    repository_full_name = "acme/widget"
    owner_username = "acme"
    build_rules = Use(lambda: (BuildRuleFactory.build(),))
