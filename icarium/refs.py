"""Matching of pushed refs against configured build rules."""

import re
from collections.abc import Sequence

from icarium.exceptions import InvalidRefError
from icarium.models.repository import BuildRule

CATEGORY_BY_KIND = {
    "branch": "heads",
    "tag": "tags",
}


def split_ref(ref: str) -> tuple[str, str]:
    """Split a ref into its category and short name.

    Args:
        ref: Slash-delimited ref (e.g. "refs/tags/v1.0")

    Returns:
        The category (e.g. "tags") and the last path component (e.g. "v1.0")

    Raises:
        InvalidRefError: If the ref has fewer than two components

    """
    parts = ref.split("/")
    if len(parts) < 2:
        raise InvalidRefError(f"Ref '{ref}' has no category component")
    return parts[1], parts[-1]


def short_name(ref: str) -> str:
    """Return the last path component of a ref."""
    return split_ref(ref)[1]


def matches(rule: BuildRule, ref: str) -> bool:
    """Check whether a push to ``ref`` is selected by ``rule``.

    A ``/pattern/`` name is searched (unanchored) in the ref short name,
    any other name must equal it exactly. The ref category must agree with
    the rule kind before the name is considered. Patterns are checked when
    the rule is loaded.

    Raises:
        InvalidRefError: If the ref has fewer than two components

    """
    category, name = split_ref(ref)

    if category != CATEGORY_BY_KIND[rule.kind]:
        return False

    if rule.is_regex:
        return re.search(rule.name_pattern[1:-1], name) is not None

    return name == rule.name_pattern


def find_matching_rule(rules: Sequence[BuildRule], ref: str) -> BuildRule | None:
    """Return the first rule, in configured order, that matches ``ref``."""
    for rule in rules:
        if matches(rule, ref):
            return rule
    return None
