"""Collect Maven properties across a POM hierarchy and substitute `${...}` placeholders."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from sysdeps_resolver.models import PomModel


MAX_RESOLVE_ITERATIONS = 20

DEFAULT_PROPERTIES: dict[str, str] = {
    "project.build.sourceEncoding": "UTF-8",
    "project.reporting.outputEncoding": "UTF-8",
}

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]*)\}")


def has_placeholder(value: str | None) -> bool:
    """Return True if `value` still contains a `${...}` token."""
    return value is not None and _PLACEHOLDER_RE.search(value) is not None


def _coordinate_properties(model: PomModel) -> dict[str, str]:
    values = {
        "groupId": model.effective_group_id,
        "artifactId": model.artifact_id,
        "version": model.effective_version,
        "packaging": model.packaging,
    }
    props: dict[str, str] = {}
    for name, value in values.items():
        if value is None or not value.strip():
            continue
        props[f"project.{name}"] = value
        props[name] = value
    parent = model.parent
    if parent is not None:
        for name, value in (
            ("groupId", parent.group_id),
            ("artifactId", parent.artifact_id),
            ("version", parent.version),
        ):
            if value:
                props[f"project.parent.{name}"] = value
    return props


def collect_properties(hierarchy: Iterable[PomModel] | None) -> dict[str, str]:
    """Fold a hierarchy (ancestor first) into one property map.

    Precedence: the implicit encoding defaults are seeded first, then each
    model writes its coordinates and its `<properties>` block in hierarchy
    order, so the most-descendant declaration of a key wins. Within one model
    an explicit `<properties>` entry overrides the coordinate-derived key of
    the same name.
    """
    props: dict[str, str] = dict(DEFAULT_PROPERTIES)
    if hierarchy is None:
        return props

    for model in hierarchy:
        if model is None:
            continue
        props.update(_coordinate_properties(model))
        props.update(model.properties)
    return props


def resolve_placeholders(value: str | None, props: Mapping[str, str] | None) -> str | None:
    """Resolve `${...}` placeholders using provided properties.

    Unknown placeholders are preserved as-is. Substitution is repeated so a
    property may reference another property; it stops after a round without
    replacements or after `MAX_RESOLVE_ITERATIONS` rounds, whichever is first.
    """
    if value is None or props is None:
        return value

    current = value
    for _ in range(MAX_RESOLVE_ITERATIONS):
        changed = False

        def _sub(m: re.Match[str]) -> str:
            nonlocal changed
            replacement = props.get(m.group(1))
            if replacement is None:
                return m.group(0)
            changed = True
            return replacement

        current = _PLACEHOLDER_RE.sub(_sub, current)
        if not changed:
            break
    return current
