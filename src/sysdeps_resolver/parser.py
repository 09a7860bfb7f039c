"""Read Maven POM files into a structural model using lxml."""

from __future__ import annotations

import logging
from pathlib import Path

from lxml import etree

from sysdeps_resolver.exceptions import PomModelError, PomNotFoundError, PomParseError, ResolverError
from sysdeps_resolver.models import PomDependency, PomModel, PomParent


logger = logging.getLogger(__name__)


def _child_text(node: etree._Element, name: str) -> str | None:
    """Stripped text of the first direct child called `name`, ignoring namespaces."""
    found = node.xpath(f"./*[local-name()='{name}']")
    if not found:
        return None
    return (found[0].text or "").strip() or None


def _select(root: etree._Element, *path: str) -> list[etree._Element]:
    """Elements at `<path...>` below the project root, matched by local name."""
    steps = "".join(f"/*[local-name()='{name}']" for name in path)
    return [n for n in root.xpath("." + steps) if isinstance(n, etree._Element)]


def _optional_flag(value: str | None) -> bool | None:
    # Anything other than true/false is left undecided.
    return {"true": True, "false": False}.get((value or "").strip().lower())


def _parse_xml(path: Path) -> etree._Element:
    """Parse a POM with a hardened lxml parser and return the `<project>` element.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If the XML cannot be read.
        PomModelError: If the root element is not `<project>`.
    """
    if not path.is_file():
        raise PomNotFoundError(f"POM not found: {path}")
    xml_parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
    try:
        root = etree.parse(str(path), parser=xml_parser).getroot()
    except (OSError, etree.XMLSyntaxError) as exc:
        raise PomParseError(f"Failed to parse POM: {path}") from exc
    if root is None or etree.QName(root).localname != "project":
        raise PomModelError(f"Missing <project> root element: {path}")
    return root


def _parse_properties(root: etree._Element) -> dict[str, str]:
    props: dict[str, str] = {}
    for block in _select(root, "properties"):
        for node in block.iterchildren(tag=etree.Element):
            props[etree.QName(node).localname] = (node.text or "").strip()
    return props


def _parse_dependency(dep: etree._Element) -> PomDependency:
    return PomDependency(
        group_id=_child_text(dep, "groupId"),
        artifact_id=_child_text(dep, "artifactId"),
        version=_child_text(dep, "version"),
        scope=_child_text(dep, "scope"),
        type=_child_text(dep, "type"),
        classifier=_child_text(dep, "classifier"),
        optional=_optional_flag(_child_text(dep, "optional")),
    )


def _parse_parent(root: etree._Element) -> PomParent | None:
    parents = _select(root, "parent")
    if not parents:
        return None
    parent = parents[0]
    return PomParent(
        group_id=_child_text(parent, "groupId"),
        artifact_id=_child_text(parent, "artifactId"),
        version=_child_text(parent, "version"),
    )


def load_model(path: str | Path) -> PomModel:
    """Parse a POM file into a `PomModel`.

    Notes:
        - Namespace handling: uses `local-name()` XPath so it works with or without XML namespaces.
        - Nothing is resolved here: placeholders, inheritance and management stay raw.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If the XML is malformed.
        PomModelError: If the root element is not `<project>`.
    """
    pom_path = Path(path)
    root = _parse_xml(pom_path)

    return PomModel(
        path=pom_path,
        parent=_parse_parent(root),
        group_id=_child_text(root, "groupId"),
        artifact_id=_child_text(root, "artifactId"),
        version=_child_text(root, "version"),
        packaging=_child_text(root, "packaging"),
        properties=_parse_properties(root),
        dependencies=[_parse_dependency(d) for d in _select(root, "dependencies", "dependency")],
        dependency_management=[
            _parse_dependency(d) for d in _select(root, "dependencyManagement", "dependencies", "dependency")
        ],
    )


def read_model(path: str | Path) -> PomModel | None:
    """Read a POM file, treating any failure as "no data available".

    Returns:
        The parsed model, or None when the file is missing or malformed.
    """
    try:
        return load_model(path)
    except ResolverError as exc:
        logger.debug("Failed to load POM %s: %s", path, exc)
        return None
