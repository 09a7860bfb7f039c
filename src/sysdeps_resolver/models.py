"""Pydantic models for Maven coordinates, POM files and resolution bookkeeping."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


DEFAULT_PACKAGING = "jar"
POM_PACKAGING = "pom"


class MavenScope(str, Enum):
    """Maven dependency scopes understood by the resolver."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    PROVIDED = "provided"
    TEST = "test"

    @classmethod
    def from_value(cls, value: str | None) -> "MavenScope":
        """Map a raw scope string to a scope, defaulting to compile.

        Unknown scopes (``system``, ``import``, typos) are treated as compile.
        """
        if value is None or not value.strip():
            return cls.COMPILE
        normalized = value.strip().lower()
        for scope in cls:
            if scope.value == normalized:
                return scope
        return cls.COMPILE

    @property
    def priority(self) -> int:
        """Lower is stronger: compile beats runtime beats provided beats test."""
        return _SCOPE_PRIORITY[self]


_SCOPE_PRIORITY = {
    MavenScope.COMPILE: 0,
    MavenScope.RUNTIME: 1,
    MavenScope.PROVIDED: 2,
    MavenScope.TEST: 3,
}


class SkipReason(str, Enum):
    """Why a dependency was not accepted during resolution."""

    TEST = "Test"
    PLACEHOLDER = "Placeholder"
    BOM = "BOM"
    PROVIDED = "Provided"
    NOT_FOUND = "Not found"
    ARTIFACT_MISSING = "Artifact missing"


def _not_blank(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def dependency_key(group_id: str | None, artifact_id: str | None) -> str:
    """Return the artifact identity `groupId:artifactId`."""
    return f"{group_id}:{artifact_id}"


class MavenCoordinate(BaseModel):
    """A resolved (or partially resolved) Maven coordinate.

    Two coordinates describe the same artifact identity when their `key()`
    matches; version and scope may differ between appearances.
    """

    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    packaging: str | None = DEFAULT_PACKAGING
    scope: str | None = MavenScope.COMPILE.value
    pom_path: Path | None = None
    test_context: bool = False

    def is_valid(self) -> bool:
        """Return True when groupId, artifactId and version are all non-empty."""
        return _not_blank(self.group_id) and _not_blank(self.artifact_id) and _not_blank(self.version)

    def is_bom(self) -> bool:
        """Return True for POM-packaged coordinates."""
        return self.packaging == POM_PACKAGING

    def key(self) -> str:
        return dependency_key(self.group_id, self.artifact_id)

    def compact(self) -> str:
        """Return a compact string representation.

        Returns:
            A string like `groupId:artifactId:version`.
        """
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    def maven_scope(self) -> MavenScope:
        return MavenScope.from_value(self.scope)

    def with_scope(self, scope: str | None) -> "MavenCoordinate":
        return self.model_copy(update={"scope": scope})

    def label(self) -> str:
        """Return a user-facing label including scope and packaging when notable."""
        parts: list[str] = [self.compact()]
        if self.scope and self.scope != MavenScope.COMPILE.value:
            parts.append(f"(scope={self.scope})")
        if self.is_bom():
            parts.append("(pom)")
        if self.test_context:
            parts.append("(test)")
        return " ".join(parts)


class PomParent(BaseModel):
    """The `<parent>` reference of a POM."""

    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None


class PomDependency(BaseModel):
    """A raw `<dependency>` entry as declared in a POM, before any resolution."""

    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    scope: str | None = None
    type: str | None = None
    classifier: str | None = None
    optional: bool | None = None

    def is_import(self) -> bool:
        """Return True for `<scope>import</scope><type>pom</type>` BOM imports."""
        return (self.scope or "").strip() == "import" and (self.type or "").strip() == POM_PACKAGING


class PomModel(BaseModel):
    """Structural view of a single POM file (raw, nothing resolved)."""

    path: Path
    parent: PomParent | None = None
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    packaging: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)
    dependencies: list[PomDependency] = Field(default_factory=list)
    dependency_management: list[PomDependency] = Field(default_factory=list)

    @property
    def effective_group_id(self) -> str | None:
        if _not_blank(self.group_id):
            return self.group_id
        return self.parent.group_id if self.parent else None

    @property
    def effective_version(self) -> str | None:
        if _not_blank(self.version):
            return self.version
        return self.parent.version if self.parent else None

    @property
    def effective_packaging(self) -> str:
        return self.packaging if _not_blank(self.packaging) else DEFAULT_PACKAGING
