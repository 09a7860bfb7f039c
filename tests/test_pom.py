from __future__ import annotations

from pathlib import Path

from sysdeps_resolver.cache import DEPENDENCIES, PomDataCache
from sysdeps_resolver.models import MavenCoordinate
from sysdeps_resolver.pom import PomParser, apply_dependency_management


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def _versions(coordinates: list[MavenCoordinate]) -> dict[str, str | None]:
    return {c.key(): c.version for c in coordinates}


def test_parse_pom_resolves_effective_coordinate(tmp_path: Path, write_pom) -> None:
    _write(tmp_path, "parent.pom", write_pom("com.acme", "parent", "7", packaging="pom", properties={"rev": "7.1"}))
    child = _write(
        tmp_path,
        "child.pom",
        write_pom(None, "child-${rev}", None, parent=("com.acme", "parent", "7")),
    )

    coordinate = PomParser().parse_pom(child)

    assert coordinate is not None
    assert coordinate.compact() == "com.acme:child-7.1:7"
    assert coordinate.packaging == "jar"
    assert coordinate.pom_path == child


def test_parse_pom_unreadable_is_none(tmp_path: Path) -> None:
    assert PomParser().parse_pom(_write(tmp_path, "x.pom", "garbage")) is None


def test_dependencies_get_defaults_and_properties(tmp_path: Path, write_pom) -> None:
    pom = _write(
        tmp_path,
        "demo.pom",
        write_pom(
            "com.acme",
            "demo",
            "1.0",
            properties={"lib.version": "2.3.4"},
            dependencies=(("org.example", "lib", "${lib.version}"), ("org.example", "api", "1.1", "runtime", "jar")),
        ),
    )

    deps = {d.key(): d for d in PomParser().parse_dependencies(pom)}

    assert deps["org.example:lib"].version == "2.3.4"
    assert deps["org.example:lib"].scope == "compile"
    assert deps["org.example:lib"].packaging == "jar"
    assert deps["org.example:api"].scope == "runtime"


def test_child_management_overrides_parent(tmp_path: Path, write_pom) -> None:
    _write(
        tmp_path,
        "parent.pom",
        write_pom("com.acme", "parent", "1", packaging="pom", managed=(("g", "a", "1.0"),)),
    )
    child = _write(
        tmp_path,
        "child.pom",
        write_pom(
            "com.acme",
            "child",
            "1",
            parent=("com.acme", "parent", "1"),
            managed=(("g", "a", "2.0"),),
            dependencies=(("g", "a"),),
        ),
    )

    parser = PomParser()

    assert _versions(parser.parse_dependency_management(child)) == {"g:a": "2.0"}
    assert _versions(parser.parse_dependencies(child)) == {"g:a": "2.0"}


def test_parent_management_applies_to_child_dependencies(tmp_path: Path, write_pom) -> None:
    _write(
        tmp_path,
        "parent.pom",
        write_pom("com.acme", "parent", "1", packaging="pom", managed=(("g", "a", "1.0", "runtime"),)),
    )
    child = _write(
        tmp_path,
        "child.pom",
        write_pom("com.acme", "child", "1", parent=("com.acme", "parent", "1"), dependencies=(("g", "a"),)),
    )

    [dep] = PomParser().parse_dependencies(child)

    assert dep.version == "1.0"
    # An absent scope defaults to compile before management is consulted.
    assert dep.scope == "compile"


def test_explicit_version_is_not_overridden_by_management(tmp_path: Path, write_pom) -> None:
    pom = _write(
        tmp_path,
        "demo.pom",
        write_pom("com.acme", "demo", "1", managed=(("g", "a", "9.9"),), dependencies=(("g", "a", "1.5"),)),
    )

    assert _versions(PomParser().parse_dependencies(pom)) == {"g:a": "1.5"}


def test_unresolved_placeholder_version_is_filled_by_management(tmp_path: Path, write_pom) -> None:
    pom = _write(
        tmp_path,
        "demo.pom",
        write_pom("com.acme", "demo", "1", managed=(("d", "a", "2.0"),), dependencies=(("d", "a", "${d.version}"),)),
    )

    assert _versions(PomParser().parse_dependencies(pom)) == {"d:a": "2.0"}


def test_child_dependency_replaces_parent_declaration(tmp_path: Path, write_pom) -> None:
    _write(
        tmp_path,
        "parent.pom",
        write_pom("com.acme", "parent", "1", packaging="pom", dependencies=(("g", "a", "1.0", "test"), ("g", "b", "1"))),
    )
    child = _write(
        tmp_path,
        "child.pom",
        write_pom("com.acme", "child", "1", parent=("com.acme", "parent", "1"), dependencies=(("g", "a", "2.0"),)),
    )

    deps = {d.key(): d for d in PomParser().parse_dependencies(child)}

    assert deps["g:a"].version == "2.0"
    assert deps["g:a"].scope == "compile"
    assert "g:b" in deps


def test_invalid_entries_are_dropped(tmp_path: Path, write_pom) -> None:
    pom = _write(
        tmp_path,
        "demo.pom",
        write_pom(
            "com.acme",
            "demo",
            "1",
            managed=(("${missing.group}", "x", "1"), ("", "y", "1")),
            dependencies=(("g", "no-version"), ("g", "ok", "1")),
        ),
    )
    parser = PomParser()

    assert [d.key() for d in parser.parse_dependencies(pom)] == ["g:ok"]
    # Placeholders that cannot be resolved still count as present here.
    assert [d.key() for d in parser.parse_dependency_management(pom)] == ["${missing.group}:x"]


def test_import_scope_bom_is_expanded(tmp_path: Path, write_pom) -> None:
    bom = _write(
        tmp_path,
        "bom.pom",
        write_pom("b", "bom", "1", packaging="pom", managed=(("d", "a", "2.0"), ("d", "c", "3.0"))),
    )
    root = _write(
        tmp_path,
        "root.pom",
        write_pom(
            "g",
            "root",
            "1",
            managed=(("b", "bom", "1", "import", "pom"), ("d", "c", "3.5")),
            dependencies=(("d", "a", "${d.version}"), ("d", "c")),
        ),
    )
    located = {"b:bom": MavenCoordinate(group_id="b", artifact_id="bom", version="1", packaging="pom", pom_path=bom)}
    parser = PomParser(import_resolver=lambda g, a: located.get(f"{g}:{a}"))

    assert _versions(parser.parse_dependencies(root)) == {"d:a": "2.0", "d:c": "3.5"}


def test_cyclic_imports_terminate(tmp_path: Path, write_pom) -> None:
    one = _write(tmp_path, "one.pom", write_pom("b", "one", "1", packaging="pom", managed=(("b", "two", "1", "import", "pom"), ("x", "from-one", "1"))))
    two = _write(tmp_path, "two.pom", write_pom("b", "two", "1", packaging="pom", managed=(("b", "one", "1", "import", "pom"), ("x", "from-two", "1"))))
    paths = {"b:one": one, "b:two": two}

    def locate(group_id: str, artifact_id: str) -> MavenCoordinate | None:
        path = paths.get(f"{group_id}:{artifact_id}")
        return MavenCoordinate(group_id=group_id, artifact_id=artifact_id, version="1", packaging="pom", pom_path=path)

    managed = PomParser(import_resolver=locate).managed_map(one)

    assert {"x:from-one", "x:from-two", "b:two"} <= set(managed)


def test_cyclic_import_result_does_not_depend_on_query_order(tmp_path: Path, write_pom) -> None:
    one = _write(tmp_path, "one.pom", write_pom("b", "one", "1", packaging="pom", managed=(("b", "two", "1", "import", "pom"), ("x", "from-one", "1"))))
    two = _write(tmp_path, "two.pom", write_pom("b", "two", "1", packaging="pom", managed=(("b", "one", "1", "import", "pom"), ("x", "from-two", "1"))))
    paths = {"b:one": one, "b:two": two}

    def locate(group_id: str, artifact_id: str) -> MavenCoordinate | None:
        path = paths.get(f"{group_id}:{artifact_id}")
        return MavenCoordinate(group_id=group_id, artifact_id=artifact_id, version="1", packaging="pom", pom_path=path)

    two_first = PomParser(import_resolver=locate)
    before = two_first.managed_map(two)
    two_first.managed_map(one)

    one_first = PomParser(import_resolver=locate)
    one_first.managed_map(one)
    after = one_first.managed_map(two)

    assert set(before) == set(after) == {"b:one", "b:two", "x:from-one", "x:from-two"}
    assert set(one_first.managed_map(one)) == set(two_first.managed_map(one))


def test_is_bom(tmp_path: Path, write_pom) -> None:
    bom = _write(tmp_path, "bom.pom", write_pom("b", "bom", "1", packaging="pom", managed=(("d", "a", "2.0"),)))
    parent = _write(tmp_path, "parent.pom", write_pom("b", "parent", "1", packaging="pom"))
    lib = _write(tmp_path, "lib.pom", write_pom("b", "lib", "1", managed=(("d", "a", "2.0"),)))
    parser = PomParser()

    assert parser.is_bom(bom)
    assert not parser.is_bom(parent)
    assert not parser.is_bom(lib)


def test_dependencies_are_cached(tmp_path: Path, write_pom) -> None:
    pom = _write(tmp_path, "demo.pom", write_pom("com.acme", "demo", "1", dependencies=(("g", "a", "1"),)))
    cache = PomDataCache()
    parser = PomParser(cache)

    first = parser.parse_dependencies(pom)
    pom.unlink()
    second = parser.parse_dependencies(pom)

    assert first == second
    assert cache.stats()[DEPENDENCIES] == (1, 1)


def test_apply_dependency_management_fills_only_gaps() -> None:
    managed = {"g:a": MavenCoordinate(group_id="g", artifact_id="a", version="2.0", scope="runtime", packaging="jar")}
    declared = MavenCoordinate(group_id="g", artifact_id="a", version=None, scope=None, packaging="war")

    filled = apply_dependency_management(declared, managed)

    assert filled.version == "2.0"
    assert filled.scope == "runtime"
    assert filled.packaging == "war"
