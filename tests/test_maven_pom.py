"""Tests for POM and maven-metadata.xml parsing."""

import pytest

from maven.coordinate import MavenCoordinate
from maven.errors import ParseError
from maven.pom import (
    normalize_version,
    parse_metadata_versions,
    parse_pom,
    parse_pom_dependencies,
    resolve_property,
)

CURRENT = MavenCoordinate.parse("org.example:foo:1.2.3")


def _pom(body: str, namespace: bool = True) -> str:
    ns = ' xmlns="http://maven.apache.org/POM/4.0.0"' if namespace else ""
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<project{ns}>{body}</project>'


class TestParsePom:
    """Dependency extraction and scope filtering."""

    def test_scope_filter_keeps_compile_and_runtime(self):
        pom = _pom("""
          <dependencies>
            <dependency><groupId>org.example</groupId><artifactId>bar</artifactId><version>1.0.0</version></dependency>
            <dependency><groupId>org.example</groupId><artifactId>rt</artifactId><version>1.0.0</version><scope>runtime</scope></dependency>
            <dependency><groupId>org.example</groupId><artifactId>baz</artifactId><version>9.9.9</version><scope>test</scope></dependency>
            <dependency><groupId>org.example</groupId><artifactId>api</artifactId><version>1.0.0</version><scope>provided</scope></dependency>
            <dependency><groupId>org.example</groupId><artifactId>sys</artifactId><version>1.0.0</version><scope>system</scope></dependency>
            <dependency><groupId>org.example</groupId><artifactId>bom</artifactId><version>1.0.0</version><scope>import</scope></dependency>
          </dependencies>
        """)
        deps = parse_pom_dependencies(pom, CURRENT)
        assert [str(d) for d in deps] == ["org.example:bar:1.0.0", "org.example:rt:1.0.0"]

    def test_default_scope_is_compile(self):
        pom = _pom("<dependencies><dependency><groupId>g</groupId><artifactId>a</artifactId>"
                   "<version>1.0.0</version></dependency></dependencies>")
        (dep,) = parse_pom(pom, CURRENT)
        assert dep.scope == "compile"
        assert dep.propagates

    def test_without_namespace(self):
        pom = _pom("<dependencies><dependency><groupId>g</groupId><artifactId>a</artifactId>"
                   "<version>1.0.0</version></dependency></dependencies>", namespace=False)
        assert [str(d) for d in parse_pom_dependencies(pom, CURRENT)] == ["g:a:1.0.0"]

    def test_dependency_management_is_ignored(self):
        pom = _pom("""
          <dependencyManagement><dependencies>
            <dependency><groupId>g</groupId><artifactId>managed</artifactId><version>1.0.0</version></dependency>
          </dependencies></dependencyManagement>
        """)
        assert parse_pom_dependencies(pom, CURRENT) == []

    def test_incomplete_entries_are_skipped(self):
        pom = _pom("""
          <dependencies>
            <dependency><groupId>g</groupId><artifactId>noversion</artifactId></dependency>
            <dependency><groupId>g</groupId><artifactId>ok</artifactId><version>2.0.0</version></dependency>
          </dependencies>
        """)
        assert [str(d) for d in parse_pom_dependencies(pom, CURRENT)] == ["g:ok:2.0.0"]

    def test_placeholders_use_declaring_coordinate(self):
        pom = _pom("""
          <dependencies>
            <dependency><groupId>${project.groupId}</groupId><artifactId>foo-core</artifactId><version>${project.version}</version></dependency>
            <dependency><groupId>${pom.groupId}</groupId><artifactId>${project/artifactId}-ktx</artifactId><version>${pom.version}</version></dependency>
          </dependencies>
        """)
        assert [str(d) for d in parse_pom_dependencies(pom, CURRENT)] == [
            "org.example:foo-core:1.2.3",
            "org.example:foo-ktx:1.2.3",
        ]

    def test_version_ranges_are_normalized(self):
        pom = _pom("""
          <dependencies>
            <dependency><groupId>g</groupId><artifactId>a</artifactId><version>[1.0.0,2.0.0)</version></dependency>
          </dependencies>
        """)
        assert [str(d) for d in parse_pom_dependencies(pom, CURRENT)] == ["g:a:1.0.0"]

    def test_malformed_xml_raises(self):
        with pytest.raises(ParseError):
            parse_pom("<project><dependencies>", CURRENT)


class TestHelpers:
    """Placeholder substitution and range normalization."""

    def test_unknown_properties_are_left_alone(self):
        assert resolve_property("${kotlin.version}", CURRENT) == "${kotlin.version}"

    @pytest.mark.parametrize("raw,expected", [
        ("[1.0]", "1.0"),
        ("(1.0,2.0)", "1.0"),
        ("[1.0,2.0)", "1.0"),
        ("[2.5.1]", "2.5.1"),
        (" 1.0.0 ", "1.0.0"),
        ("1.0.0", "1.0.0"),
    ])
    def test_normalize_version(self, raw, expected):
        assert normalize_version(raw) == expected


class TestMetadata:
    """maven-metadata.xml version listings."""

    def test_lists_versions_in_order(self):
        xml = """<?xml version="1.0" encoding="UTF-8"?>
        <metadata>
          <groupId>org.example</groupId><artifactId>bar</artifactId>
          <versioning>
            <latest>2.0.0</latest>
            <versions><version>1.0.0</version><version>1.0.1</version><version>1.1.0</version><version>2.0.0</version></versions>
          </versioning>
        </metadata>"""
        assert parse_metadata_versions(xml) == ["1.0.0", "1.0.1", "1.1.0", "2.0.0"]

    def test_malformed_metadata_yields_nothing(self):
        assert parse_metadata_versions("<metadata><versioning>") == []

    def test_missing_versions_element(self):
        assert parse_metadata_versions("<metadata><versioning/></metadata>") == []


class TestEncodings:
    """POMs are parsed from raw bytes using their XML declaration."""

    def test_latin1_pom(self):
        pom = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>\n'
            "<project><name>Café</name><dependencies>"
            "<dependency><groupId>g</groupId><artifactId>a</artifactId><version>1.0.0</version></dependency>"
            "</dependencies></project>"
        ).encode("latin-1")
        assert [str(d) for d in parse_pom_dependencies(pom, CURRENT)] == ["g:a:1.0.0"]

    def test_bytes_not_matching_declaration(self):
        pom = '<?xml version="1.0" encoding="UTF-8"?><project><name>Café</name></project>'.encode("latin-1")
        with pytest.raises(ParseError):
            parse_pom(pom, CURRENT)

    def test_metadata_bytes(self):
        xml = b"<metadata><versioning><versions><version>1.0.0</version></versions></versioning></metadata>"
        assert parse_metadata_versions(xml) == ["1.0.0"]
