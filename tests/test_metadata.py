from __future__ import annotations

from pathlib import Path

import pytest

from initializr.metadata import (
    METADATA_ENV_VAR,
    SCOPE_PROVIDED,
    InitializrConfiguration,
    InitializrMetadata,
    MetadataError,
    Option,
    load_metadata,
    parse_metadata,
)
from initializr.version import Version


def test_bundled_metadata_defaults(metadata: InitializrMetadata) -> None:
    defaults = metadata.defaults()
    assert defaults["type"] == "maven-project"
    assert defaults["packaging"] == "jar"
    assert defaults["javaVersion"] == "1.8"
    assert defaults["language"] == "java"
    assert defaults["bootVersion"] == "2.0.5.RELEASE"
    assert defaults["groupId"] == "com.example"
    assert defaults["packageName"] == "com.example.demo"
    assert metadata.types.get("maven-project").action == "/starter.zip"
    assert metadata.java_versions.get("1.8").name == "8"


def test_dependency_lookup_by_alias(metadata: InitializrMetadata) -> None:
    assert metadata.get_dependency("mvc").id == "web"
    assert metadata.get_dependency("jpa").id == "data-jpa"
    assert metadata.get_dependency("nope") is None


def test_id_only_dependency_is_a_boot_starter(metadata: InitializrMetadata) -> None:
    web = metadata.get_dependency("web")
    assert (web.group_id, web.artifact_id) == ("org.springframework.boot", "spring-boot-starter-web")
    assert web.starter
    assert metadata.get_dependency("tomcat").scope == SCOPE_PROVIDED


def test_version_ranges_are_normalised(metadata: InitializrMetadata) -> None:
    webflux = metadata.get_dependency("webflux")
    assert webflux.range_string == "2.0.0.M1"
    assert webflux.version_requirement == ">=2.0.0.M1"
    config = metadata.get_dependency("cloud-config-client")
    # `2.1.x.BUILD-SNAPSHOT` resolves against the configured Boot versions.
    assert config.range_string == "[1.5.0.RELEASE,2.1.0.BUILD-SNAPSHOT]"


def test_dependencies_for_filters_and_applies_mappings(metadata: InitializrMetadata) -> None:
    old = metadata.dependencies_for(Version.parse("1.5.16.RELEASE"))
    assert "webflux" not in old
    assert "validation" not in old
    assert old["cloud-eureka"].artifact_id == "spring-cloud-starter-eureka"
    assert old["cloud-eureka"].version_requirement == ">=1.5.0.RELEASE and <2.0.0.M1"

    current = metadata.dependencies_for(Version.parse("2.0.5.RELEASE"))
    assert "webflux" in current
    assert current["cloud-eureka"].artifact_id == "spring-cloud-starter-netflix-eureka-client"


def test_dependencies_for_keeps_metadata_order(metadata: InitializrMetadata) -> None:
    ids = list(metadata.dependencies_for(Version.parse("2.0.5.RELEASE")))
    assert ids[:3] == ["devtools", "lombok", "configuration-processor"]


def test_update_boot_versions_picks_first_as_default(metadata: InitializrMetadata) -> None:
    metadata.update_boot_versions([Option("2.1.0.RELEASE", "2.1.0"), Option("2.0.6.RELEASE", "2.0.6")])
    assert metadata.default_boot_version() == Version.parse("2.1.0.RELEASE")
    # The `x` placeholder no longer has a matching snapshot.
    assert metadata.get_dependency("cloud-config-client").range_string == "[1.5.0.RELEASE,2.1.999.BUILD-SNAPSHOT]"


def test_coordinates_from_id() -> None:
    metadata = parse_metadata(
        {"dependencies": [{"name": "Other", "content": [{"id": "org.acme:widget:1.2.0"}, {"groupId": "org.acme", "artifactId": "gadget"}]}]}
    )
    widget = metadata.get_dependency("org.acme:widget:1.2.0")
    assert (widget.group_id, widget.artifact_id, widget.version) == ("org.acme", "widget", "1.2.0")
    assert metadata.get_dependency("org.acme:gadget") is not None


def test_group_version_range_is_inherited() -> None:
    metadata = parse_metadata(
        {
            "bootVersions": [{"id": "2.0.5.RELEASE", "default": True}],
            "dependencies": [{"name": "New", "versionRange": "2.0.0.RELEASE", "content": [{"id": "shiny"}]}],
        }
    )
    assert metadata.get_dependency("shiny").range_string == "2.0.0.RELEASE"


def test_dependency_without_id_or_coordinates_is_rejected() -> None:
    with pytest.raises(MetadataError):
        parse_metadata({"dependencies": [{"name": "Broken", "content": [{"name": "nothing"}]}]})


def test_duplicate_ids_are_rejected() -> None:
    with pytest.raises(MetadataError, match="web"):
        parse_metadata({"dependencies": [{"name": "Web", "content": [{"id": "web"}, {"id": "mvc", "aliases": ["web"]}]}]})


def test_invalid_scope_is_rejected() -> None:
    with pytest.raises(MetadataError, match="scope"):
        parse_metadata({"dependencies": [{"name": "Web", "content": [{"id": "web", "scope": "bogus"}]}]})


def test_invalid_range_is_rejected() -> None:
    with pytest.raises(MetadataError, match="web"):
        parse_metadata({"dependencies": [{"name": "Web", "content": [{"id": "web", "versionRange": "[1.0,2.0)"}]}]})


def test_link_without_rel_or_href_is_rejected() -> None:
    with pytest.raises(MetadataError, match="rel and href"):
        parse_metadata({"dependencies": [{"name": "Web", "content": [{"id": "web", "links": [{"href": "https://spring.io"}]}]}]})


def test_non_numeric_weight_is_rejected() -> None:
    with pytest.raises(MetadataError, match="weight"):
        parse_metadata({"dependencies": [{"name": "Web", "content": [{"id": "web", "weight": "heavy"}]}]})


def test_load_metadata_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "metadata.yaml"
    path.write_text(
        "bootVersions:\n  - id: 2.0.5.RELEASE\n    default: true\nartifactId:\n  value: sample\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(METADATA_ENV_VAR, str(path))
    metadata = load_metadata()
    assert metadata.text.artifact_id == "sample"
    assert metadata.all_dependencies == []


def test_load_metadata_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MetadataError, match="does not exist"):
        load_metadata(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("demo", "DemoApplication"),
        ("my-app", "MyAppApplication"),
        ("myApp", "MyAppApplication"),
        ("my app", "MyAppApplication"),
        ("DemoApplication", "DemoApplication"),
        ("", "Application"),
        ("1demo", "Application"),
        ("Spring", "Application"),
    ],
)
def test_generate_application_name(name: str, expected: str) -> None:
    configuration = InitializrConfiguration(invalid_application_names=("SpringApplication",))
    assert configuration.generate_application_name(name) == expected


@pytest.mark.parametrize(
    ("package_name", "expected"),
    [
        ("com.example.demo", "com.example.demo"),
        ("com.example.my-app", "com.example.myapp"),
        ("com.example.123app", "com.example.app"),
        ("com.example.class", "com.example.fallback"),
        ("org.springframework", "com.example.fallback"),
        ("  ", "com.example.fallback"),
        (None, "com.example.fallback"),
    ],
)
def test_clean_package_name(package_name: str | None, expected: str) -> None:
    assert InitializrConfiguration().clean_package_name(package_name, "com.example.fallback") == expected
