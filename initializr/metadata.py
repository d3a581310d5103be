"""
metadata.py

Responsibility: Load the service metadata (dependencies, project types, packagings,
languages, Java and Boot versions, text defaults) into a typed model.

The YAML layout follows the `initializr` configuration keys (camelCase), optionally
nested under a top-level `initializr:` key:

    env:
      fallbackApplicationName: Application
    dependencies:
      - name: Web
        content:
          - name: Spring Web
            id: web
            versionRange: "[2.0.0.RELEASE,3.0.0.M1)"
    types:
      - id: maven-project
        name: Maven Project
        action: /starter.zip
        tags: {build: maven}
        default: true
    bootVersions:
      - id: 2.1.0.RELEASE
        default: true
    groupId: {value: com.example}

Loading validates everything up-front and raises `MetadataError`; the rest of the
package treats an `InitializrMetadata` instance as the single source of truth.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable

import yaml

from initializr.version import InvalidVersionError, Version, VersionParser, VersionRange

logger = logging.getLogger(__name__)

DEFAULT_METADATA_PATH = Path(__file__).resolve().parent / "data" / "metadata.yaml"
METADATA_ENV_VAR = "INITIALIZR_METADATA"

SCOPE_COMPILE = "compile"
SCOPE_COMPILE_ONLY = "compileOnly"
SCOPE_ANNOTATION_PROCESSOR = "annotationProcessor"
SCOPE_RUNTIME = "runtime"
SCOPE_PROVIDED = "provided"
SCOPE_TEST = "test"
SCOPES = (
    SCOPE_COMPILE,
    SCOPE_RUNTIME,
    SCOPE_COMPILE_ONLY,
    SCOPE_ANNOTATION_PROCESSOR,
    SCOPE_PROVIDED,
    SCOPE_TEST,
)

BOOT_GROUP_ID = "org.springframework.boot"
ROOT_STARTER_ID = "root_starter"

# Reserved words of the generated project's languages; a package segment may not be one.
JAVA_KEYWORDS = frozenset(
    """
    abstract assert boolean break byte case catch char class const continue default do
    double else enum extends final finally float for goto if implements import instanceof
    int interface long native new package private protected public return short static
    strictfp super switch synchronized this throw throws transient try void volatile while
    true false null
    """.split()
)


class MetadataError(ValueError):
    pass


@dataclass(frozen=True)
class Link:
    rel: str
    href: str
    description: str | None = None


@dataclass(frozen=True)
class DependencyMapping:
    """Coordinates override that applies to Boot versions inside `version_range`."""

    version_range: str
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    range: VersionRange | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Dependency:
    id: str
    name: str
    group_id: str
    artifact_id: str
    version: str | None = None
    scope: str = SCOPE_COMPILE
    description: str = ""
    version_range: str | None = None
    version_requirement: str | None = None
    range: VersionRange | None = field(default=None, compare=False, repr=False)
    facets: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    starter: bool = True
    weight: int = 0
    links: tuple[Link, ...] = ()
    mappings: tuple[DependencyMapping, ...] = ()

    @property
    def range_string(self) -> str | None:
        return self.range.to_range_string() if self.range is not None else None

    def match(self, boot_version: Version) -> bool:
        return self.range is None or self.range.match(boot_version)

    def resolve(self, boot_version: Version) -> "Dependency":
        """Apply the first mapping whose range contains `boot_version`."""
        for mapping in self.mappings:
            if mapping.range is not None and mapping.range.match(boot_version):
                return replace(
                    self,
                    group_id=mapping.group_id or self.group_id,
                    artifact_id=mapping.artifact_id or self.artifact_id,
                    version=mapping.version or self.version,
                    version_requirement=str(mapping.range),
                    mappings=(),
                )
        return self

    def with_ranges(self, parser: VersionParser) -> "Dependency":
        """Re-parse the version ranges, e.g. once the list of Boot versions is known."""
        dependency_range = None
        if self.version_range:
            try:
                dependency_range = parser.parse_range(self.version_range)
            except InvalidVersionError as e:
                raise MetadataError(
                    f"Invalid version range '{self.version_range}' for dependency with id '{self.id}'"
                ) from e
        mappings = []
        for mapping in self.mappings:
            try:
                mappings.append(replace(mapping, range=parser.parse_range(mapping.version_range)))
            except InvalidVersionError as e:
                raise MetadataError(f"Invalid version range '{mapping.version_range}' for {self.id}") from e
        return replace(
            self,
            range=dependency_range,
            version_requirement=str(dependency_range) if dependency_range is not None else None,
            mappings=tuple(mappings),
        )

    def to_datum(self) -> dict[str, Any]:
        """Entry fed to the dependency search engine."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "versionRange": self.range_string,
        }


def starter(name: str, *, scope: str = SCOPE_COMPILE) -> Dependency:
    """A Spring Boot starter; an empty name is the root starter."""
    if name:
        return Dependency(
            id=name,
            name=name,
            group_id=BOOT_GROUP_ID,
            artifact_id=f"spring-boot-starter-{name}",
            scope=scope,
        )
    return Dependency(
        id=ROOT_STARTER_ID,
        name="Spring Boot Starter",
        group_id=BOOT_GROUP_ID,
        artifact_id="spring-boot-starter",
        scope=scope,
    )


@dataclass(frozen=True)
class DependencyGroup:
    name: str
    dependencies: tuple[Dependency, ...] = ()


@dataclass(frozen=True)
class Option:
    id: str
    name: str
    default: bool = False
    description: str = ""


@dataclass(frozen=True)
class ProjectType(Option):
    action: str = "/starter.zip"
    tags: dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SelectCapability:
    id: str
    description: str
    options: tuple[Option, ...] = ()

    @property
    def default(self) -> Option | None:
        for option in self.options:
            if option.default:
                return option
        return self.options[0] if self.options else None

    def get(self, option_id: str) -> Option | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


@dataclass(frozen=True)
class TextDefaults:
    group_id: str = "com.example"
    artifact_id: str = "demo"
    version: str = "0.0.1-SNAPSHOT"
    name: str = "demo"
    description: str = "Demo project for Spring Boot"
    package_name: str = "com.example.demo"


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _split_camel_case(text: str) -> str:
    parts = re.split(r"(?<=[^A-Z])(?=[A-Z])|(?<=.)(?=[A-Z][a-z])", text)
    return "".join(_capitalize(p.lower()) for p in parts)


def _unsplit_words(text: str) -> str:
    return "".join(_capitalize(p) for p in re.split(r"[_\- :]+", text))


def _has_invalid_char(text: str) -> bool:
    # `$` is a legal identifier character in the generated languages.
    return not text or not text.replace("$", "_").isidentifier()


def _has_reserved_keyword(package_name: str) -> bool:
    return any(segment in JAVA_KEYWORDS for segment in package_name.split("."))


def _strip_package_name(package_name: str) -> str:
    elements = re.split(r"\W+", package_name.strip().replace("-", ""), flags=re.ASCII)
    while elements and not elements[-1]:
        elements.pop()
    out = ""
    for element in elements:
        element = re.sub(r"^[0-9]+(?!$)", "", element, count=1)
        if not element.isdigit() and out:
            out += "."
        out += element
    return out


@dataclass(frozen=True)
class InitializrConfiguration:
    fallback_application_name: str = "Application"
    invalid_application_names: tuple[str, ...] = ("SpringApplication", "SpringBootApplication")
    invalid_package_names: tuple[str, ...] = ("org.springframework",)
    spring_boot_metadata_url: str = "https://spring.io/project_metadata/spring-boot"

    def generate_application_name(self, name: str | None) -> str:
        """
        Derive the main class name from a project name.

        `my-app` and `myApp` both give `MyAppApplication`; a name that is not a valid
        identifier (or a reserved one) falls back to `fallback_application_name`.
        """
        if not name or not name.strip():
            return self.fallback_application_name
        result = _unsplit_words(_split_camel_case(name.strip()))
        if not result.endswith("Application"):
            result += "Application"
        candidate = _capitalize(result)
        if _has_invalid_char(candidate) or candidate in self.invalid_application_names:
            return self.fallback_application_name
        return candidate

    def clean_package_name(self, package_name: str | None, default_package_name: str) -> str:
        if not package_name or not package_name.strip():
            return default_package_name
        candidate = _strip_package_name(package_name)
        if not candidate:
            return default_package_name
        if _has_invalid_char(candidate.replace(".", "")) or candidate in self.invalid_package_names:
            return default_package_name
        if _has_reserved_keyword(candidate):
            return default_package_name
        return candidate


def _parser_for(options: Iterable[Option]) -> VersionParser:
    latest = [v for v in (Version.safe_parse(o.id) for o in options) if v is not None]
    return VersionParser(latest)


@dataclass
class InitializrMetadata:
    configuration: InitializrConfiguration = field(default_factory=InitializrConfiguration)
    dependency_groups: list[DependencyGroup] = field(default_factory=list)
    types: SelectCapability = field(default_factory=lambda: SelectCapability("type", "project type"))
    packagings: SelectCapability = field(default_factory=lambda: SelectCapability("packaging", "project packaging"))
    java_versions: SelectCapability = field(default_factory=lambda: SelectCapability("javaVersion", "language level"))
    languages: SelectCapability = field(default_factory=lambda: SelectCapability("language", "programming language"))
    boot_versions: SelectCapability = field(
        default_factory=lambda: SelectCapability("bootVersion", "spring boot version")
    )
    text: TextDefaults = field(default_factory=TextDefaults)

    def __post_init__(self) -> None:
        self._index: dict[str, Dependency] = {}
        self._reindex()

    def _reindex(self) -> None:
        index: dict[str, Dependency] = {}
        for group in self.dependency_groups:
            for dep in group.dependencies:
                for key in (dep.id, *dep.aliases):
                    if key in index:
                        raise MetadataError(f"Could not register {dep.id}: another dependency also has the '{key}' id")
                    index[key] = dep
        self._index = index

    @property
    def all_dependencies(self) -> list[Dependency]:
        return [dep for group in self.dependency_groups for dep in group.dependencies]

    @property
    def version_parser(self) -> VersionParser:
        return _parser_for(self.boot_versions.options)

    def get_dependency(self, dependency_id: str) -> Dependency | None:
        """Look up a dependency by id or alias."""
        return self._index.get(dependency_id)

    def defaults(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for key, capability in (
            ("type", self.types),
            ("packaging", self.packagings),
            ("javaVersion", self.java_versions),
            ("language", self.languages),
            ("bootVersion", self.boot_versions),
        ):
            if capability.default is not None:
                out[key] = capability.default.id
        out.update(
            {
                "groupId": self.text.group_id,
                "artifactId": self.text.artifact_id,
                "version": self.text.version,
                "name": self.text.name,
                "description": self.text.description,
                "packageName": self.text.package_name,
            }
        )
        return out

    def default_boot_version(self) -> Version:
        option = self.boot_versions.default
        if option is None:
            raise MetadataError("No Spring Boot version is configured")
        return Version.parse(option.id)

    def dependencies_for(self, boot_version: Version) -> dict[str, Dependency]:
        """Dependencies compatible with `boot_version`, with version mappings applied."""
        return {dep.id: dep.resolve(boot_version) for dep in self.all_dependencies if dep.match(boot_version)}

    def update_boot_versions(self, options: Iterable[Option]) -> None:
        options = tuple(options)
        if options and not any(o.default for o in options):
            options = (replace(options[0], default=True), *options[1:])
        parser = _parser_for(options)
        # Ranges are re-parsed first so a failure leaves the metadata unchanged.
        groups = [
            replace(g, dependencies=tuple(d.with_ranges(parser) for d in g.dependencies))
            for g in self.dependency_groups
        ]
        self.boot_versions = replace(self.boot_versions, options=options)
        self.dependency_groups = groups
        self._reindex()
        logger.debug("Updated Spring Boot versions: %s", ", ".join(o.id for o in options))


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


def _as_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MetadataError(f"`{what}` must be a list when provided.")
    return value


def _as_mapping(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MetadataError(f"`{what}` must be an object/mapping when provided.")
    return value


def _str_tuple(value: Any) -> tuple[str, ...]:
    return tuple(str(v) for v in (value or ()))


def _build_link(raw: Any, dep_id: str) -> Link:
    link = _as_mapping(raw, "links")
    if not link.get("rel") or not link.get("href"):
        raise MetadataError(f"Invalid link for dependency with id '{dep_id}': both rel and href are required")
    return Link(rel=str(link["rel"]), href=str(link["href"]), description=link.get("description"))


def _build_dependency(raw: dict[str, Any], group: dict[str, Any]) -> Dependency:
    dep_id = raw.get("id")
    group_id = raw.get("groupId")
    artifact_id = raw.get("artifactId")
    version = raw.get("version")

    if dep_id is None:
        if not (group_id and artifact_id):
            raise MetadataError("Invalid dependency, should have at least an id or a groupId/artifactId pair.")
        dep_id = f"{group_id}:{artifact_id}"
    elif not (group_id and artifact_id):
        tokens = str(dep_id).split(":")
        if len(tokens) == 1:
            group_id, artifact_id = BOOT_GROUP_ID, f"spring-boot-starter-{dep_id}"
        elif len(tokens) in (2, 3):
            group_id, artifact_id = tokens[0], tokens[1]
            if len(tokens) == 3:
                version = tokens[2]
        else:
            raise MetadataError(
                f"Invalid dependency, id should have the form groupId:artifactId[:version] but got {dep_id}"
            )

    scope = raw.get("scope") or SCOPE_COMPILE
    if scope not in SCOPES:
        raise MetadataError(f"Invalid scope {scope} must be one of {list(SCOPES)}")

    try:
        weight = int(raw.get("weight") or 0)
    except (TypeError, ValueError) as e:
        raise MetadataError(f"Invalid weight {raw.get('weight')!r} for dependency with id '{dep_id}'") from e

    version_range = raw.get("versionRange") or group.get("versionRange")
    links = tuple(_build_link(link, dep_id) for link in _as_list(raw.get("links"), "links"))
    mappings = tuple(
        DependencyMapping(
            version_range=str(m.get("versionRange") or ""),
            group_id=m.get("groupId"),
            artifact_id=m.get("artifactId"),
            version=m.get("version"),
        )
        for m in _as_list(raw.get("mappings"), "mappings")
    )
    return Dependency(
        id=str(dep_id),
        name=str(raw.get("name") or dep_id),
        group_id=str(group_id),
        artifact_id=str(artifact_id),
        version=str(version) if version is not None else None,
        scope=scope,
        description=str(raw.get("description") or ""),
        version_range=str(version_range).strip() if version_range else None,
        facets=_str_tuple(raw.get("facets")),
        aliases=_str_tuple(raw.get("aliases")),
        keywords=_str_tuple(raw.get("keywords")),
        starter=bool(raw.get("starter", True)),
        weight=weight,
        links=links,
        mappings=mappings,
    )


def _build_options(raw: Any, what: str) -> tuple[Option, ...]:
    options = []
    for item in _as_list(raw, what):
        item = _as_mapping(item, what)
        if "id" not in item:
            raise MetadataError(f"Every `{what}` entry must have an id.")
        options.append(
            Option(
                id=str(item["id"]),
                name=str(item.get("name") or item["id"]),
                default=bool(item.get("default", False)),
                description=str(item.get("description") or ""),
            )
        )
    return tuple(options)


def _build_types(raw: Any) -> tuple[ProjectType, ...]:
    types = []
    for item in _as_list(raw, "types"):
        item = _as_mapping(item, "types")
        if "id" not in item:
            raise MetadataError("Every `types` entry must have an id.")
        tags = {str(k): str(v) for k, v in _as_mapping(item.get("tags"), "tags").items()}
        types.append(
            ProjectType(
                id=str(item["id"]),
                name=str(item.get("name") or item["id"]),
                default=bool(item.get("default", False)),
                description=str(item.get("description") or ""),
                action=str(item.get("action") or "/starter.zip"),
                tags=tags,
            )
        )
    return tuple(types)


def _text_value(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if isinstance(value, dict):
        value = value.get("value")
    return default if value is None else str(value)


def parse_metadata(data: dict[str, Any]) -> InitializrMetadata:
    """Build an `InitializrMetadata` from an already-parsed YAML document."""
    if not isinstance(data, dict):
        raise MetadataError("Metadata must be a mapping/object at the top level.")
    if "initializr" in data:
        data = _as_mapping(data["initializr"], "initializr")

    env = _as_mapping(data.get("env"), "env")
    defaults = InitializrConfiguration()
    configuration = InitializrConfiguration(
        fallback_application_name=str(env.get("fallbackApplicationName") or defaults.fallback_application_name),
        invalid_application_names=_str_tuple(env.get("invalidApplicationNames"))
        or defaults.invalid_application_names,
        invalid_package_names=_str_tuple(env.get("invalidPackageNames")) or defaults.invalid_package_names,
        spring_boot_metadata_url=str(env.get("springBootMetadataUrl") or defaults.spring_boot_metadata_url),
    )

    groups = []
    for raw_group in _as_list(data.get("dependencies"), "dependencies"):
        raw_group = _as_mapping(raw_group, "dependencies")
        deps = tuple(
            _build_dependency(_as_mapping(raw, "content"), raw_group)
            for raw in _as_list(raw_group.get("content"), "content")
        )
        groups.append(DependencyGroup(name=str(raw_group.get("name") or ""), dependencies=deps))

    text_defaults = TextDefaults()
    metadata = InitializrMetadata(
        configuration=configuration,
        dependency_groups=groups,
        types=SelectCapability("type", "project type", _build_types(data.get("types"))),
        packagings=SelectCapability("packaging", "project packaging", _build_options(data.get("packagings"), "packagings")),
        java_versions=SelectCapability("javaVersion", "language level", _build_options(data.get("javaVersions"), "javaVersions")),
        languages=SelectCapability("language", "programming language", _build_options(data.get("languages"), "languages")),
        boot_versions=SelectCapability(
            "bootVersion", "spring boot version", _build_options(data.get("bootVersions"), "bootVersions")
        ),
        text=TextDefaults(
            group_id=_text_value(data, "groupId", text_defaults.group_id),
            artifact_id=_text_value(data, "artifactId", text_defaults.artifact_id),
            version=_text_value(data, "version", text_defaults.version),
            name=_text_value(data, "name", text_defaults.name),
            description=_text_value(data, "description", text_defaults.description),
            package_name=_text_value(data, "packageName", text_defaults.package_name),
        ),
    )
    # Ranges are parsed against the configured Boot versions so `x` placeholders resolve.
    metadata.update_boot_versions(metadata.boot_versions.options)
    return metadata


def load_metadata(path: str | Path | None = None) -> InitializrMetadata:
    """
    Load metadata from `path`, `$INITIALIZR_METADATA`, or the bundled default.
    """
    resolved = Path(path or os.environ.get(METADATA_ENV_VAR) or DEFAULT_METADATA_PATH)
    if not resolved.exists():
        raise MetadataError(f"Metadata file does not exist: {resolved}")
    try:
        data = yaml.safe_load(resolved.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise MetadataError(f"Metadata file is not valid YAML: {resolved}") from e
    logger.debug("Loading metadata from %s", resolved)
    return parse_metadata(data)
