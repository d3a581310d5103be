"""
request.py

Responsibility: Turn the user's choices into a resolved project request.

A `ProjectRequest` starts with whatever the user provided (CLI flags, a request file,
or the exported state of a `ProjectForm`). `initialize` fills the blanks from the
metadata defaults, `resolve` validates every choice against the metadata and computes
the derived values: resolved dependencies, facets, application name and package name.

Request files are YAML documents, or Markdown files whose YAML front matter holds the
request (the Markdown body is ignored):

    ---
    artifactId: billing
    bootVersion: 2.0.5.RELEASE
    dependencies: [web, data-jpa]
    ---
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from initializr.metadata import SCOPE_PROVIDED, Dependency, InitializrMetadata, ProjectType, starter
from initializr.version import InvalidVersionError, Version

logger = logging.getLogger(__name__)

# Request keys use the service's camelCase names; attributes are snake_case.
_FIELD_ALIASES = {
    "bootVersion": "boot_version",
    "javaVersion": "java_version",
    "groupId": "group_id",
    "artifactId": "artifact_id",
    "packageName": "package_name",
    "applicationName": "application_name",
    "baseDir": "base_dir",
}
_RESOLVED_FIELDS = ("resolved_dependencies", "facets", "build")


class InvalidProjectRequestError(ValueError):
    pass


@dataclass
class ProjectRequest:
    type: str | None = None
    language: str | None = None
    packaging: str | None = None
    boot_version: str | None = None
    java_version: str | None = None
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    name: str | None = None
    description: str | None = None
    package_name: str | None = None
    application_name: str | None = None
    base_dir: str | None = None
    dependencies: list[str] = field(default_factory=list)

    # Populated by `resolve`.
    resolved_dependencies: list[Dependency] = field(default_factory=list, repr=False)
    facets: list[str] = field(default_factory=list, repr=False)
    build: str | None = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectRequest":
        names = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            attr = _FIELD_ALIASES.get(key, key)
            if attr not in names or attr in _RESOLVED_FIELDS or value is None:
                continue
            if attr == "dependencies":
                value = _split_ids(value)
            else:
                value = str(value)
            kwargs[attr] = value
        return cls(**kwargs)

    def initialize(self, metadata: InitializrMetadata) -> None:
        """Fill unset fields from the metadata defaults, except the package name."""
        defaults = metadata.defaults()
        for key, value in defaults.items():
            attr = _FIELD_ALIASES.get(key, key)
            if attr == "package_name":
                # Left unset so that it can be derived from groupId/artifactId.
                continue
            if getattr(self, attr, None) is None:
                setattr(self, attr, value)

    def resolve(self, metadata: InitializrMetadata) -> None:
        boot_version_text = self.boot_version or str(metadata.default_boot_version())
        try:
            requested = Version.parse(boot_version_text)
        except InvalidVersionError as e:
            raise InvalidProjectRequestError(f"Invalid Spring Boot version '{boot_version_text}'") from e

        resolved: list[Dependency] = []
        for dep_id in self.dependencies:
            dependency = metadata.get_dependency(dep_id)
            if dependency is None:
                raise InvalidProjectRequestError(f"Unknown dependency '{dep_id}' check project metadata")
            if not dependency.match(requested):
                raise InvalidProjectRequestError(
                    f"Dependency '{dependency.id}' is not compatible with Spring Boot {requested}"
                )
            if any(d.id == dependency.id for d in resolved):
                continue
            resolved.append(dependency.resolve(requested))

        facets: list[str] = []
        for dependency in resolved:
            for facet in dependency.facets:
                if facet not in facets:
                    facets.append(facet)

        if self.type is not None:
            project_type = metadata.types.get(self.type)
            if project_type is None:
                raise InvalidProjectRequestError(f"Unknown type '{self.type}' check project metadata")
            if isinstance(project_type, ProjectType) and "build" in project_type.tags:
                self.build = project_type.tags["build"]
        if self.packaging is not None and metadata.packagings.get(self.packaging) is None:
            raise InvalidProjectRequestError(f"Unknown packaging '{self.packaging}' check project metadata")
        if self.language is not None and metadata.languages.get(self.language) is None:
            raise InvalidProjectRequestError(f"Unknown language '{self.language}' check project metadata")

        self.boot_version = str(requested)
        self.resolved_dependencies = resolved
        self.facets = facets

        configuration = metadata.configuration
        if not self.application_name:
            self.application_name = configuration.generate_application_name(self.name)
        fallback = configuration.clean_package_name(
            derive_package_name(self.group_id, self.artifact_id), metadata.text.package_name
        )
        self.package_name = configuration.clean_package_name(self.package_name, fallback)

        self._after_resolution(metadata)
        logger.debug(
            "Resolved request artifact=%s boot=%s dependencies=%s",
            self.artifact_id,
            self.boot_version,
            [d.id for d in self.resolved_dependencies],
        )

    def _after_resolution(self, metadata: InitializrMetadata) -> None:
        if self.packaging == "war":
            if "web" not in self.facets:
                # A war must be able to bootstrap the web application.
                web = metadata.get_dependency("web") or starter("web")
                self.resolved_dependencies.append(web)
                self.facets.append("web")
            self.resolved_dependencies.append(starter("tomcat", scope=SCOPE_PROVIDED))
        if not any(d.starter for d in self.resolved_dependencies):
            self.resolved_dependencies.append(starter(""))

    def has_facet(self, facet: str) -> bool:
        return facet in self.facets

    @property
    def package_path(self) -> str:
        return (self.package_name or "").replace(".", "/")

    def to_context(self) -> dict[str, Any]:
        """Template context for the project generator."""
        return {
            "type": self.type,
            "build": self.build,
            "language": self.language,
            "packaging": self.packaging,
            "boot_version": self.boot_version,
            "java_version": self.java_version,
            "group_id": self.group_id,
            "artifact_id": self.artifact_id,
            "version": self.version,
            "name": self.name,
            "description": self.description,
            "package_name": self.package_name,
            "package_path": self.package_path,
            "application_name": self.application_name,
            "dependencies": self.resolved_dependencies,
            "facets": self.facets,
        }


def derive_package_name(group_id: str | None, artifact_id: str | None) -> str:
    """`com.example` + `demo` -> `com.example.demo`; the raw value, cleaned later."""
    parts = [p.strip() for p in (group_id, artifact_id) if p and p.strip()]
    return ".".join(parts)


def _split_ids(value: Any) -> list[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise InvalidProjectRequestError("`dependencies` must be a list or a comma-separated string.")
    return [i.strip() for i in items if i.strip()]


def _parse_yaml_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """
    If the markdown begins with YAML frontmatter delimited by '---', parse it.
    Returns (frontmatter_dict_or_none, remaining_markdown_text).
    """
    if not text.startswith("---\n"):
        return None, text
    end = text.find("\n---\n", 4)
    if end == -1:
        raise InvalidProjectRequestError("YAML frontmatter starts with '---' but no closing '---' was found.")
    try:
        data = yaml.safe_load(text[4:end]) or {}
    except yaml.YAMLError as e:
        raise InvalidProjectRequestError("YAML frontmatter is not valid YAML.") from e
    if not isinstance(data, dict):
        raise InvalidProjectRequestError("YAML frontmatter must be a mapping/object at the top level.")
    return data, text[end + len("\n---\n") :]


def load_request_file(path: str | Path) -> ProjectRequest:
    p = Path(path)
    if not p.exists():
        raise InvalidProjectRequestError(f"Request file does not exist: {p}")
    text = p.read_text(encoding="utf-8")

    frontmatter, _rest = _parse_yaml_frontmatter(text)
    if frontmatter is not None:
        data = frontmatter
    else:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise InvalidProjectRequestError(f"Request file is not valid YAML: {p}") from e
        if not isinstance(data, dict):
            raise InvalidProjectRequestError("A request file must be a mapping/object at the top level.")
    return ProjectRequest.from_dict(data)
