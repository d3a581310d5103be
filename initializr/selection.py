"""
selection.py

Responsibility: The state behind the project form: the dependency search engine,
the dependency check-list and its tags, and the field wiring between form inputs.

Behaviour, per user action:
- Boot version changes: every dependency is re-checked against its version range.
  Incompatible ones are disabled, unchecked and lose their tag; the search engine is
  reloaded with the dependencies compatible with the new version.
- A search suggestion is picked: a compatible dependency is checked and tagged,
  an incompatible one raises a transient message instead. The query is always cleared.
- A checkbox is toggled: checking adds the tag, unchecking removes it.
- A tag is closed: the dependency is unchecked.
- The type changes: the form action follows the type's action.
- The artifact id changes: the base directory follows it.
- The group id or artifact id changes: the package name is re-derived.

Nothing here renders markup; callers read the state and draw it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable
from urllib.parse import unquote

from initializr.metadata import InitializrMetadata, ProjectType
from initializr.request import ProjectRequest
from initializr.version import Version, is_compatible

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


def _tokenize(text: str | None) -> list[str]:
    return (text or "").lower().split()


class SearchEngine:
    """
    In-memory suggestion engine keyed by dependency id.

    A datum matches when every whitespace-separated query token is a prefix of one of
    its tokens. Results keep insertion order.
    """

    def __init__(self, fields: Iterable[str] = ("name", "description"), *, min_length: int = MIN_QUERY_LENGTH) -> None:
        self._fields = tuple(fields)
        self._min_length = min_length
        self._datums: dict[str, dict[str, Any]] = {}
        self._tokens: dict[str, list[str]] = {}

    def __len__(self) -> int:
        return len(self._datums)

    def clear(self) -> None:
        self._datums.clear()
        self._tokens.clear()

    def add(self, datums: Iterable[dict[str, Any]]) -> None:
        for datum in datums:
            datum_id = datum["id"]
            self._datums[datum_id] = datum
            tokens: list[str] = []
            for name in self._fields:
                tokens.extend(_tokenize(datum.get(name)))
            self._tokens[datum_id] = tokens

    def get(self, *ids: str) -> list[dict[str, Any]]:
        return [self._datums[i] for i in ids if i in self._datums]

    def search(self, query: str) -> list[dict[str, Any]]:
        if len(query.strip()) < self._min_length:
            return []
        query_tokens = _tokenize(query)
        return [
            self._datums[datum_id]
            for datum_id, tokens in self._tokens.items()
            if all(any(t.startswith(q) for t in tokens) for q in query_tokens)
        ]


@dataclass(frozen=True)
class Tag:
    id: str
    name: str


@dataclass(frozen=True)
class SelectionResult:
    accepted: bool
    message: str | None = None


class DependencySelection:
    def __init__(self, metadata: InitializrMetadata, boot_version: str | None = None) -> None:
        self._metadata = metadata
        self.engine = SearchEngine()
        self.boot_version = ""
        self.query = ""
        self.message: str | None = None
        self.disabled: set[str] = set()
        self.checked: set[str] = set()
        self._tags: dict[str, Tag] = {}
        self.refresh(boot_version or str(metadata.default_boot_version()))

    @property
    def tags(self) -> list[Tag]:
        return list(self._tags.values())

    @property
    def selected_ids(self) -> list[str]:
        return [t.id for t in self._tags.values()]

    def is_enabled(self, dependency_id: str) -> bool:
        return dependency_id not in self.disabled

    def refresh(self, boot_version: str) -> None:
        self.boot_version = boot_version
        for dep in self._metadata.all_dependencies:
            if is_compatible(dep.range_string, boot_version):
                self.disabled.discard(dep.id)
            else:
                self.disabled.add(dep.id)
                self.checked.discard(dep.id)
                self._remove_tag(dep.id)
        self._reload_engine()

    def _reload_engine(self) -> None:
        self.engine.clear()
        version = Version.safe_parse(self.boot_version)
        if version is None:
            logger.debug("No dependency suggestions for unparseable Boot version %r", self.boot_version)
            return
        self.engine.add(dep.to_datum() for dep in self._metadata.dependencies_for(version).values())

    def suggest(self, query: str) -> list[dict[str, Any]]:
        self.query = query
        return self.engine.search(query)

    def select(self, suggestion: dict[str, Any]) -> SelectionResult:
        """Apply a picked suggestion; the query is cleared either way."""
        self.query = ""
        dep_id, name = suggestion["id"], suggestion.get("name") or suggestion["id"]
        if is_compatible(suggestion.get("versionRange"), self.boot_version):
            self._add_tag(dep_id, name)
            self.checked.add(dep_id)
            self.message = None
            return SelectionResult(accepted=True)
        self.message = f"{name} is not compatible with Spring Boot {self.boot_version}"
        return SelectionResult(accepted=False, message=self.message)

    def dismiss_message(self) -> None:
        self.message = None

    def toggle(self, dependency_id: str, checked: bool) -> None:
        if not checked:
            self.checked.discard(dependency_id)
            self._remove_tag(dependency_id)
            return
        if dependency_id in self.disabled:
            return
        results = self.engine.get(dependency_id)
        if results:
            name = results[0]["name"]
        else:
            dependency = self._metadata.get_dependency(dependency_id)
            if dependency is None:
                raise KeyError(dependency_id)
            name = dependency.name
        self.checked.add(dependency_id)
        self._add_tag(dependency_id, name)

    def remove_tag(self, dependency_id: str) -> None:
        self.checked.discard(dependency_id)
        self._remove_tag(dependency_id)

    def _add_tag(self, dependency_id: str, name: str) -> None:
        if dependency_id not in self._tags:
            self._tags[dependency_id] = Tag(dependency_id, name)

    def _remove_tag(self, dependency_id: str) -> None:
        self._tags.pop(dependency_id, None)


def generate_package_name(group_id: str, artifact_id: str) -> str:
    return f"{group_id}.{artifact_id}".replace("-", "")


@dataclass
class ProjectForm:
    """Form fields with their change handlers, seeded from the metadata defaults."""

    metadata: InitializrMetadata
    type: str = ""
    action: str = ""
    language: str = ""
    packaging: str = ""
    java_version: str = ""
    group_id: str = ""
    artifact_id: str = ""
    name: str = ""
    description: str = ""
    package_name: str = ""
    base_dir: str = ""
    selection: DependencySelection = field(init=False)

    def __post_init__(self) -> None:
        defaults = self.metadata.defaults()
        self.language = self.language or defaults.get("language", "")
        self.packaging = self.packaging or defaults.get("packaging", "")
        self.java_version = self.java_version or defaults.get("javaVersion", "")
        self.group_id = self.group_id or defaults["groupId"]
        self.artifact_id = self.artifact_id or defaults["artifactId"]
        self.name = self.name or defaults["name"]
        self.description = self.description or defaults["description"]
        self.selection = DependencySelection(self.metadata, defaults.get("bootVersion"))
        self.set_type(self.type or defaults.get("type", ""))
        self.set_artifact_id(self.artifact_id)

    @property
    def boot_version(self) -> str:
        return self.selection.boot_version

    def set_boot_version(self, value: str) -> None:
        self.selection.refresh(value)

    def set_type(self, value: str) -> None:
        self.type = value
        project_type = self.metadata.types.get(value)
        if isinstance(project_type, ProjectType):
            self.action = project_type.action

    def set_group_id(self, value: str) -> None:
        self.group_id = value
        self.package_name = generate_package_name(self.group_id, self.artifact_id)

    def set_artifact_id(self, value: str) -> None:
        self.artifact_id = value
        self.base_dir = value
        self.package_name = generate_package_name(self.group_id, self.artifact_id)

    def set_package_name(self, value: str) -> None:
        self.package_name = value

    def apply_params(self, url: str) -> None:
        """
        Apply `#!key=value&...` parameters from a shared link.

        Repeated keys: the last one wins. Unknown keys and unknown option values are ignored.
        """
        pos = url.find("#!")
        if pos < 0:
            return
        for pair in url[pos + 2 :].split("&"):
            key, sep, raw = pair.partition("=")
            if not sep:
                continue
            value = unquote(raw)
            if key == "type" and self.metadata.types.get(value) is not None:
                self.set_type(value)
            elif key == "packaging" and self.metadata.packagings.get(value) is not None:
                self.packaging = value
            elif key == "javaVersion" and self.metadata.java_versions.get(value) is not None:
                self.java_version = value
            elif key == "language" and self.metadata.languages.get(value) is not None:
                self.language = value
            elif key == "groupId":
                self.set_group_id(value)
            elif key == "artifactId":
                self.set_artifact_id(value)
            elif key == "name":
                self.name = value
            elif key == "description":
                self.description = value
            elif key == "packageName":
                self.set_package_name(value)

    def to_request(self) -> ProjectRequest:
        return ProjectRequest(
            type=self.type,
            language=self.language,
            packaging=self.packaging,
            boot_version=self.boot_version,
            java_version=self.java_version,
            group_id=self.group_id,
            artifact_id=self.artifact_id,
            name=self.name,
            description=self.description,
            package_name=self.package_name,
            base_dir=self.base_dir or None,
            dependencies=self.selection.selected_ids,
        )
