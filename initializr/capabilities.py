"""
capabilities.py

Responsibility: Describe what the service offers as plain-text tables
(dependencies, project types, request parameters).

Tables look like:

    +-------+-------------+
    | Id    | Description |
    +-------+-------------+
    | web   | Build web   |
    +-------+-------------+

Cells longer than `max_width` wrap onto continuation rows; when any row wraps,
data rows are separated by an empty row.
"""

from __future__ import annotations

import textwrap
from typing import Sequence

from initializr.metadata import InitializrMetadata

LOGO = r"""  .   ____          _            __ _ _
 /\\ / ___'_ __ _ _(_)_ __  __ _ \ \ \ \
( ( )\___ | '_ | '_| | '_ \/ _` | \ \ \ \
 \\/  ___)| |_)| | | | | || (_| |  ) ) ) )
  '  |____| .__|_| |_|_| |_\__, | / / / /
 =========|_|==============|___/=/_/_/_/"""

DEFAULT_MAX_WIDTH = 60

_TEXT_DESCRIPTIONS = {
    "groupId": "project coordinates",
    "artifactId": "project coordinates (infer archive name)",
    "version": "project version",
    "name": "project name (infer application name)",
    "description": "project description",
    "packageName": "root package",
    "applicationName": "application name",
    "baseDir": "base directory to create in the archive",
}

Cell = str | None


def _wrap(cell: Cell, max_width: int) -> list[str]:
    if not cell:
        return []
    return textwrap.wrap(cell, max_width) or [cell]


def _format_row(row: Sequence[Cell], max_width: int) -> list[list[Cell]]:
    columns = [_wrap(cell, max_width) for cell in row]
    height = max((len(c) for c in columns), default=0) or 1
    return [[c[i] if i < len(c) else None for c in columns] for i in range(height)]


def generate_table(content: Sequence[Sequence[Cell]], max_width: int = DEFAULT_MAX_WIDTH) -> str:
    """Render `content` (header row first) as an ASCII table."""
    count = len(content[0])
    widths = [
        min(max((len(row[i] or "") for row in content if i < len(row)), default=0), max_width) for i in range(count)
    ]
    formatted = [_format_row(row, max_width) for row in content]
    spaced = any(len(lines) > 1 for lines in formatted)

    separator = "".join("+" + "-" * (w + 2) for w in widths) + "+"

    def line(cells: Sequence[Cell]) -> str:
        return "".join(f"| {(cell or '').ljust(widths[i])} " for i, cell in enumerate(cells)) + "|"

    out = [separator]
    out.extend(line(cells) for cells in formatted[0])
    out.append(separator)
    for index in range(1, len(formatted)):
        out.extend(line(cells) for cells in formatted[index])
        if spaced and index < len(formatted) - 1:
            out.append(line([None] * count))
    out.append(separator)
    return "\n".join(out) + "\n"


def dependency_table(metadata: InitializrMetadata, max_width: int = DEFAULT_MAX_WIDTH) -> str:
    rows: list[list[Cell]] = [["Id", "Description", "Required version"]]
    for dep in sorted(metadata.all_dependencies, key=lambda d: d.id):
        rows.append([dep.id, dep.description or dep.name, dep.version_requirement])
    return generate_table(rows, max_width)


def type_table(metadata: InitializrMetadata, max_width: int = DEFAULT_MAX_WIDTH) -> str:
    rows: list[list[Cell]] = [["Id", "Description", "Tags"]]
    for project_type in sorted(metadata.types.options, key=lambda t: t.id):
        tags = getattr(project_type, "tags", {})
        rows.append(
            [
                f"{project_type.id} *" if project_type.default else project_type.id,
                project_type.description or project_type.name,
                ",".join(f"{k}:{v}" for k, v in tags.items()),
            ]
        )
    return generate_table(rows, max_width)


def parameter_table(metadata: InitializrMetadata, max_width: int = DEFAULT_MAX_WIDTH) -> str:
    defaults: dict[str, str] = dict(metadata.defaults())
    defaults["applicationName"] = metadata.configuration.generate_application_name(metadata.text.name)
    defaults["baseDir"] = "no base dir"
    defaults["dependencies"] = "none"

    descriptions = dict(_TEXT_DESCRIPTIONS)
    for capability in (
        metadata.types,
        metadata.packagings,
        metadata.java_versions,
        metadata.languages,
        metadata.boot_versions,
    ):
        descriptions[capability.id] = capability.description
    descriptions["dependencies"] = "dependency identifiers (comma-separated)"

    rows: list[list[Cell]] = [["Parameter", "Description", "Default value"]]
    for key in sorted(defaults):
        rows.append([key, descriptions.get(key), defaults[key]])
    return generate_table(rows, max_width)


def generate_capabilities(metadata: InitializrMetadata, max_width: int = DEFAULT_MAX_WIDTH) -> str:
    return "\n".join(
        [
            LOGO,
            ":: Spring Initializr ::",
            "",
            "This tool generates quickstart projects.",
            "",
            "The following section has a list of supported identifiers for the comma-separated",
            "list of \"dependencies\".",
            "",
            dependency_table(metadata, max_width),
            "Project types (* denotes the default)",
            "",
            type_table(metadata, max_width),
            "Parameters",
            "",
            parameter_table(metadata, max_width),
        ]
    )
