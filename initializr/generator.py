"""
generator.py

Responsibility: Produce a project skeleton from a resolved `ProjectRequest`.

The skeleton is assembled from template trees under `templates/project/`:
- `common/`          files every project gets (`.gitignore`, `HELP.md`, properties)
- `<language>/`      application and test classes for java, kotlin or groovy
- `war/<language>/`  the servlet initializer, only for war packaging

Build files are out of scope: the skeleton is the source layout only.
`create_archive` packs a generated directory as a zip or a gzipped tarball.
"""

from __future__ import annotations

import logging
import os
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

from initializr.metadata import InitializrMetadata
from initializr.renderer import render_template_dir
from initializr.request import ProjectRequest
from initializr.version import Version

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates" / "project"

ARCHIVE_FORMATS = {"zip": ".zip", "tgz": ".tar.gz"}

_BOOT_2 = Version.parse("2.0.0.M1")
_JUNIT_5 = Version.parse("2.2.0.M1")


class GenerationError(RuntimeError):
    pass


@dataclass(frozen=True)
class GeneratedProject:
    output_dir: Path
    root: Path
    files: tuple[str, ...]


class ProjectGenerator:
    def __init__(self, metadata: InitializrMetadata, templates_dir: str | Path = DEFAULT_TEMPLATES_DIR) -> None:
        self._metadata = metadata
        self._templates_dir = Path(templates_dir)

    def prepare(self, request: ProjectRequest) -> ProjectRequest:
        request.initialize(self._metadata)
        request.resolve(self._metadata)
        return request

    def _context(self, request: ProjectRequest) -> dict[str, Any]:
        boot = Version.parse(request.boot_version or str(self._metadata.default_boot_version()))
        context = request.to_context()
        context.update(
            {
                "boot2": boot >= _BOOT_2,
                "junit5": boot >= _JUNIT_5,
                "servlet_initializer_package": (
                    "org.springframework.boot.web.servlet.support" if boot >= _BOOT_2 else "org.springframework.boot.web.support"
                ),
            }
        )
        return context

    def _template_trees(self, request: ProjectRequest) -> list[Path]:
        language = request.language or "java"
        trees = [self._templates_dir / "common", self._templates_dir / language]
        if request.packaging == "war":
            trees.append(self._templates_dir / "war" / language)
        for tree in trees:
            if not tree.is_dir():
                raise GenerationError(f"No templates available for '{tree.relative_to(self._templates_dir)}'")
        return trees

    def generate(self, request: ProjectRequest, output_dir: str | Path) -> GeneratedProject:
        """Resolve `request` if needed and render the skeleton under `output_dir[/base_dir]`."""
        if not request.resolved_dependencies:
            self.prepare(request)
        out = Path(output_dir).resolve()
        root = out / request.base_dir if request.base_dir else out
        context = self._context(request)

        files: list[str] = []
        for tree in self._template_trees(request):
            result = render_template_dir(template_dir=tree, destination_dir=root, context=context)
            files.extend(result.paths)

        logger.info("Generated %s (%d files) in %s", request.artifact_id, len(files), root)
        return GeneratedProject(output_dir=out, root=root, files=tuple(sorted(files)))


def archive_name(artifact_id: str, fmt: str) -> str:
    if fmt not in ARCHIVE_FORMATS:
        raise GenerationError(f"Unsupported archive format '{fmt}' (expected one of {', '.join(ARCHIVE_FORMATS)})")
    return quote(artifact_id.replace(" ", "_")) + ARCHIVE_FORMATS[fmt]


def _iter_files(directory: Path) -> list[Path]:
    files = [Path(root) / name for root, _dirs, names in os.walk(directory) for name in names]
    return sorted(files, key=lambda p: p.relative_to(directory).as_posix())


def create_archive(directory: str | Path, fmt: str = "zip", *, artifact_id: str, dest_dir: str | Path | None = None) -> Path:
    """
    Pack everything under `directory` into `dest_dir/<artifact_id>.<ext>`.

    Entries are relative to `directory`, so a base directory shows up as the
    archive's top-level folder. File modes are preserved.
    """
    source = Path(directory)
    name = archive_name(artifact_id, fmt)
    target = Path(dest_dir or source.parent) / name
    target.parent.mkdir(parents=True, exist_ok=True)
    files = _iter_files(source)

    if fmt == "zip":
        with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path in files:
                zf.write(path, path.relative_to(source).as_posix())
    else:
        with tarfile.open(target, "w:gz") as tf:
            for path in files:
                tf.add(path, arcname=path.relative_to(source).as_posix(), recursive=False)

    logger.info("Created archive %s (%d bytes)", target, target.stat().st_size)
    return target
