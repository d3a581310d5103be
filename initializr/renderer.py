"""
renderer.py

Responsibility: Render one template tree of a project skeleton into a destination directory.

Rules:
- Walk template files in sorted order to ensure deterministic output.
- Relative paths may contain Jinja2 expressions, e.g.
  `src/main/java/{{ package_path }}/{{ application_name }}.java`.
- For UTF-8 text files, if Jinja2 markers are present, render with the provided context.
- Non-text/binary files are copied byte-for-byte.

Callers pick the trees and build the context; see `generator.py`.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

_MARKERS = ("{{", "{%", "{#")


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class RenderResult:
    rendered_files: int
    copied_files: int
    paths: tuple[str, ...] = ()


def _is_binary_file(path: Path) -> bool:
    # Anything that is not UTF-8 is copied as-is.
    try:
        path.read_text(encoding="utf-8")
        return False
    except UnicodeDecodeError:
        return True


def _has_markers(text: str) -> bool:
    return any(marker in text for marker in _MARKERS)


def _iter_template_files(template_dir: Path) -> list[Path]:
    files: list[Path] = []
    for root, _dirs, filenames in os.walk(template_dir):
        root_path = Path(root)
        for name in filenames:
            files.append(root_path / name)
    files.sort(key=lambda p: str(p.relative_to(template_dir)).replace(os.sep, "/"))
    return files


def _make_environment() -> Environment:
    return Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _render_relative_path(env: Environment, rel: str, context: dict[str, Any]) -> str:
    if not _has_markers(rel):
        return rel
    try:
        out = env.from_string(rel).render(**context)
    except TemplateError as e:
        raise RenderError(f"Failed rendering template path: {rel}") from e
    # Empty segments (e.g. an empty package path) collapse.
    return "/".join(part for part in out.split("/") if part)


def render_template_dir(
    *,
    template_dir: str | Path,
    destination_dir: str | Path,
    context: dict[str, Any],
) -> RenderResult:
    """
    Render every file of `template_dir` into `destination_dir`, creating directories
    as needed and keeping file modes. Returned paths are the rendered relative paths.
    """
    tpl_dir = Path(template_dir).resolve()
    dst_dir = Path(destination_dir).resolve()

    if not tpl_dir.exists() or not tpl_dir.is_dir():
        raise RenderError(f"Template directory not found: {tpl_dir}")

    env = _make_environment()

    rendered = 0
    copied = 0
    paths: list[str] = []

    for src_path in _iter_template_files(tpl_dir):
        rel = str(src_path.relative_to(tpl_dir)).replace(os.sep, "/")
        out_rel = _render_relative_path(env, rel, context)
        dst_path = dst_dir / out_rel
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        paths.append(out_rel)

        if _is_binary_file(src_path):
            shutil.copy2(src_path, dst_path)
            copied += 1
            continue

        text = src_path.read_text(encoding="utf-8")
        if _has_markers(text):
            try:
                out = env.from_string(text).render(**context)
            except TemplateError as e:
                raise RenderError(f"Failed rendering template file: {rel}") from e
            dst_path.write_text(out, encoding="utf-8", newline="\n")
            shutil.copystat(src_path, dst_path)
            rendered += 1
        else:
            shutil.copy2(src_path, dst_path)
            copied += 1

    return RenderResult(rendered_files=rendered, copied_files=copied, paths=tuple(paths))
