"""
cli.py

Responsibility: CLI entrypoint for initializr.

Commands:
- `generate`               resolve a project request and render the skeleton
                           (optionally archive it and/or commit it to a fresh git repo)
- `dependencies`           list the dependencies compatible with a Boot version
                           (`--refresh-boot-versions` on this and `generate` swaps in the remote Boot versions first)
- `match`                  check a version against a range (exit status 0/1)
- `capabilities`           print the service capabilities as text tables
- `refresh-boot-versions`  print the Boot versions advertised remotely

This module should orchestrate behavior but keep concerns isolated:
- Metadata: `metadata.py`
- Request resolution: `request.py`
- Rendering and archives: `generator.py` / `renderer.py`
- Remote Boot versions: `boot_versions.py`
"""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path

from initializr.boot_versions import BootVersionsError, SpringBootMetadataClient, refresh_boot_versions
from initializr.capabilities import generate_capabilities, generate_table
from initializr.generator import ARCHIVE_FORMATS, GenerationError, ProjectGenerator, create_archive
from initializr.metadata import InitializrMetadata, MetadataError, load_metadata
from initializr.renderer import RenderError
from initializr.request import InvalidProjectRequestError, ProjectRequest, load_request_file
from initializr.version import InvalidVersionError, is_compatible

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV_VAR = "INITIALIZR_LOG_LEVEL"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Request attributes that can be overridden from the command line.
_REQUEST_OPTIONS = (
    "type",
    "language",
    "packaging",
    "boot_version",
    "java_version",
    "group_id",
    "artifact_id",
    "version",
    "name",
    "description",
    "package_name",
    "application_name",
    "base_dir",
)


class CLIError(RuntimeError):
    pass


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> None:
    """
    Run a subprocess command, raising a CLIError on failure.
    """
    try:
        subprocess.run(cmd, cwd=str(cwd), env=env, check=True, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    except FileNotFoundError as e:
        raise CLIError(f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        raise CLIError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e


def _git_env_deterministic(base_env: dict[str, str]) -> dict[str, str]:
    """
    Fixed author, committer and dates so the initial commit of a generated project
    is reproducible.
    """
    env = dict(base_env)
    env.setdefault("GIT_AUTHOR_NAME", "initializr")
    env.setdefault("GIT_AUTHOR_EMAIL", "initializr@example.invalid")
    env.setdefault("GIT_COMMITTER_NAME", "initializr")
    env.setdefault("GIT_COMMITTER_EMAIL", "initializr@example.invalid")
    env.setdefault("GIT_AUTHOR_DATE", "1970-01-01T00:00:00Z")
    env.setdefault("GIT_COMMITTER_DATE", "1970-01-01T00:00:00Z")
    return env


def _ensure_empty_dir(path: Path, *, overwrite: bool) -> None:
    path.mkdir(parents=True, exist_ok=True)
    if not overwrite and any(path.iterdir()):
        raise CLIError(f"Output directory is not empty: {path} (use --overwrite to allow)")


def _git_init_commit(*, workdir: Path, deterministic_git: bool) -> None:
    base_env = os.environ.copy()
    env = _git_env_deterministic(base_env) if deterministic_git else base_env

    if not (workdir / ".git").exists():
        _run(["git", "init"], cwd=workdir, env=env)
    _run(["git", "checkout", "-B", "main"], cwd=workdir, env=env)
    _run(["git", "add", "-A"], cwd=workdir, env=env)
    _run(["git", "commit", "-m", "Initial commit"], cwd=workdir, env=env)
    logger.info("Committed generated project in %s", workdir)


def _load_metadata(args: argparse.Namespace) -> InitializrMetadata:
    metadata = load_metadata(args.metadata)
    if getattr(args, "refresh_boot_versions", False):
        # A failed refresh keeps the configured versions.
        refresh_boot_versions(metadata, SpringBootMetadataClient(metadata.configuration.spring_boot_metadata_url))
    return metadata


def _build_request(args: argparse.Namespace) -> ProjectRequest:
    request = load_request_file(args.request_file) if args.request_file else ProjectRequest()
    for attr in _REQUEST_OPTIONS:
        value = getattr(args, attr)
        if value is not None:
            setattr(request, attr, value)
    if args.dependencies is not None:
        request.dependencies = [d.strip() for d in args.dependencies.split(",") if d.strip()]
    return request


def generate_cmd(args: argparse.Namespace) -> int:
    metadata = _load_metadata(args)
    generator = ProjectGenerator(metadata)
    request = generator.prepare(_build_request(args))

    output = Path(args.output or Path("generated") / (request.artifact_id or "demo")).resolve()
    _ensure_empty_dir(output, overwrite=bool(args.overwrite))
    project = generator.generate(request, output)

    if args.git:
        _git_init_commit(workdir=project.root, deterministic_git=bool(args.deterministic_git))

    if args.archive:
        archive = create_archive(output, args.archive, artifact_id=request.artifact_id or "demo", dest_dir=output.parent)
        print(archive)
    else:
        print(project.root)
    return 0


def dependencies_cmd(args: argparse.Namespace) -> int:
    metadata = _load_metadata(args)
    boot_version = metadata.version_parser.parse(args.boot_version) if args.boot_version else metadata.default_boot_version()
    rows: list[list[str | None]] = [["Id", "Name", "Coordinates", "Required version"]]
    for dep in metadata.dependencies_for(boot_version).values():
        rows.append([dep.id, dep.name, f"{dep.group_id}:{dep.artifact_id}", dep.version_requirement])
    print(f"Dependencies compatible with Spring Boot {boot_version}")
    print(generate_table(rows), end="")
    return 0


def match_cmd(args: argparse.Namespace) -> int:
    metadata = _load_metadata(args)
    compatible = is_compatible(args.range, args.version, metadata.version_parser)
    print(f"{args.version} {'matches' if compatible else 'does not match'} {args.range}")
    return 0 if compatible else 1


def capabilities_cmd(args: argparse.Namespace) -> int:
    metadata = _load_metadata(args)
    print(generate_capabilities(metadata), end="")
    return 0


def refresh_boot_versions_cmd(args: argparse.Namespace) -> int:
    metadata = _load_metadata(args)
    client = SpringBootMetadataClient(args.url or metadata.configuration.spring_boot_metadata_url)
    for boot_version in client.fetch_boot_versions():
        marker = " *" if boot_version.default else ""
        print(f"{boot_version.id}\t{boot_version.name}{marker}")
    return 0


def _add_refresh_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--refresh-boot-versions",
        action="store_true",
        help="Replace the configured Spring Boot versions with the ones advertised remotely",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="initializr", description="Generate Spring Boot project skeletons")
    p.add_argument("--metadata", default=None, help="Metadata YAML file (or set env INITIALIZR_METADATA)")
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper(),
        help="Logging level (or set env INITIALIZR_LOG_LEVEL; default: WARNING)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    g = sub.add_parser("generate", help="Render a project skeleton from a request")
    g.add_argument("request_file", nargs="?", default=None, help="YAML request file or markdown with YAML front matter")
    g.add_argument("--dependencies", "-d", default=None, help="Comma-separated dependency ids (overrides the file)")
    g.add_argument("--type", default=None, help="Project type id")
    g.add_argument("--language", default=None, help="java, kotlin or groovy")
    g.add_argument("--packaging", default=None, help="jar or war")
    g.add_argument("--boot-version", dest="boot_version", default=None, help="Spring Boot version")
    g.add_argument("--java-version", dest="java_version", default=None, help="Java language level")
    g.add_argument("--group-id", dest="group_id", default=None)
    g.add_argument("--artifact-id", dest="artifact_id", default=None)
    g.add_argument("--project-version", dest="version", default=None)
    g.add_argument("--name", default=None)
    g.add_argument("--description", default=None)
    g.add_argument("--package-name", dest="package_name", default=None)
    g.add_argument("--application-name", dest="application_name", default=None)
    g.add_argument("--base-dir", dest="base_dir", default=None, help="Directory created inside the output")
    g.add_argument("--output", "-o", default=None, help="Output directory (default: generated/<artifactId>)")
    g.add_argument("--overwrite", action="store_true", help="Allow a non-empty output directory")
    g.add_argument("--archive", choices=sorted(ARCHIVE_FORMATS), default=None, help="Also pack the output")
    g.add_argument("--git", action="store_true", help="Initialize a git repository with an initial commit")
    g.add_argument(
        "--no-deterministic-git",
        dest="deterministic_git",
        action="store_false",
        default=True,
        help="Use the real git identity and clock for the initial commit",
    )
    _add_refresh_flag(g)
    g.set_defaults(func=generate_cmd)

    d = sub.add_parser("dependencies", help="List the dependencies compatible with a Boot version")
    d.add_argument("--boot-version", dest="boot_version", default=None, help="Default: the metadata default")
    _add_refresh_flag(d)
    d.set_defaults(func=dependencies_cmd)

    m = sub.add_parser("match", help="Exit 0 when VERSION is inside RANGE, 1 otherwise")
    m.add_argument("range", help="Version range, e.g. [1.5.0.RELEASE,2.0.0.M1)")
    m.add_argument("version", help="Version, e.g. 1.5.3.RELEASE")
    m.set_defaults(func=match_cmd)

    c = sub.add_parser("capabilities", help="Describe dependencies, types and parameters")
    c.set_defaults(func=capabilities_cmd)

    r = sub.add_parser("refresh-boot-versions", help="Print the Spring Boot versions advertised remotely")
    r.add_argument("--url", default=None, help="Project metadata URL (default: from metadata env)")
    r.set_defaults(func=refresh_boot_versions_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    # argparse does not check `choices` against a default taken from the environment.
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid {LOG_LEVEL_ENV_VAR} {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        return int(args.func(args))
    except (
        CLIError,
        MetadataError,
        InvalidVersionError,
        InvalidProjectRequestError,
        RenderError,
        GenerationError,
        BootVersionsError,
    ) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
