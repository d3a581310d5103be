"""
boot_versions.py

Responsibility: Isolate all interaction with the remote Spring Boot project metadata.

This module must be the only place that:
- Sends HTTP requests to the project metadata endpoint
- Interprets its JSON payload (`projectReleases`)

`refresh_boot_versions` swaps the result into an `InitializrMetadata`; a failed
refresh is logged and leaves the configured versions untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from initializr.metadata import InitializrMetadata, MetadataError, Option

logger = logging.getLogger(__name__)


class BootVersionsError(RuntimeError):
    pass


@dataclass(frozen=True)
class BootVersion:
    id: str
    name: str
    default: bool = False

    def to_option(self) -> Option:
        return Option(id=self.id, name=self.name, default=self.default)


class SpringBootMetadataClient:
    def __init__(self, url: str, *, timeout: float = 30) -> None:
        if not url.strip():
            raise BootVersionsError("A Spring Boot metadata URL is required.")
        self._url = url
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "initializr",
        }

    def _fetch(self) -> Any:
        try:
            r = requests.get(self._url, headers=self._headers(), timeout=self._timeout)
        except requests.RequestException as e:
            raise BootVersionsError(f"Could not reach {self._url}: {e}") from e
        if r.status_code >= 400:
            raise BootVersionsError(f"Spring Boot metadata error {r.status_code} GET {self._url}")
        try:
            return r.json()
        except ValueError as e:
            raise BootVersionsError(f"Spring Boot metadata at {self._url} is not valid JSON") from e

    def fetch_boot_versions(self) -> list[BootVersion]:
        """
        Return the advertised releases in document order.

        The release flagged `current` is the default; when none is, the first one is.
        """
        payload = self._fetch()
        releases = payload.get("projectReleases") if isinstance(payload, dict) else None
        if not isinstance(releases, list):
            raise BootVersionsError("Spring Boot metadata has no `projectReleases` list")

        versions: list[BootVersion] = []
        for release in releases:
            if not isinstance(release, dict) or not release.get("version"):
                raise BootVersionsError(f"Invalid project release entry: {release!r}")
            version = str(release["version"])
            versions.append(
                BootVersion(
                    id=version,
                    name=str(release.get("versionDisplayName") or version),
                    default=bool(release.get("current", False)),
                )
            )
        if versions and not any(v.default for v in versions):
            first = versions[0]
            versions[0] = BootVersion(id=first.id, name=first.name, default=True)
        return versions


def refresh_boot_versions(metadata: InitializrMetadata, client: SpringBootMetadataClient) -> bool:
    """Replace the Boot versions of `metadata` with the remote ones; False when that failed."""
    try:
        versions = client.fetch_boot_versions()
        if not versions:
            logger.warning("Spring Boot metadata listed no releases, keeping configured versions")
            return False
        metadata.update_boot_versions(v.to_option() for v in versions)
    except (BootVersionsError, MetadataError) as e:
        logger.warning("Failed to refresh Spring Boot versions, keeping configured versions: %s", e)
        return False
    logger.info("Refreshed %d Spring Boot versions", len(versions))
    return True
