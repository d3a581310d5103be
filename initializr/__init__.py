"""
initializr package.

Generates Spring Boot project skeletons from a metadata catalogue:
- `version`        version parsing and range matching
- `metadata`       the metadata model and its YAML loader
- `selection`      dependency picker and form state
- `request`        project request resolution
- `generator`      skeleton rendering and archives
- `boot_versions`  remote Spring Boot versions
- `cli`            command line entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
