from __future__ import annotations

import pytest

from initializr.metadata import DEFAULT_METADATA_PATH, InitializrMetadata, load_metadata


@pytest.fixture
def metadata() -> InitializrMetadata:
    return load_metadata(DEFAULT_METADATA_PATH)
