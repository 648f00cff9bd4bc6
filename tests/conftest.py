from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from batchrepo.models.repositories.document import ProjectRepositories, QualityProfile
from batchrepo.services.repositories.loader import ProjectRepositoriesLoader
from batchrepo.workers.fetcher import FetchResult

RESOURCES = Path(__file__).parent / "resources"


def with_one_profile() -> str:
    """Payload carrying a single quality profile and nothing else."""
    return ProjectRepositories(
        quality_profiles=[
            QualityProfile(
                key="key",
                name="name",
                language="language",
                last_used=datetime.now(timezone.utc),
            )
        ]
    ).to_json()


@pytest.fixture
def one_profile_payload() -> str:
    return with_one_profile()


@pytest.fixture
def sample_response() -> str:
    return (RESOURCES / "sample_response.json").read_text(encoding="utf-8")


@pytest.fixture
def transport():
    """Transport double answering every path with a one-profile payload."""
    mock = AsyncMock()
    mock.fetch.return_value = FetchResult(with_one_profile(), True)
    return mock


@pytest.fixture
def loader(transport) -> ProjectRepositoriesLoader:
    return ProjectRepositoriesLoader(transport)
