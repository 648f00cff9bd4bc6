from __future__ import annotations

import logging

from pydantic import ValidationError

from batchrepo.core.errors import NoQualityProfileError, ParseError
from batchrepo.models.repositories.context import LoadContext, LoadResult
from batchrepo.models.repositories.document import ProjectRepositories
from batchrepo.services.repositories.query import build_path
from batchrepo.workers.fetcher import MetadataTransport

logger = logging.getLogger(__name__)


class ProjectRepositoriesLoader:
    """Fetches, parses and validates the project repositories of a run.

    Holds no state besides its transport, so one instance can serve any
    number of concurrent ``load`` calls.
    """

    def __init__(self, transport: MetadataTransport) -> None:
        self._transport = transport

    async def load(self, context: LoadContext) -> LoadResult:
        """Load the repositories described by *context*.

        Raises:
            ConfigurationError: the project key is empty; raised before any
                request is made.
            TransportError: propagated unchanged from the transport.
            ParseError: the response body is not a valid payload.
            NoQualityProfileError: the payload contains no quality profile.
        """
        path = build_path(context.project_key, context.profile_override, context.preview)
        logger.debug("Loading project repositories from %s", path)

        result = await self._transport.fetch(path)
        repositories = self._parse(result.text, path)
        self._validate(repositories)

        logger.info(
            "Loaded %d quality profile(s) and %d active rule(s) for %s%s",
            len(repositories.quality_profiles),
            len(repositories.active_rules),
            context.project_key,
            " (from cache)" if result.from_cache else "",
        )
        return LoadResult(repositories, result.from_cache)

    @staticmethod
    def _parse(text: str, path: str) -> ProjectRepositories:
        try:
            return ProjectRepositories.from_json(text)
        except ValidationError as exc:
            raise ParseError(
                f"Unable to parse response of {path}: {exc.error_count()} error(s), "
                f"first: {exc.errors()[0]['msg']}"
            ) from exc

    @staticmethod
    def _validate(repositories: ProjectRepositories) -> None:
        if not repositories.quality_profiles:
            raise NoQualityProfileError()
