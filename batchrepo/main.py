from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from batchrepo.core.config import settings
from batchrepo.core.errors import LoaderError
from batchrepo.models.repositories.context import (
    ANALYSIS_MODE_PROP,
    PROFILE_PROP,
    LoadContext,
    LoadResult,
)
from batchrepo.services.repositories.loader import ProjectRepositoriesLoader
from batchrepo.workers.fetcher import HttpMetadataTransport, LoadStrategy

LOG_HANDLER_NAME = "batchrepo-console"


def configure_logging(level: str | None = None) -> None:
    """Configure the ``batchrepo`` logger namespace.

    The namespace gets its own handler with ``propagate = False`` so the
    output does not depend on whatever the embedding process did to the
    root logger.  Calling it again only updates the level; handlers added
    by others (e.g. log capture) are left alone.
    """
    level_name = (level or settings.log_level).upper()
    app_log = logging.getLogger("batchrepo")
    app_log.setLevel(getattr(logging, level_name, logging.INFO))
    if not any(h.get_name() == LOG_HANDLER_NAME for h in app_log.handlers):
        handler = logging.StreamHandler()
        handler.set_name(LOG_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        app_log.addHandler(handler)
    app_log.propagate = False


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="batchrepo",
        description="Load the quality profiles and active rules of a project.",
    )
    parser.add_argument("project_key", help="Key of the project to analyse.")
    parser.add_argument("--profile", help="Quality profile name overriding the server default.")
    parser.add_argument(
        "--mode",
        default="publish",
        help="Analysis mode: publish (default), issues or preview.",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in LoadStrategy],
        default=None,
        help="How the response cache is consulted (defaults to settings).",
    )
    parser.add_argument("--server-url", default=None, help="Repository server base URL.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


async def _load(args: argparse.Namespace) -> LoadResult:
    properties = {ANALYSIS_MODE_PROP: args.mode}
    if args.profile:
        properties[PROFILE_PROP] = args.profile
    context = LoadContext.from_properties(properties, project_key=args.project_key)
    async with HttpMetadataTransport(args.server_url, strategy=args.strategy) as transport:
        return await ProjectRepositoriesLoader(transport).load(context)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)
    try:
        repositories, from_cache = asyncio.run(_load(args))
    except LoaderError as exc:
        print(f"error [{exc.kind.value}]: {exc}", file=sys.stderr)
        return 1

    languages = ", ".join(sorted(repositories.qprofiles_by_language())) or "-"
    print(
        f"{args.project_key}: {len(repositories.quality_profiles)} quality profile(s) "
        f"[{languages}], {len(repositories.active_rules)} active rule(s), "
        f"{len(repositories.file_data)} file(s){' (cached)' if from_cache else ''}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
