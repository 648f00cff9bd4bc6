from __future__ import annotations

import logging
from unittest.mock import AsyncMock, patch

import pytest

from batchrepo.core.errors import NoQualityProfileError, TransportError
from batchrepo.main import LOG_HANDLER_NAME, _build_parser, configure_logging, main
from batchrepo.models.repositories.context import LoadResult
from batchrepo.models.repositories.document import ProjectRepositories


@pytest.fixture(autouse=True)
def restore_batchrepo_logger():
    """Leave the ``batchrepo`` logger as it was; ``main()`` reconfigures it."""
    log = logging.getLogger("batchrepo")
    saved = (list(log.handlers), log.level, log.propagate)
    yield
    log.handlers[:] = saved[0]
    log.setLevel(saved[1])
    log.propagate = saved[2]


def test_parser_defaults():
    args = _build_parser().parse_args(["foo"])
    assert args.project_key == "foo"
    assert args.profile is None
    assert args.mode == "publish"
    assert args.strategy is None
    assert args.verbose is False


def test_parser_accepts_options():
    args = _build_parser().parse_args(
        ["foo", "--profile", "my-profile#2", "--mode", "issues", "--strategy", "cache_first", "-v"]
    )
    assert args.profile == "my-profile#2"
    assert args.strategy == "cache_first"
    assert args.verbose is True


def test_main_prints_summary(capsys, sample_response):
    result = LoadResult(ProjectRepositories.from_json(sample_response), True)
    with patch(
        "batchrepo.main.ProjectRepositoriesLoader.load",
        new_callable=AsyncMock,
        return_value=result,
    ) as mock_load:
        code = main(["my:project", "--profile", "Sonar way", "--mode", "issues"])

    assert code == 0
    context = mock_load.await_args.args[0]
    assert context.profile_override == "Sonar way"
    assert context.preview is True
    out = capsys.readouterr().out
    assert "2 quality profile(s) [java, xoo]" in out
    assert "221 active rule(s)" in out
    assert "(cached)" in out


def test_main_reports_validation_error(capsys):
    with patch(
        "batchrepo.main.ProjectRepositoriesLoader.load",
        new_callable=AsyncMock,
        side_effect=NoQualityProfileError(),
    ):
        code = main(["foo"])

    assert code == 1
    err = capsys.readouterr().err
    assert err.startswith("error [validation]: No quality profiles has been found")


def test_main_reports_transport_error(capsys):
    with patch(
        "batchrepo.main.ProjectRepositoriesLoader.load",
        new_callable=AsyncMock,
        side_effect=TransportError("Server returned HTTP 503", status_code=503),
    ):
        code = main(["foo"])

    assert code == 1
    assert "error [transport]: Server returned HTTP 503" in capsys.readouterr().err


def test_main_rejects_unknown_mode(capsys):
    assert main(["foo", "--mode", "nightly"]) == 1
    assert "error [configuration]" in capsys.readouterr().err


def test_configure_logging_is_idempotent():
    configure_logging("DEBUG")
    configure_logging("WARNING")

    log = logging.getLogger("batchrepo")
    own = [h for h in log.handlers if h.get_name() == LOG_HANDLER_NAME]
    assert len(own) == 1
    assert type(own[0]) is logging.StreamHandler
    assert log.level == logging.WARNING
    assert log.propagate is False


def test_configure_logging_keeps_foreign_handlers():
    log = logging.getLogger("batchrepo")
    log.handlers[:] = []
    foreign = logging.NullHandler()
    log.addHandler(foreign)

    configure_logging()

    assert foreign in log.handlers
    assert [h.get_name() for h in log.handlers].count(LOG_HANDLER_NAME) == 1
