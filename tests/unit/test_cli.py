"""Unit tests for the command-line interface."""

from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from notionview.cli import cli
from notionview.domain.exceptions import UpstreamFetchError


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "notionview" in result.output


def test_info_shows_cache_policy():
    result = CliRunner().invoke(cli, ["info"])

    assert result.exit_code == 0
    assert "stale-while-revalidate" in result.output


def test_serve_runs_uvicorn():
    with patch("uvicorn.run") as run:
        result = CliRunner().invoke(cli, ["serve", "--port", "9999"])

    assert result.exit_code == 0
    args, kwargs = run.call_args
    assert args == ("notionview.infrastructure.api.app:app",)
    assert kwargs["port"] == 9999


def test_query_prints_json():
    result_payload = {"rows": [{"id": "r1", "Score": float("nan")}]}
    with patch(
        "notionview.application.services.CollectionQueryService.query",
        new=AsyncMock(return_value=result_payload),
    ):
        result = CliRunner().invoke(cli, ["query", "0123456789abcdef0123456789abcdef"])

    assert result.exit_code == 0
    assert '"Score": null' in result.output


def test_query_reports_upstream_errors():
    with patch(
        "notionview.application.services.CollectionQueryService.query",
        new=AsyncMock(side_effect=UpstreamFetchError("loadPageChunk", "down")),
    ):
        result = CliRunner().invoke(cli, ["query", "0123456789abcdef0123456789abcdef"])

    assert result.exit_code == 1
    assert "loadPageChunk: down" in result.output
