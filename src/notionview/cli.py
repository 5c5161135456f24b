"""Command-line interface for notionview.

This module provides the CLI commands for running the HTTP service and
for querying a collection straight from the terminal.
"""

import asyncio
import json
from typing import NoReturn

import click

from notionview import __version__
from notionview.core.config import get_settings
from notionview.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version=__version__, prog_name="notionview")
def cli() -> None:
    """notionview - typed JSON views over Notion pages and collections.

    Settings are read from NOTIONVIEW_* environment variables and .env.
    """


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the notionview server."""
    import uvicorn

    settings = get_settings()

    # Apply CLI overrides
    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    # Configure logging before starting server
    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting notionview server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "notionview.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.argument("page_id")
@click.option("--view", default=None, help="Collection view name")
@click.option("--limit", type=int, default=None, help="Maximum number of rows")
@click.option("--payload", default=None, help="Comma separated result keys, e.g. rows,columns")
@click.option("--token", envvar="NOTION_TOKEN", default=None, help="Notion token_v2 cookie")
def query(
    page_id: str, view: str | None, limit: int | None, payload: str | None, token: str | None
) -> None:
    """Print the collection on PAGE_ID as JSON."""
    from notionview.application.services import CollectionQuery, CollectionQueryService
    from notionview.domain.exceptions import NotionViewError
    from notionview.domain.services.identifiers import parse_page_id
    from notionview.infrastructure.api.responses import sanitize_json
    from notionview.infrastructure.notion.client import NotionClient

    settings = get_settings()
    configure_logging(settings)

    async def run() -> dict:
        client = NotionClient.from_settings(settings)
        try:
            service = CollectionQueryService(client, asset_base_url=settings.notion_asset_base_url)
            return await service.query(
                parse_page_id(page_id),
                token,
                CollectionQuery(
                    view_name=view,
                    limit=limit or settings.default_row_limit,
                    payload=[key for key in (payload or "").split(",") if key],
                ),
            )
        finally:
            await client.aclose()

    try:
        result = asyncio.run(run())
    except NotionViewError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(sanitize_json(result), indent=2, ensure_ascii=False))


@cli.command()
def info() -> None:
    """Display notionview configuration."""
    settings = get_settings()

    click.echo(f"""
notionview v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Notion:
  API URL:      {settings.notion_api_url}
  Timeout:      {settings.notion_timeout_seconds}s
  Token Req.:   {settings.require_token}

Cache:
  Enabled:      {settings.cache_enabled}
  Fresh For:    {settings.cache_fresh_seconds}s
  Header:       {settings.cache_control}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `notionview` command is run
    or when using `python -m notionview`.
    """
    cli()


if __name__ == "__main__":
    main()
