"""Command line interface for the news digest scraper."""

import asyncio
import json
import logging
import sys
from typing import Optional, Tuple

import click

# Heavy modules are imported inside the commands so that ``cli`` stays
# importable (and ``--help`` fast) without the full runtime stack.

logger = logging.getLogger(__name__)


def _configured_log_level() -> str:
    """LOG_LEVEL from the environment or .env, INFO if settings are invalid."""
    from pydantic import ValidationError

    from newsbrief.models.settings import Settings

    try:
        return Settings().log_level
    except ValidationError as e:
        click.echo(f"⚠️  Invalid settings, logging at INFO: {e}", err=True)
        return "INFO"


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """News digest scraper CLI.

    Resolves aggregator links to publisher articles and extracts clean,
    length-bounded article text for summarization.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    # Set up logging before any other logging calls
    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, _configured_log_level())
    logging.basicConfig(level=log_level, force=True)
    logger.debug("Debug mode enabled")


def _fail(ctx: click.Context, message: str, error: Exception) -> None:
    """Log a command failure and exit non-zero (re-raise in debug mode)."""
    logger.error(f"❌ {message}: {error}")
    if ctx.obj.get("debug"):
        raise error
    sys.exit(1)


@cli.command()
@click.argument("url")
@click.pass_context
def resolve(ctx: click.Context, url: str) -> None:
    """Resolve an aggregator redirect URL to the publisher URL."""

    async def _resolve():
        from newsbrief.models.settings import Settings
        from newsbrief.resolvers import URLResolver, cleanup_resources

        try:
            resolver = URLResolver(settings=Settings(debug=ctx.obj.get("debug", False)))
            return await resolver.resolve_with_details(url)
        finally:
            await cleanup_resources()

    try:
        result = asyncio.run(_resolve())
    except Exception as e:
        _fail(ctx, "Resolution error", e)
        return

    click.echo(result.resolved_url)
    logger.info(f"🔍 Method: {result.method}")


@cli.command()
@click.argument("url")
@click.pass_context
def extract(ctx: click.Context, url: str) -> None:
    """Resolve, fetch and print the article text behind a URL."""

    async def _extract():
        from newsbrief.core.scraper import BatchScraper
        from newsbrief.models.settings import Settings
        from newsbrief.resolvers import cleanup_resources

        try:
            scraper = BatchScraper(Settings(debug=ctx.obj.get("debug", False)))
            return await scraper.scrape_article(url)
        finally:
            await cleanup_resources()

    try:
        content = asyncio.run(_extract())
    except Exception as e:
        _fail(ctx, "Extraction error", e)
        return

    if not content:
        click.echo("❌ No article content could be extracted", err=True)
        sys.exit(1)

    click.echo(content)


@cli.command()
@click.option(
    "--feed",
    "feeds",
    multiple=True,
    help="Feed URL (or category=url); defaults to RSS_FEEDS",
)
@click.option("--limit", type=int, default=None, help="Maximum items to scrape")
@click.option("--days", type=int, default=None, help="Only items from the last N days")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write results to this JSON file instead of stdout",
)
@click.pass_context
def scrape(
    ctx: click.Context,
    feeds: Tuple[str, ...],
    limit: Optional[int],
    days: Optional[int],
    output: Optional[str],
) -> None:
    """Collect feed items and scrape their article text."""

    async def _scrape():
        from newsbrief.clients.rss import RSSClient
        from newsbrief.core.scraper import BatchScraper
        from newsbrief.models.settings import Settings
        from newsbrief.resolvers import cleanup_resources

        settings = Settings(debug=ctx.obj.get("debug", False))
        if feeds:
            settings = settings.model_copy(update={"rss_feeds": ",".join(feeds)})

        rss_client = RSSClient.from_settings(settings)
        if not rss_client.feeds:
            logger.error("No feeds configured - pass --feed or set RSS_FEEDS")
            return None

        try:
            items = await rss_client.get_candidate_items(days=days, limit=limit)
            logger.info(f"📡 {len(items)} candidate items collected")

            if not settings.ai_fallback_enabled:
                logger.info("⚠️  OPENROUTER_API_KEY not set - AI fallback disabled")

            scraper = BatchScraper(settings)
            return await scraper.scrape_all(items)
        finally:
            await cleanup_resources()

    try:
        results = asyncio.run(_scrape())
    except Exception as e:
        _fail(ctx, "Unexpected scraping error", e)
        return

    if results is None:
        sys.exit(1)

    payload = json.dumps(
        [item.model_dump(mode="json") for item in results],
        ensure_ascii=False,
        indent=2,
    )

    if output:
        from pathlib import Path

        Path(output).write_text(payload, encoding="utf-8")
        logger.info(f"✅ Wrote {len(results)} articles to {output}")
    else:
        click.echo(payload)


@cli.command()
def health() -> None:
    """Check configuration and connectivity."""
    from newsbrief.clients.openrouter import OpenRouterClient
    from newsbrief.clients.rss import RSSClient
    from newsbrief.models.settings import Settings

    settings = Settings()
    logger.info("🔍 Checking system health...")

    rss_client = RSSClient.from_settings(settings)
    feed_status = asyncio.run(rss_client.test_feeds()) if rss_client.feeds else {}

    logger.info("🌐 Feed status:")
    for feed_url, ok in feed_status.items():
        status_icon = "✅" if ok else "❌"
        logger.info(f"   - {feed_url[:60]}: {status_icon}")

    client = OpenRouterClient.from_settings(settings)
    if client is None:
        logger.warning("⚠️  OpenRouter not configured - AI fallback disabled")
    else:
        ok = asyncio.run(client.test_connection())
        logger.info(f"   - OpenRouter: {'✅' if ok else '❌'}")

    if not feed_status:
        logger.warning("⚠️  No feeds configured")
    elif all(feed_status.values()):
        logger.info("✅ All feeds reachable")


@cli.command()
def config() -> None:
    """Display current configuration (without sensitive values)."""
    from newsbrief.models.settings import Settings

    settings = Settings()

    click.echo("\n📋 News Digest Scraper Configuration\n")
    click.echo(f"Debug Mode: {settings.debug}")
    click.echo(f"Log Level: {settings.log_level}")

    click.echo("\n🔑 API Keys:")
    click.echo(
        "  OpenRouter: "
        + ("✅ Configured" if settings.openrouter_api_key else "❌ Missing")
    )

    click.echo("\n⏱️  Timeouts:")
    click.echo(f"  Signing params: {settings.signing_params_timeout}s")
    click.echo(f"  Batch execute: {settings.batch_execute_timeout}s")
    click.echo(f"  Article fetch: {settings.article_fetch_timeout}s")
    click.echo(f"  Delay between articles: {settings.scrape_request_delay}s")

    entries = settings.feed_entries()
    click.echo(f"\n📡 RSS Feeds: {len(entries)} configured")
    for i, (category, url) in enumerate(entries, 1):
        click.echo(f"  {i}. [{category}] {url}")


if __name__ == "__main__":
    cli()
