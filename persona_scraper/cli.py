"""CLI entry point for persona-scraper."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import replace

import click

from persona_scraper.config import Config
from persona_scraper.dataset.converter import DEFAULT_MAX_LENGTH, DatasetConverter
from persona_scraper.dataset.organizer import DataOrganizer
from persona_scraper.errors import ScraperError
from persona_scraper.models import Platform, PlatformError, YouTubeResult
from persona_scraper.orchestrator import PersonaScraper, count_data_points

_PLATFORM_HELP = [
    ("youtube", "YouTube channels"),
    ("instagram", "Instagram profiles"),
    ("twitter", "Twitter/X profiles"),
]


def _load_config(output: str | None) -> Config:
    config = Config.from_env()
    if output:
        config = replace(config, data_output_dir=output)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


@click.group()
def main() -> None:
    """persona-scraper: collect a persona's public posts and build training datasets."""


@main.command()
@click.option("--platform", "-p", required=True, help="Platform to scrape (youtube/instagram/twitter)")
@click.option("--handle", "-h", required=True, help="Handle, username or profile URL")
@click.option("--output", "-o", default=None, help="Output directory (default: DATA_OUTPUT_DIR)")
@click.option("--max-items", type=int, default=None, help="Maximum number of items to scrape")
@click.option("--include-comments", is_flag=True, help="Include comments (YouTube only)")
@click.option("--include-details", is_flag=True, help="Include detailed post information (Instagram only)")
@click.option("--include-transcripts", is_flag=True, help="Include video transcripts (YouTube only)")
def scrape(
    platform: str,
    handle: str,
    output: str | None,
    max_items: int | None,
    include_comments: bool,
    include_details: bool,
    include_transcripts: bool,
) -> None:
    """Scrape a single platform."""
    config = _load_config(output)
    options: dict[str, object] = {
        "include_comments": include_comments,
        "include_post_details": include_details,
        "include_transcripts": include_transcripts,
    }
    if max_items is not None:
        options.update(max_videos=max_items, max_posts=max_items, max_tweets=max_items)

    try:
        name = Platform.parse(platform)
        click.echo(f"Scraping {name.value}: {handle}")
        result = asyncio.run(PersonaScraper(config).scrape_platform(name, handle, options))
    except ScraperError as e:
        click.echo(f"✗ Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"✗ Scraping failed: {e}", err=True)
        sys.exit(1)

    organizer = DataOrganizer.from_config(handle, config)
    organizer.initialize()
    organizer.save_result(result)
    if isinstance(result, YouTubeResult) and result.videos:
        organizer.save_transcripts(result.videos)
    organizer.save_metadata({
        "handle": handle,
        "platform": name.value,
        "scraped_at": result.scraped_at.isoformat(),
        "data_points": count_data_points(result),
    })
    summary = organizer.create_summary()

    files = summary["platforms"].get(name.value, {}).get("files") or ["none"]
    click.echo(f"✓ {name.value} — {count_data_points(result)} items")
    click.echo(f"Data saved to: {organizer.base_dir}")
    click.echo(f"Files: {', '.join(files)}")


@main.command("scrape-persona")
@click.option("--name", "-n", required=True, help="Persona name")
@click.option("--youtube", "-y", default=None, help="YouTube channel handle")
@click.option("--instagram", "-i", default=None, help="Instagram username")
@click.option("--twitter", "-t", default=None, help="Twitter username")
@click.option("--deep", is_flag=True, help="Deep scrape with maximum data collection")
@click.option("--quick", is_flag=True, help="Quick scrape with sensible defaults (default)")
@click.option("--output", "-o", default=None, help="Output directory (default: DATA_OUTPUT_DIR)")
def scrape_persona(
    name: str,
    youtube: str | None,
    instagram: str | None,
    twitter: str | None,
    deep: bool,
    quick: bool,
    output: str | None,
) -> None:
    """Scrape several platforms for one persona and export training data."""
    handles = {"youtube": youtube, "instagram": instagram, "twitter": twitter}
    if not any(handles.values()):
        click.echo("Please specify at least one platform handle (-y, -i or -t).", err=True)
        sys.exit(1)
    if deep and quick:
        click.echo("--deep and --quick are mutually exclusive; using --deep.", err=True)

    config = _load_config(output)
    scraper = PersonaScraper(config)
    mode = "deep" if deep else "quick"
    click.echo(f"Persona: {name} ({mode} scrape)\n")

    run = scraper.deep_scrape if deep else scraper.quick_scrape
    bundle = asyncio.run(run(name, handles))

    for platform, outcome in bundle.platforms.items():
        if isinstance(outcome, PlatformError):
            click.echo(f"  ✗ {platform} [{outcome.kind.value}]: {outcome.error}")
        else:
            click.echo(f"  ✓ {platform} — {count_data_points(outcome)} items")

    errors = bundle.errors()
    click.echo(
        f"\nCompleted: {len(bundle.platforms) - len(errors)} succeeded, {len(errors)} failed"
    )


@main.command()
@click.option("--name", "-n", required=True, help="Persona name used when scraping")
@click.option(
    "--format", "-f", "fmt",
    type=click.Choice(["jsonl", "alpaca", "sharegpt", "raw", "all"]),
    default="all",
    show_default=True,
    help="Output format",
)
@click.option("--system-prompt", default=None, help="Custom system prompt for the persona")
@click.option("--max-length", type=int, default=DEFAULT_MAX_LENGTH, show_default=True,
              help="Maximum text length per entry")
@click.option("--output", "-o", default=None, help="Data directory (default: DATA_OUTPUT_DIR)")
def convert(
    name: str,
    fmt: str,
    system_prompt: str | None,
    max_length: int,
    output: str | None,
) -> None:
    """Convert scraped data into fine-tuning dataset formats."""
    config = _load_config(output)
    organizer = DataOrganizer.from_config(name, config)
    converter = DatasetConverter(organizer, system_prompt=system_prompt, max_length=max_length)

    click.echo(f"Converting data for persona: {name}")
    try:
        results = converter.convert_all() if fmt == "all" else {fmt: converter.convert(fmt)}
    except OSError as e:
        click.echo(f"✗ Conversion failed: {e}", err=True)
        sys.exit(1)

    for label, result in results.items():
        click.echo(f"  ✓ {label}: {result.path} ({result.count})")


@main.command()
def platforms() -> None:
    """List supported platforms."""
    click.echo("Available platforms:")
    for name, label in _PLATFORM_HELP:
        click.echo(f"  - {name:<12} {label}")
    click.echo("\nExample usage:")
    click.echo("  persona-scraper scrape -p youtube -h @channelname")
    click.echo('  persona-scraper scrape-persona -n "John Doe" -y @channel -i username -t username')


if __name__ == "__main__":
    main()
