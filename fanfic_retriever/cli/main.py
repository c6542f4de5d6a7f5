from typing import Optional

import click

from fanfic_retriever.cli.handlers import download_handler
from fanfic_retriever.core.models import RetrievalKind

output_dir_option = click.option(
    '--output-dir', default='.', show_default=True, type=click.Path(file_okay=False),
    help='Directory the downloaded .txt file is written to.'
)


@click.group()
@click.option('--config', 'config_path', default=None, type=click.Path(exists=True, dir_okay=False), help='Path to an INI file with a [Fetching] section.')
@click.option('--timeout', default=None, type=float, help='Per-page fetch timeout in seconds. Overrides config.')
@click.option('--workers', default=None, type=int, help='Number of pages fetched concurrently. Overrides config.')
@click.pass_context
def fanfic(ctx: click.Context, config_path: Optional[str], timeout: Optional[float], workers: Optional[int]):
    """Download fan-fiction from FanFiction.Net and Archive of Our Own as plain text."""
    ctx.ensure_object(dict)
    ctx.obj.update(config_path=config_path, timeout=timeout, workers=workers)


def _run(ctx: click.Context, **kwargs):
    exit_code = download_handler(**kwargs, **ctx.obj)
    if exit_code:
        ctx.exit(exit_code)


@fanfic.command()
@click.argument('story_url')
@output_dir_option
@click.pass_context
def chapter(ctx: click.Context, story_url: str, output_dir: str):
    """Downloads the chapter STORY_URL points at."""
    _run(ctx, story_url=story_url, kind=RetrievalKind.SINGLE_CHAPTER, output_dir=output_dir)


@fanfic.command()
@click.argument('story_url')
@click.argument('start', type=int)
@click.argument('end', type=int)
@output_dir_option
@click.pass_context
def chapters(ctx: click.Context, story_url: str, start: int, end: int, output_dir: str):
    """Downloads chapters START to END (inclusive) of a story."""
    _run(ctx, story_url=story_url, kind=RetrievalKind.CHAPTER_RANGE, output_dir=output_dir, start=start, end=end)


@fanfic.command()
@click.argument('story_url')
@output_dir_option
@click.pass_context
def story(ctx: click.Context, story_url: str, output_dir: str):
    """Downloads every chapter of a story."""
    _run(ctx, story_url=story_url, kind=RetrievalKind.ENTIRE_FANFIC, output_dir=output_dir)


@fanfic.command()
@click.argument('story_url')
@output_dir_option
@click.pass_context
def series(ctx: click.Context, story_url: str, output_dir: str):
    """
    Downloads every work of a series.

    STORY_URL may be the series page or any work that belongs to the series.
    """
    _run(ctx, story_url=story_url, kind=RetrievalKind.ENTIRE_SERIES, output_dir=output_dir)


if __name__ == '__main__':
    fanfic()
