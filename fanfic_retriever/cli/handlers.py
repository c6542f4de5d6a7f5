import dataclasses
import os
from typing import Optional

import click

from fanfic_retriever.core.config_manager import (
    MAX_FETCH_TIMEOUT, MAX_WORKERS, MIN_FETCH_TIMEOUT, MIN_WORKERS, ConfigManager, FetchSettings,
)
from fanfic_retriever.core.exceptions import RetrievalError, SiteNotSupportedError, UnsupportedOperationError
from fanfic_retriever.core.fetchers.fetcher_factory import AdapterRegistry
from fanfic_retriever.core.models import ChapterRange, RetrievalKind, RetrievalRequest
from fanfic_retriever.core.orchestrator import FanficRetrievalService
from fanfic_retriever.utils.logger import get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_UPSTREAM_ERROR = 1
EXIT_CLIENT_ERROR = 2


def build_fetch_settings(config_path: Optional[str], timeout: Optional[float], workers: Optional[int]) -> FetchSettings:
    """Config file and environment first, then command-line overrides on top."""
    settings = ConfigManager(config_path).fetch_settings()
    if timeout is not None:
        settings = dataclasses.replace(settings, timeout=max(MIN_FETCH_TIMEOUT, min(MAX_FETCH_TIMEOUT, timeout)))
    if workers is not None:
        settings = dataclasses.replace(settings, max_workers=max(MIN_WORKERS, min(MAX_WORKERS, workers)))
    return settings


def build_service(settings: FetchSettings) -> FanficRetrievalService:
    return FanficRetrievalService(AdapterRegistry.from_settings(settings))


def download_handler(
    story_url: str,
    kind: RetrievalKind,
    output_dir: str,
    start: Optional[int] = None,
    end: Optional[int] = None,
    config_path: Optional[str] = None,
    timeout: Optional[float] = None,
    workers: Optional[int] = None,
) -> int:
    """
    Runs one retrieval and writes the result into output_dir.
    Returns the process exit code.
    """
    settings = build_fetch_settings(config_path, timeout, workers)
    service = build_service(settings)

    try:
        reference = service.registry.reference_for(story_url)
        chapter_range = ChapterRange(start, end) if kind is RetrievalKind.CHAPTER_RANGE else None
        request = RetrievalRequest(kind=kind, reference=reference, chapter_range=chapter_range)
        click.echo(f"Downloading ({kind.value}) from {reference.site.value}: {reference.url}")
        result = service.retrieve(request)
    except RetrievalError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        if isinstance(e, SiteNotSupportedError) and not isinstance(e, UnsupportedOperationError):
            supported = ", ".join(site.value for site in service.registry.supported_sites())
            click.echo(f"Supported sites: {supported}", err=True)
        if e.client_error:
            logger.warning(f"Rejected request for {story_url}: {e}")
            return EXIT_CLIENT_ERROR
        logger.error(f"Retrieval failed for {story_url}: {e}")
        return EXIT_UPSTREAM_ERROR
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        return EXIT_CLIENT_ERROR

    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, result.filename)
    with open(output_path, 'wb') as f:
        f.write(result.content)

    click.echo(click.style(f"✓ Saved {len(result.content)} bytes to {output_path}", fg="green"))
    logger.info(f"Wrote {output_path} ({result.content_type})")
    return EXIT_OK
