from typing import Optional

from fanfic_retriever.utils.logger import get_logger
from fanfic_retriever.utils.slug_generator import slug_or_fallback
from .builders.text_builder import TextBuilder
from .exceptions import RetrievalError
from .fetchers.fetcher_factory import AdapterRegistry
from .models import ChapterRange, RetrievalKind, RetrievalRequest, RetrievalResult

logger = get_logger(__name__)


class FanficRetrievalService:
    """
    Entry point for the four retrieval use-cases. Every call resolves a
    fresh fetcher, so one service instance can serve concurrent callers.
    Nothing is returned unless the whole retrieval succeeded.
    """

    def __init__(self, registry: AdapterRegistry, text_builder: Optional[TextBuilder] = None):
        self.registry = registry
        self.text_builder = text_builder or TextBuilder()

    @staticmethod
    def _package(text: str, filename: str) -> RetrievalResult:
        return RetrievalResult(content=text.encode('utf-8'), filename=filename)

    def get_single_chapter(self, url: str) -> RetrievalResult:
        fetcher = self.registry.resolve(url)
        logger.info(f"Fetching single chapter from {url}")
        chapter = fetcher.fetch_single_chapter()

        text = self.text_builder.build_single_chapter(chapter)
        slug = slug_or_fallback(chapter.title, f"{fetcher.get_permanent_id()}-chapter-{chapter.index}")
        logger.info(f"Chapter {chapter.index} of {url} fetched ({len(chapter.body)} characters)")
        return self._package(text, f"{slug}.txt")

    def get_multiple_chapters(self, url: str, start: int, end: int) -> RetrievalResult:
        """
        Raises:
            InvalidRangeError: Unless 1 <= start <= end. Checked before any network request.
        """
        chapter_range = ChapterRange(start, end)
        fetcher = self.registry.resolve(url)
        logger.info(f"Fetching chapters {chapter_range.start}-{chapter_range.end} from {url}")

        chapters = fetcher.fetch_chapter_range(chapter_range.start, chapter_range.end)
        metadata = fetcher.get_story_metadata()
        text = self.text_builder.build_story(chapters, metadata)

        slug = slug_or_fallback(metadata.title, fetcher.get_permanent_id())
        logger.info(f"Fetched {len(chapter_range)} chapter(s) of '{metadata.title}'")
        return self._package(text, f"{slug}-chapters-{chapter_range.start}-{chapter_range.end}.txt")

    def get_entire_fanfic(self, url: str) -> RetrievalResult:
        fetcher = self.registry.resolve(url)
        logger.info(f"Fetching entire story from {url}")

        chapters = fetcher.fetch_entire_work()
        metadata = fetcher.get_story_metadata()
        text = self.text_builder.build_story(chapters, metadata)

        slug = slug_or_fallback(metadata.title, fetcher.get_permanent_id())
        logger.info(f"Fetched all {metadata.chapter_count} chapter(s) of '{metadata.title}'")
        return self._package(text, f"{slug}.txt")

    def get_entire_series(self, url: str) -> RetrievalResult:
        fetcher = self.registry.resolve(url)
        logger.info(f"Fetching series from {url}")

        works = fetcher.fetch_series()
        series_title = fetcher.get_series_title()
        try:
            text = self.text_builder.build_series(works, series_title)
        except RetrievalError as err:
            logger.error(f"Series retrieval from {url} failed: {err}")
            raise

        slug = slug_or_fallback(series_title, fetcher.get_permanent_id())
        return self._package(text, f"{slug}-series.txt")

    def retrieve(self, request: RetrievalRequest) -> RetrievalResult:
        """Runs the use-case described by a RetrievalRequest."""
        url = request.reference.url
        if request.kind is RetrievalKind.SINGLE_CHAPTER:
            return self.get_single_chapter(url)
        if request.kind is RetrievalKind.CHAPTER_RANGE:
            return self.get_multiple_chapters(url, request.chapter_range.start, request.chapter_range.end)
        if request.kind is RetrievalKind.ENTIRE_FANFIC:
            return self.get_entire_fanfic(url)
        if request.kind is RetrievalKind.ENTIRE_SERIES:
            return self.get_entire_series(url)
        raise ValueError(f"Unknown retrieval kind: {request.kind}")
