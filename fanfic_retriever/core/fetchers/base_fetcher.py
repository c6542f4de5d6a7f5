from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, Iterator, Optional, Tuple

from bs4 import BeautifulSoup

from fanfic_retriever.utils.logger import get_logger
from ..config_manager import DEFAULT_MAX_WORKERS
from ..models import Chapter, ChapterRange, SiteId, StoryMetadata, StoryReference
from ..parsers.html_cleaner import HTMLCleaner
from ..exceptions import FetchError, InvalidRangeError, ParseError, UnsupportedOperationError
from .http_client import HttpClient

logger = get_logger(__name__)

SeriesWork = Tuple[StoryReference, Iterator[Chapter]]


class BaseFetcher(ABC):
    """
    Extraction strategy for one source site.

    A fetcher is bound to a single StoryReference and lives for one retrieval
    call, so caching what it discovers (metadata, chapter lists) on the
    instance is safe. The HTTP client is the only object shared across calls.
    """

    site: SiteId

    def __init__(self, reference: StoryReference, http_client: Optional[HttpClient] = None,
                 max_workers: int = DEFAULT_MAX_WORKERS):
        self.reference = reference
        self.story_url = reference.url
        self.http_client = http_client or HttpClient()
        self.max_workers = max(1, max_workers)
        self.html_cleaner = HTMLCleaner()

    @classmethod
    @abstractmethod
    def parse_story_id(cls, story_url: str) -> Optional[str]:
        """
        Extracts the site's numeric story identifier from a URL, or None if
        the URL does not carry one.
        """
        pass

    @abstractmethod
    def get_permanent_id(self) -> str:
        """
        Returns a site-prefixed identifier that survives title changes.
        Example: 'ffnet-67890' for a FanFiction.Net story.
        """
        pass

    @abstractmethod
    def get_story_metadata(self) -> StoryMetadata:
        """
        Fetches title, author and chapter count. Implementations cache the
        result for the lifetime of the fetcher.
        """
        pass

    @abstractmethod
    def fetch_single_chapter(self) -> Chapter:
        """
        Fetches the chapter the story URL points at (chapter 1 when the URL
        does not name one).
        """
        pass

    @abstractmethod
    def _fetch_chapter(self, index: int) -> Chapter:
        """Fetches and parses the chapter at the given 1-based index."""
        pass

    def get_series_title(self) -> Optional[str]:
        """Title of the series last discovered by fetch_series, if the site has one."""
        return None

    def fetch_series(self) -> Iterator[SeriesWork]:
        raise UnsupportedOperationError(f"Series downloads are not available for {self.site.value} stories: {self.story_url}")

    def fetch_chapter_range(self, start: int, end: int) -> Iterator[Chapter]:
        """
        Returns chapters start..end (inclusive) in ascending order.

        The range is validated and the story's chapter count discovered
        before this method returns; the pages themselves are fetched lazily
        as the returned iterator is consumed.

        Raises:
            InvalidRangeError: If the range is malformed or runs past the last chapter.
        """
        chapter_range = ChapterRange(start, end)
        metadata = self.get_story_metadata()
        if chapter_range.end > metadata.chapter_count:
            raise InvalidRangeError(
                f"Requested chapters {chapter_range.start}-{chapter_range.end} but the story only has "
                f"{metadata.chapter_count} chapter(s): {self.story_url}"
            )
        return self._iter_chapters(chapter_range)

    def fetch_entire_work(self) -> Iterator[Chapter]:
        metadata = self.get_story_metadata()
        return self._iter_chapters(ChapterRange(1, metadata.chapter_count))

    def _fetch_html_content(self, url: str, params: Optional[Dict[str, str]] = None) -> BeautifulSoup:
        return BeautifulSoup(self.http_client.get_text(url, params=params), 'html.parser')

    def _fetch_chapter_tagged(self, index: int) -> Chapter:
        try:
            return self._fetch_chapter(index)
        except (FetchError, ParseError) as err:
            raise err.with_chapter_index(index)

    def _iter_chapters(self, indices: Iterable[int]) -> Iterator[Chapter]:
        """
        Fetches the given chapters on a bounded thread pool and yields them
        in ascending index order, whatever order the fetches complete in.

        The first failure aborts the whole sequence. Closing the iterator
        early cancels every fetch that has not started yet.
        """
        wanted = sorted(indices)
        if not wanted:
            return
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(wanted)),
                                      thread_name_prefix=f"{self.site.value}-fetch")
        futures: Dict[Future, int] = {}
        try:
            for index in wanted:
                futures[executor.submit(self._fetch_chapter_tagged, index)] = index

            buffered: Dict[int, Chapter] = {}
            position = 0
            for future in as_completed(futures):
                index = futures[future]
                try:
                    buffered[index] = future.result()
                except (FetchError, ParseError) as err:
                    logger.error(f"Aborting retrieval of {self.story_url}: chapter {index} failed: {err}")
                    raise
                while position < len(wanted) and wanted[position] in buffered:
                    yield buffered.pop(wanted[position])
                    position += 1
        finally:
            for future in futures:
                future.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
