import re
from typing import Iterator, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from fanfic_retriever.utils.logger import get_logger
from ..models import DEFAULT_AUTHOR, DEFAULT_STORY_TITLE, Chapter, SiteId, StoryMetadata, StoryReference
from .base_fetcher import BaseFetcher, SeriesWork
from ..exceptions import ParseError, UnsupportedOperationError

logger = get_logger(__name__)

BASE_URL = "https://archiveofourown.org"
# Skips the adult-content interstitial that AO3 shows before rated works
ADULT_CONTENT_PARAMS = {'view_adult': 'true'}

SELECTORS = {
    'chapters_container': 'div#chapters',
    'chapter_body': 'div.userstuff[role="article"]',
    'chapter_body_fallback': 'div.userstuff',
    'chapter_heading': 'div.chapter h3.title',
    'chapter_div': 'div.chapter[id^="chapter-"]',
    'page_work_link': 'div.chapter h3.title a[href*="/works/"]',
    'entire_work_link': 'li.chapter.entire a[href*="/works/"]',
    'author': 'a[rel="author"]',
    'navigate_index': 'ol.chapter.index li a',
    'navigate_work_link': 'h2.heading a[href*="/works/"]',
    'work_series_link': 'dd.series a[href*="/series/"]',
    'series_title': 'h2.heading',
    'series_work_link': 'ul.series li.work h4.heading a[href*="/works/"]',
    'next_page': 'ol.pagination li.next a[rel="next"]',
}

WORK_ID_PATTERN = re.compile(r'/works/(\d+)')
CHAPTER_ID_PATTERN = re.compile(r'/chapters/(\d+)')
SERIES_ID_PATTERN = re.compile(r'/series/(\d+)')
# Navigation entries read "3. The Title"; chapter headings read "Chapter 3: The Title"
NAVIGATE_PREFIX_PATTERN = re.compile(r'^\s*\d+\.\s*')
HEADING_PREFIX_PATTERN = re.compile(r'^\s*Chapter\s+\d+\s*:?\s*', re.IGNORECASE)


class ArchiveOfOurOwnFetcher(BaseFetcher):
    """
    Archive of Our Own identifies chapters by opaque IDs, so the chapter
    order has to be read from the work's navigation page:
    https://archiveofourown.org/works/<work_id>/chapters/<chapter_id>
    """

    site = SiteId.ARCHIVE_OF_OUR_OWN

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._metadata: Optional[StoryMetadata] = None
        self._chapter_index: List[Tuple[str, Optional[str]]] = []
        self._series_title: Optional[str] = None
        # Work id read from a fetched page, for chapter permalinks (/chapters/<id>) that omit it
        self._page_work_id: Optional[str] = None

    @classmethod
    def parse_story_id(cls, story_url: str) -> Optional[str]:
        path = urlparse(story_url).path
        match = WORK_ID_PATTERN.search(path) or SERIES_ID_PATTERN.search(path)
        return match.group(1) if match else None

    def is_series_url(self) -> bool:
        return SERIES_ID_PATTERN.search(urlparse(self.story_url).path) is not None

    def _work_id(self) -> str:
        match = WORK_ID_PATTERN.search(urlparse(self.story_url).path)
        if match:
            return match.group(1)
        if self._page_work_id:
            return self._page_work_id
        raise ParseError("URL does not point to an AO3 work (expected /works/<id>)", url=self.story_url)

    def get_permanent_id(self) -> str:
        if self.is_series_url():
            return f"{self.site.value}-series-{self.reference.story_id}"
        path = urlparse(self.story_url).path
        chapter_match = CHAPTER_ID_PATTERN.search(path)
        if chapter_match and not WORK_ID_PATTERN.search(path) and not self._page_work_id:
            return f"{self.site.value}-chapter-{chapter_match.group(1)}"
        return f"{self.site.value}-{self._work_id()}"

    def work_url(self) -> str:
        return f"{BASE_URL}/works/{self._work_id()}"

    def _fetch_page(self, url: str) -> BeautifulSoup:
        return self._fetch_html_content(url, params=ADULT_CONTENT_PARAMS)

    def get_story_metadata(self) -> StoryMetadata:
        """
        Reads title, author and the ordered chapter list from the work's
        navigation page, which lists every chapter on a single page.
        """
        if self._metadata is not None:
            return self._metadata

        navigate_url = f"{self.work_url()}/navigate"
        soup = self._fetch_page(navigate_url)

        metadata = StoryMetadata()
        title_link = soup.select_one(SELECTORS['navigate_work_link'])
        if title_link and title_link.get_text(strip=True):
            metadata.title = title_link.get_text(strip=True)
        else:
            logger.warning(f"Work title not found on {navigate_url}; using '{DEFAULT_STORY_TITLE}'.")

        authors = [a.get_text(strip=True) for a in soup.select(SELECTORS['author']) if a.get_text(strip=True)]
        if authors:
            metadata.author = ", ".join(authors)
        else:
            logger.warning(f"Work author not found on {navigate_url}; using '{DEFAULT_AUTHOR}'.")

        chapter_index = []
        for link in soup.select(SELECTORS['navigate_index']):
            href = link.get('href')
            if not isinstance(href, str):
                continue
            title = NAVIGATE_PREFIX_PATTERN.sub('', link.get_text(strip=True)).strip()
            chapter_index.append((urljoin(BASE_URL, href), title or None))

        if not chapter_index:
            if title_link is None:
                raise ParseError("Chapter index not found; the work may be restricted or deleted", url=navigate_url)
            # One-shots can be read from the work page itself
            chapter_index.append((self.work_url(), None))

        metadata.chapter_count = len(chapter_index)
        self._chapter_index = chapter_index
        self._metadata = metadata
        return metadata

    def fetch_single_chapter(self) -> Chapter:
        if CHAPTER_ID_PATTERN.search(urlparse(self.story_url).path):
            url = urljoin(BASE_URL, urlparse(self.story_url).path)
        else:
            url = self.work_url()
        soup = self._fetch_page(url)
        index = self._parse_chapter_number(soup)
        if self._page_work_id is None:
            self._page_work_id = self._parse_work_id(soup)
        try:
            return self._parse_chapter(soup, url, index)
        except ParseError as err:
            raise err.with_chapter_index(index)

    def _fetch_chapter(self, index: int) -> Chapter:
        if not self._chapter_index:
            self.get_story_metadata()
        url, listed_title = self._chapter_index[index - 1]
        soup = self._fetch_page(url)
        chapter = self._parse_chapter(soup, url, index)
        if chapter.title is None and listed_title:
            return Chapter(index=index, title=listed_title, body=chapter.body)
        return chapter

    def _parse_chapter(self, soup: BeautifulSoup, url: str, index: int) -> Chapter:
        container = soup.select_one(SELECTORS['chapters_container'])
        if not isinstance(container, Tag):
            raise ParseError("Work text (div#chapters) not found; the work may be restricted or the layout changed", url=url)

        body_div = container.select_one(SELECTORS['chapter_body']) or container.select_one(SELECTORS['chapter_body_fallback'])
        if not isinstance(body_div, Tag):
            raise ParseError("Chapter text (div.userstuff) not found", url=url)

        body = self.html_cleaner.html_to_text(body_div, source_site=self.site.value)
        if not body:
            raise ParseError("Chapter text is empty", url=url)

        title = None
        heading = container.select_one(SELECTORS['chapter_heading'])
        if isinstance(heading, Tag):
            title = HEADING_PREFIX_PATTERN.sub('', heading.get_text(" ", strip=True)).strip() or None

        return Chapter(index=index, title=title, body=body)

    @staticmethod
    def _parse_work_id(soup: BeautifulSoup) -> Optional[str]:
        for selector in (SELECTORS['page_work_link'], SELECTORS['entire_work_link']):
            link = soup.select_one(selector)
            href = link.get('href') if isinstance(link, Tag) else None
            match = WORK_ID_PATTERN.search(href) if isinstance(href, str) else None
            if match:
                return match.group(1)
        return None

    @staticmethod
    def _parse_chapter_number(soup: BeautifulSoup) -> int:
        chapter_div = soup.select_one(SELECTORS['chapter_div'])
        if isinstance(chapter_div, Tag):
            match = re.search(r'chapter-(\d+)', str(chapter_div.get('id', '')))
            if match:
                return int(match.group(1))
        return 1

    def get_series_title(self) -> Optional[str]:
        return self._series_title

    def _series_url(self) -> str:
        path = urlparse(self.story_url).path
        series_match = SERIES_ID_PATTERN.search(path)
        if series_match:
            return f"{BASE_URL}/series/{series_match.group(1)}"

        work_page_url = self.work_url()
        soup = self._fetch_page(work_page_url)
        series_link = soup.select_one(SELECTORS['work_series_link'])
        if not isinstance(series_link, Tag) or not isinstance(series_link.get('href'), str):
            raise UnsupportedOperationError(f"This work is not part of a series: {self.story_url}")
        return urljoin(BASE_URL, series_link['href'])

    def discover_series_works(self) -> List[StoryReference]:
        """
        Lists the works of the series in reading order, following the
        series page's pagination.
        """
        series_url = self._series_url()
        page_url: Optional[str] = series_url
        visited = set()
        works: List[StoryReference] = []
        seen_work_ids = set()

        while page_url and page_url not in visited:
            visited.add(page_url)
            soup = self._fetch_page(page_url)

            if self._series_title is None:
                title_tag = soup.select_one(SELECTORS['series_title'])
                if title_tag and title_tag.get_text(strip=True):
                    self._series_title = title_tag.get_text(strip=True)

            for link in soup.select(SELECTORS['series_work_link']):
                href = link.get('href')
                if not isinstance(href, str):
                    continue
                work_id = self.parse_story_id(href)
                if not work_id or work_id in seen_work_ids:
                    continue
                seen_work_ids.add(work_id)
                works.append(StoryReference(
                    url=f"{BASE_URL}/works/{work_id}",
                    site=self.site,
                    story_id=work_id,
                    title=link.get_text(strip=True) or None,
                ))

            next_link = soup.select_one(SELECTORS['next_page'])
            next_href = next_link.get('href') if isinstance(next_link, Tag) else None
            page_url = urljoin(page_url, next_href) if isinstance(next_href, str) else None

        if not works:
            raise ParseError("No works found in series", url=series_url)
        logger.info(f"Found {len(works)} work(s) in series '{self._series_title or self.story_url}'")
        return works

    def fetch_series(self) -> Iterator[SeriesWork]:
        works = self.discover_series_works()
        return self._iter_series(works)

    def _iter_series(self, works: List[StoryReference]) -> Iterator[SeriesWork]:
        for work_reference in works:
            work_fetcher = ArchiveOfOurOwnFetcher(work_reference, http_client=self.http_client, max_workers=self.max_workers)
            yield work_reference, work_fetcher.fetch_entire_work()
