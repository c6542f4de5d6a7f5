import re
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from fanfic_retriever.utils.logger import get_logger
from ..models import DEFAULT_AUTHOR, DEFAULT_STORY_TITLE, Chapter, SiteId, StoryMetadata
from .base_fetcher import BaseFetcher
from ..exceptions import FetchError, ParseError

logger = get_logger(__name__)

BASE_URL = "https://www.fanfiction.net"

SELECTORS = {
    'content': '#storytext',
    'chapter_select': 'select#chap_select',
    'title': '#profile_top b.xcontrast_txt',
    'author': '#profile_top a.xcontrast_txt',
    'warning': '.gui_warning',
}

STORY_ID_PATTERN = re.compile(r'/s/(\d+)')
CHAPTER_NUMBER_PATTERN = re.compile(r'/s/\d+/(\d+)')
# Chapter dropdown options read "3. The Title"
OPTION_PREFIX_PATTERN = re.compile(r'^\s*\d+\.\s*')


class FanFictionNetFetcher(BaseFetcher):
    """
    FanFiction.Net stories use numeric chapter navigation:
    https://www.fanfiction.net/s/<story_id>/<chapter>/<slug>
    """

    site = SiteId.FANFICTION_NET

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._metadata: Optional[StoryMetadata] = None
        # Chapter 1 doubles as the metadata page; kept so it is only fetched once
        self._first_page: Optional[BeautifulSoup] = None

    @classmethod
    def parse_story_id(cls, story_url: str) -> Optional[str]:
        match = STORY_ID_PATTERN.search(urlparse(story_url).path)
        return match.group(1) if match else None

    def _require_story_id(self) -> str:
        story_id = self.reference.story_id or self.parse_story_id(self.story_url)
        if not story_id:
            raise ParseError("URL does not point to a FanFiction.Net story (expected /s/<id>/...)", url=self.story_url)
        return story_id

    def get_permanent_id(self) -> str:
        return f"{self.site.value}-{self._require_story_id()}"

    def current_chapter_number(self) -> int:
        """Chapter number named in the story URL, defaulting to 1."""
        match = CHAPTER_NUMBER_PATTERN.search(urlparse(self.story_url).path)
        if match and int(match.group(1)) >= 1:
            return int(match.group(1))
        return 1

    def build_chapter_url(self, chapter_number: int) -> str:
        return f"{BASE_URL}/s/{self._require_story_id()}/{chapter_number}/"

    def get_story_metadata(self) -> StoryMetadata:
        if self._metadata is not None:
            return self._metadata

        url = self.build_chapter_url(1)
        try:
            soup = self._fetch_story_page(url)
        except (FetchError, ParseError) as err:
            raise err.with_chapter_index(1)
        self._first_page = soup

        metadata = StoryMetadata()
        title_tag = soup.select_one(SELECTORS['title'])
        if title_tag and title_tag.get_text(strip=True):
            metadata.title = title_tag.get_text(strip=True)
        else:
            logger.warning(f"Story title not found for {url}; using '{DEFAULT_STORY_TITLE}'.")

        author_tag = soup.select_one(SELECTORS['author'])
        if author_tag and author_tag.get_text(strip=True):
            metadata.author = author_tag.get_text(strip=True)
        else:
            logger.warning(f"Story author not found for {url}; using '{DEFAULT_AUTHOR}'.")

        # No chapter dropdown means a one-shot
        chapter_select = soup.select_one(SELECTORS['chapter_select'])
        if isinstance(chapter_select, Tag):
            metadata.chapter_count = max(1, len(chapter_select.find_all('option')))

        self._metadata = metadata
        return metadata

    def fetch_single_chapter(self) -> Chapter:
        return self._fetch_chapter_tagged(self.current_chapter_number())

    def _fetch_chapter(self, index: int) -> Chapter:
        url = self.build_chapter_url(index)
        if index == 1 and self._first_page is not None:
            soup = self._first_page
        else:
            soup = self._fetch_story_page(url)

        content_div = soup.select_one(SELECTORS['content'])
        body = self.html_cleaner.html_to_text(content_div, source_site=self.site.value)
        if not body:
            raise ParseError("Chapter text is empty", url=url, chapter_index=index)

        return Chapter(index=index, title=self._parse_chapter_title(soup, index), body=body)

    def _fetch_story_page(self, url: str) -> BeautifulSoup:
        soup = self._fetch_html_content(url)
        self._check_story_page(soup, url)
        return soup

    def _check_story_page(self, soup: BeautifulSoup, url: str) -> None:
        if soup.select_one(SELECTORS['content']) is not None:
            return
        # FanFiction.Net answers missing stories and chapters with a 200 and a warning box
        warning = soup.select_one(SELECTORS['warning'])
        if warning and warning.get_text(strip=True):
            raise ParseError(f"FanFiction.Net reported: {warning.get_text(strip=True)}", url=url)
        raise ParseError(f"Story text ({SELECTORS['content']}) not found; the page layout may have changed", url=url)

    @staticmethod
    def _parse_chapter_title(soup: BeautifulSoup, index: int) -> Optional[str]:
        chapter_select = soup.select_one(SELECTORS['chapter_select'])
        if not isinstance(chapter_select, Tag):
            return None
        option = chapter_select.find('option', selected=True) or chapter_select.find('option', value=str(index))
        if not isinstance(option, Tag):
            return None
        # Options are often left unclosed, so only the option's own text is used
        own_text = option.find(string=True, recursive=False) or ''
        title = OPTION_PREFIX_PATTERN.sub('', str(own_text)).strip()
        return title or None
