import io
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import InvalidRangeError

DEFAULT_STORY_TITLE = "Fanfic Story"
DEFAULT_AUTHOR = "Unknown"
PLAIN_TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


class SiteId(Enum):
    FANFICTION_NET = "ffnet"
    ARCHIVE_OF_OUR_OWN = "ao3"


class RetrievalKind(Enum):
    SINGLE_CHAPTER = "single"
    CHAPTER_RANGE = "range"
    ENTIRE_FANFIC = "entire"
    ENTIRE_SERIES = "series"


@dataclass(frozen=True)
class StoryReference:
    url: str
    site: SiteId
    story_id: Optional[str] = None # Numeric story/work/series id parsed from the URL, when present
    title: Optional[str] = None # Known up front only for works discovered on a series page


@dataclass(frozen=True)
class Chapter:
    index: int # 1-based position inside the story
    body: str
    title: Optional[str] = None


@dataclass
class StoryMetadata:
    title: str = DEFAULT_STORY_TITLE
    author: str = DEFAULT_AUTHOR
    chapter_count: int = 1


@dataclass(frozen=True)
class ChapterRange:
    start: int
    end: int

    def __post_init__(self):
        if not isinstance(self.start, int) or not isinstance(self.end, int):
            raise InvalidRangeError(f"Chapter range bounds must be integers, got start={self.start!r}, end={self.end!r}.")
        if self.start < 1 or self.end < 1:
            raise InvalidRangeError(f"Chapter numbers start at 1, got start={self.start}, end={self.end}.")
        if self.start > self.end:
            raise InvalidRangeError(f"Start chapter {self.start} is after end chapter {self.end}.")

    def __iter__(self):
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class RetrievalRequest:
    kind: RetrievalKind
    reference: StoryReference
    chapter_range: Optional[ChapterRange] = None

    def __post_init__(self):
        if self.kind is RetrievalKind.CHAPTER_RANGE and self.chapter_range is None:
            raise InvalidRangeError("A chapter range request needs a start and an end chapter.")


@dataclass(frozen=True)
class RetrievalResult:
    content: bytes
    filename: str
    content_type: str = PLAIN_TEXT_CONTENT_TYPE

    def stream(self) -> io.BytesIO:
        """Returns a fresh binary stream over the packaged content."""
        return io.BytesIO(self.content)
