from typing import Iterable, List, Optional, Tuple

from fanfic_retriever.utils.logger import get_logger
from ..models import Chapter, StoryMetadata, StoryReference

logger = get_logger(__name__)

WORK_MARKER_FILL = "====="


class TextBuilder:
    """
    Lays fetched chapters out as one plain-text document. Output depends
    only on its input, so identical chapters always produce identical text.
    """

    def __init__(self, newline: str = "\n"):
        self.newline = newline

    @staticmethod
    def chapter_header(chapter: Chapter) -> str:
        header = f"Chapter {chapter.index}"
        if chapter.title and chapter.title.strip().lower() != header.lower():
            header = f"{header}: {chapter.title.strip()}"
        return header

    @staticmethod
    def story_header(metadata: StoryMetadata) -> str:
        return f"{metadata.title}\nby {metadata.author}"

    @staticmethod
    def work_marker(position: int, reference: StoryReference) -> str:
        label = reference.title or reference.url
        return f"{WORK_MARKER_FILL} Work {position}: {label} {WORK_MARKER_FILL}"

    def _chapter_sections(self, chapters: Iterable[Chapter]) -> List[str]:
        sections = []
        for chapter in chapters:
            sections.append(self.chapter_header(chapter))
            sections.append(chapter.body)
        return sections

    def _join(self, sections: List[str]) -> str:
        text = "\n\n".join(section.strip("\n") for section in sections if section) + "\n"
        if self.newline != "\n":
            text = text.replace("\n", self.newline)
        return text

    def build_single_chapter(self, chapter: Chapter) -> str:
        """Just the chapter body, without any header."""
        return self._join([chapter.body])

    def build_story(self, chapters: Iterable[Chapter], metadata: Optional[StoryMetadata] = None) -> str:
        """
        Story header (when metadata is given) followed by every chapter,
        each introduced by its 'Chapter N' header line.
        """
        sections = [self.story_header(metadata)] if metadata else []
        sections.extend(self._chapter_sections(chapters))
        return self._join(sections)

    def build_series(self, works: Iterable[Tuple[StoryReference, Iterable[Chapter]]], series_title: Optional[str] = None) -> str:
        sections = [series_title] if series_title else []
        work_count = 0
        for position, (reference, chapters) in enumerate(works, start=1):
            sections.append(self.work_marker(position, reference))
            sections.extend(self._chapter_sections(chapters))
            work_count = position
        logger.debug(f"Laid out {work_count} work(s) for series '{series_title}'")
        return self._join(sections)
