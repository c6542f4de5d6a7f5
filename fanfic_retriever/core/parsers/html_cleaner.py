import re
from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup, Comment, Tag

BLOCK_TAGS = ['p', 'div', 'section', 'article', 'blockquote', 'center', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li', 'pre', 'table', 'tr']
SCENE_BREAK = "* * *"


class HTMLCleaner:
    def __init__(self, config=None):
        """
        Initializes the HTMLCleaner.
        Config may add extra selectors per site under the 'extra_selectors' key.
        """
        self.config = config if config else {}
        self.default_tags_to_remove = ['script', 'style', 'link', 'meta', 'noscript', 'header', 'footer', 'nav', 'aside', 'form', 'iframe', 'button', 'input', 'select', 'img', 'svg']
        # Boilerplate that sits inside the content container on each site
        self.site_selectors_to_remove: Dict[str, List[str]] = {
            'ffnet': [
                '.a2a_kit', '.storytext-ad', # Share widgets and ad slots
                'div[class*="google-auto-placed"]',
                'div[id*="ad-"]',
            ],
            'ao3': [
                '.landmark', # Screen-reader headings such as "Chapter Text"
                '.notes', '.end.notes', '.afterword', # Author notes around the chapter
                '#feedback', '.kudos', '.comments', # Reader interaction widgets
                '.chapter.preface', # Chapter title block; the title is kept separately
                'ul.actions', '.navigation',
            ],
        }
        for site, selectors in self.config.get('extra_selectors', {}).items():
            self.site_selectors_to_remove.setdefault(site, []).extend(selectors)

    def clean_html(self, raw_html: Union[str, Tag], source_site: Optional[str] = None) -> BeautifulSoup:
        """
        Removes scripts, styles, site navigation and other clutter from a chapter fragment.
        Returns the cleaned soup so callers can either serialize it or extract text.
        """
        soup = BeautifulSoup(str(raw_html), 'html.parser')

        # 1. Remove unwanted site-specific selectors first
        for selector in self.site_selectors_to_remove.get(source_site or '', []):
            for unwanted_element in soup.select(selector):
                unwanted_element.decompose()

        # 2. Remove standard unwanted tags
        for tag_name in self.default_tags_to_remove:
            for tag in soup.find_all(tag_name):
                tag.decompose()

        # 3. Remove HTML comments
        for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()

        return soup

    def html_to_text(self, raw_html: Union[str, Tag], source_site: Optional[str] = None) -> str:
        """
        Converts a chapter fragment to plain text.
        Paragraphs are separated by a blank line; <br> becomes a line break and
        <hr> becomes a scene break marker.
        """
        soup = self.clean_html(raw_html, source_site)

        for br in soup.find_all('br'):
            br.replace_with('\n')
        for hr in soup.find_all('hr'):
            hr.replace_with(f'\n\n{SCENE_BREAK}\n\n')
        for tag in soup.find_all(BLOCK_TAGS):
            tag.insert_before('\n\n')
            tag.insert_after('\n\n')

        return normalize_text(soup.get_text())


def normalize_text(text: str) -> str:
    """Collapses whitespace the way a plain-text reader expects it."""
    text = text.replace('\r\n', '\n').replace('\r', '\n').replace('\xa0', ' ')
    text = re.sub(r'[ \t\f\v]+', ' ', text)
    lines = [line.strip() for line in text.split('\n')]
    text = '\n'.join(lines)
    # At most one blank line between paragraphs
    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()
