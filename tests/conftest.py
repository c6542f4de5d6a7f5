import threading
from typing import Dict, List, Optional, Tuple, Union

import pytest

from fanfic_retriever.core.exceptions import FetchError
from fanfic_retriever.core.fetchers.http_client import HttpClient


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep a developer's FFR_* settings from leaking into the tests."""
    for name in ('FFR_CONFIG', 'FFR_FETCH_TIMEOUT', 'FFR_MAX_WORKERS', 'FFR_USER_AGENT', 'FFR_LOG_FILE'):
        monkeypatch.delenv(name, raising=False)


class FakeHttpClient(HttpClient):
    """
    Serves canned pages by URL (query parameters ignored) and records every
    request. A page may be an exception instance, which is raised instead.
    Unknown URLs answer like a 404.
    """

    def __init__(self, pages: Optional[Dict[str, Union[str, Exception]]] = None):
        super().__init__()
        self.pages = dict(pages or {})
        self.requests: List[Tuple[str, Optional[dict]]] = []
        self.before_response = {} # url -> callable run before answering
        self._lock = threading.Lock()

    def get_text(self, url, params=None):
        with self._lock:
            self.requests.append((url, params))
        hook = self.before_response.get(url)
        if hook:
            hook()
        page = self.pages.get(url)
        if page is None:
            raise FetchError("Source returned HTTP 404", url=url, status_code=404, reason="http_status")
        if isinstance(page, Exception):
            raise page
        return page

    @property
    def requested_urls(self) -> List[str]:
        return [url for url, _ in self.requests]


@pytest.fixture
def fake_http():
    return FakeHttpClient()


def ffnet_page(story_title="The Long Road", author="Quill", chapter_titles=("Beginnings",), current=1, body=None):
    """A FanFiction.Net chapter page with the same structure the live site serves."""
    options = "".join(
        f'<option  value={n}{" selected" if n == current else ""}>{n}. {title}'
        for n, title in enumerate(chapter_titles, start=1)
    )
    select = f'<select id=chap_select title="Chapter Navigation" Name=chapter>{options}</select>' if len(chapter_titles) > 1 else ''
    body = body if body is not None else f"<p>Text of chapter {current}.</p><p>Second paragraph of chapter {current}.</p>"
    return f"""
    <html><head><title>{story_title} Chapter {current}</title><script>var x = 1;</script></head>
    <body>
      <div id=profile_top>
        <b class='xcontrast_txt'>{story_title}</b>
        <span>By:</span> <a class='xcontrast_txt' href='/u/1/{author}'>{author}</a>
      </div>
      <span>{select}</span>
      <div role='main' class='storytextp' id='storytextp'>
        <div class='storytext xcontrast_txt nocopy' id='storytext'>{body}</div>
      </div>
      <button class=btn TYPE=BUTTON>Next &gt;</button>
    </body></html>
    """


def ffnet_missing_chapter_page():
    return "<html><body><span class='gui_warning'>Chapter not found. Please check to see you are not using an outdated url.</span></body></html>"


def ao3_chapter_page(chapter_number=1, heading=None, body=None, series_id=None):
    """An AO3 work page showing a single chapter, as served with ?view_adult=true."""
    heading_html = f'<h3 class="title"><a href="/works/12345/chapters/{1000 + chapter_number}">Chapter {chapter_number}</a>{": " + heading if heading else ""}</h3>'
    body = body if body is not None else f"<p>AO3 text of chapter {chapter_number}.</p>"
    series_html = (
        f'<dd class="series"><span class="series"><span class="position">Part 2 of '
        f'<a href="/series/{series_id}">The Saga</a></span></span></dd>'
    ) if series_id else ''
    return f"""
    <html><body>
      <dl class="work meta group">{series_html}</dl>
      <div id="workskin">
        <div class="preface group"><h2 class="title heading">Stars Apart</h2>
          <h3 class="byline heading"><a rel="author" href="/users/nova/pseuds/nova">nova</a></h3></div>
        <div id="chapters" role="article">
          <div class="chapter" id="chapter-{chapter_number}">
            <div class="chapter preface group" role="complementary">{heading_html}
              <div id="notes" class="notes module"><h3 class="heading">Notes:</h3><blockquote class="userstuff"><p>Thanks for reading!</p></blockquote></div>
            </div>
            <div class="userstuff module" role="article">
              <h3 class="landmark heading" id="work">Chapter Text</h3>
              {body}
            </div>
          </div>
        </div>
      </div>
      <div id="feedback"><button>Kudos</button></div>
    </body></html>
    """


def ao3_oneshot_page(body="<p>A complete one-shot.</p>"):
    return f"""
    <html><body><div id="workskin">
      <div class="preface group"><h2 class="title heading">Small Hours</h2></div>
      <div id="chapters" role="article">
        <h3 class="landmark heading" id="work">Work Text:</h3>
        <div class="userstuff">{body}</div>
      </div>
    </div></body></html>
    """


def ao3_navigate_page(work_id="12345", title="Stars Apart", author="nova", chapter_titles=("Launch", "Drift", "Landfall")):
    items = "".join(
        f'<li><a href="/works/{work_id}/chapters/{1000 + n}">{n}. {chapter_title}</a> <span class="datetime">(2021-01-0{n})</span></li>'
        for n, chapter_title in enumerate(chapter_titles, start=1)
    )
    return f"""
    <html><body><div id="main" class="chapters-navigate region" role="main">
      <h2 class="heading">Chapter Index for <a href="/works/{work_id}">{title}</a> by <a rel="author" href="/users/{author}/pseuds/{author}">{author}</a></h2>
      <ol class="chapter index group" role="navigation">{items}</ol>
    </div></body></html>
    """


def ao3_series_page(series_title="The Saga", work_ids=("111", "222"), next_page=None):
    works = "".join(
        f'<li class="work blurb group" id="work_{work_id}" role="article"><div class="header module">'
        f'<h4 class="heading"><a href="/works/{work_id}">Part {work_id}</a> by <a rel="author" href="/users/nova/pseuds/nova">nova</a></h4>'
        f'</div></li>'
        for work_id in work_ids
    )
    pagination = (
        f'<ol class="pagination actions" role="navigation"><li class="next" title="next"><a rel="next" href="{next_page}">Next →</a></li></ol>'
        if next_page else ''
    )
    return f"""
    <html><body><div id="main" class="series-show region">
      <h2 class="heading">{series_title}</h2>
      <ul class="series work index group">{works}</ul>
      {pagination}
    </div></body></html>
    """
