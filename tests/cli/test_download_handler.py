import os
from unittest import mock

import pytest

from conftest import FakeHttpClient, ffnet_page
from fanfic_retriever.cli.handlers import (
    EXIT_CLIENT_ERROR, EXIT_OK, EXIT_UPSTREAM_ERROR, build_fetch_settings, build_service, download_handler,
)
from fanfic_retriever.core.config_manager import MAX_FETCH_TIMEOUT, MAX_WORKERS
from fanfic_retriever.core.fetchers.fetcher_factory import AdapterRegistry
from fanfic_retriever.core.models import RetrievalKind
from fanfic_retriever.core.orchestrator import FanficRetrievalService

BUILD_SERVICE_PATH = "fanfic_retriever.cli.handlers.build_service"
TITLES = ("Beginnings", "The Storm", "Aftermath")
PAGES = {
    f"https://www.fanfiction.net/s/67890/{n}/": ffnet_page(chapter_titles=TITLES, current=n)
    for n in range(1, 4)
}


@pytest.fixture
def fake_service():
    http = FakeHttpClient(PAGES)
    service = FanficRetrievalService(AdapterRegistry(http_client=http, max_workers=2))
    with mock.patch(BUILD_SERVICE_PATH, return_value=service):
        yield service, http


def test_story_is_written_to_output_dir(fake_service, tmp_path, capsys):
    exit_code = download_handler("https://www.fanfiction.net/s/67890/1/", RetrievalKind.ENTIRE_FANFIC, str(tmp_path / "out"))

    assert exit_code == EXIT_OK
    output_file = tmp_path / "out" / "the-long-road.txt"
    assert output_file.exists()
    content = output_file.read_text(encoding='utf-8')
    assert content.startswith("The Long Road\nby Quill\n\nChapter 1: Beginnings")
    assert "Saved" in capsys.readouterr().out


def test_chapter_range_file_name(fake_service, tmp_path):
    exit_code = download_handler("https://www.fanfiction.net/s/67890/1/", RetrievalKind.CHAPTER_RANGE, str(tmp_path), start=2, end=3)
    assert exit_code == EXIT_OK
    assert os.listdir(tmp_path) == ["the-long-road-chapters-2-3.txt"]


@pytest.mark.parametrize("url, kind, start, end", [
    ("https://example.com/story/1", RetrievalKind.ENTIRE_FANFIC, None, None),
    ("https://www.fanfiction.net/s/67890/1/", RetrievalKind.CHAPTER_RANGE, 3, 1),
    ("https://www.fanfiction.net/s/67890/1/", RetrievalKind.CHAPTER_RANGE, 2, 9),
    ("https://www.fanfiction.net/s/67890/1/", RetrievalKind.ENTIRE_SERIES, None, None),
    ("", RetrievalKind.ENTIRE_FANFIC, None, None),
])
def test_client_errors_exit_with_usage_code(fake_service, tmp_path, capsys, url, kind, start, end):
    exit_code = download_handler(url, kind, str(tmp_path), start=start, end=end)

    assert exit_code == EXIT_CLIENT_ERROR
    assert os.listdir(tmp_path) == []
    assert "Error:" in capsys.readouterr().err


def test_upstream_failure_writes_nothing(fake_service, tmp_path):
    _, http = fake_service
    del http.pages["https://www.fanfiction.net/s/67890/2/"]

    exit_code = download_handler("https://www.fanfiction.net/s/67890/1/", RetrievalKind.ENTIRE_FANFIC, str(tmp_path))

    assert exit_code == EXIT_UPSTREAM_ERROR
    assert os.listdir(tmp_path) == []


def test_build_fetch_settings_applies_and_clamps_overrides():
    settings = build_fetch_settings(None, timeout=500.0, workers=99)
    assert settings.timeout == MAX_FETCH_TIMEOUT
    assert settings.max_workers == MAX_WORKERS

    assert build_fetch_settings(None, timeout=None, workers=3).max_workers == 3


def test_unsupported_site_lists_supported_sites(fake_service, tmp_path, capsys):
    exit_code = download_handler("https://example.com/story/1", RetrievalKind.ENTIRE_FANFIC, str(tmp_path))

    assert exit_code == EXIT_CLIENT_ERROR
    assert "Supported sites: ffnet, ao3" in capsys.readouterr().err


def test_unsupported_operation_does_not_list_sites(fake_service, tmp_path, capsys):
    exit_code = download_handler("https://www.fanfiction.net/s/67890/1/", RetrievalKind.ENTIRE_SERIES, str(tmp_path))

    assert exit_code == EXIT_CLIENT_ERROR
    assert "Supported sites" not in capsys.readouterr().err


def test_build_service_uses_fetch_settings():
    settings = build_fetch_settings(None, timeout=9.0, workers=5)
    service = build_service(settings)

    assert service.registry.max_workers == 5
    assert service.registry.http_client.settings.timeout == 9.0
