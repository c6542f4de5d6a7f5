from typing import Dict, Optional

import requests
from requests.exceptions import HTTPError, RequestException, Timeout

from fanfic_retriever.utils.logger import get_logger
from ..config_manager import FetchSettings
from ..exceptions import FetchError

logger = get_logger(__name__)


class HttpClient:
    """
    Stateless wrapper around requests.get. Every call is independent, so a
    single instance can be shared between threads and retrieval calls.
    """

    def __init__(self, settings: Optional[FetchSettings] = None):
        self.settings = settings or FetchSettings()

    @property
    def headers(self) -> Dict[str, str]:
        return {'User-Agent': self.settings.user_agent}

    def get_text(self, url: str, params: Optional[Dict[str, str]] = None) -> str:
        """
        Fetches a page and returns its body decoded as text.

        Raises:
            FetchError: On timeout, connection failure or a non-2xx status code.
        """
        logger.info(f"Fetching HTML content from URL: {url}")
        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.settings.timeout)
            response.raise_for_status()
        except Timeout as timeout_err:
            logger.error(f"Timed out after {self.settings.timeout}s while fetching {url}: {timeout_err}")
            raise FetchError(f"Timed out after {self.settings.timeout}s", url=url, reason="timeout") from timeout_err
        except HTTPError as http_err:
            status_code = http_err.response.status_code if http_err.response is not None else None
            logger.error(f"HTTP error occurred while fetching {url}: {http_err} - Status code: {status_code}")
            raise FetchError(f"Source returned HTTP {status_code}", url=url, status_code=status_code, reason="http_status") from http_err
        except RequestException as req_err:
            logger.error(f"Request exception occurred while fetching {url}: {req_err}")
            raise FetchError(f"Request failed: {req_err}", url=url, reason="network") from req_err

        # Sites occasionally omit the charset; let requests sniff it instead of assuming latin-1.
        if response.encoding is None or response.encoding.lower() == 'iso-8859-1':
            response.encoding = response.apparent_encoding or 'utf-8'
        return response.text
