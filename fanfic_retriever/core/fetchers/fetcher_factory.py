from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Type
from urllib.parse import urlparse

from fanfic_retriever.utils.logger import get_logger
from ..config_manager import DEFAULT_MAX_WORKERS, FetchSettings
from ..models import SiteId, StoryReference
from .ao3_fetcher import ArchiveOfOurOwnFetcher
from .base_fetcher import BaseFetcher
from ..exceptions import SiteNotSupportedError
from .ffnet_fetcher import FanFictionNetFetcher
from .http_client import HttpClient

logger = get_logger(__name__)

SUPPORTED_SCHEMES = ('http', 'https')


@dataclass(frozen=True)
class SiteSignature:
    site: SiteId
    domains: Tuple[str, ...]
    fetcher_class: Type[BaseFetcher]

    def matches(self, host: str) -> bool:
        """True if the host is one of the domains or a subdomain of one (www., m., ...)."""
        return any(host == domain or host.endswith('.' + domain) for domain in self.domains)


# Ordered; the first matching signature wins, so domains must not overlap.
DEFAULT_SITE_SIGNATURES: Tuple[SiteSignature, ...] = (
    SiteSignature(SiteId.FANFICTION_NET, ('fanfiction.net',), FanFictionNetFetcher),
    SiteSignature(SiteId.ARCHIVE_OF_OUR_OWN, ('archiveofourown.org', 'ao3.org'), ArchiveOfOurOwnFetcher),
)


class AdapterRegistry:
    """
    Selects the fetcher for a story URL by matching its host against a fixed
    table of site signatures. Build one at startup and hand it to the
    retrieval service.
    """

    def __init__(self, signatures: Sequence[SiteSignature] = DEFAULT_SITE_SIGNATURES,
                 http_client: Optional[HttpClient] = None, max_workers: int = DEFAULT_MAX_WORKERS):
        self.signatures = tuple(signatures)
        self.http_client = http_client or HttpClient()
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, settings: FetchSettings) -> 'AdapterRegistry':
        """Registry whose shared HTTP client and worker pools follow the given settings."""
        return cls(http_client=HttpClient(settings), max_workers=settings.max_workers)

    def supported_sites(self) -> List[SiteId]:
        return [signature.site for signature in self.signatures]

    def _match(self, story_url: str) -> SiteSignature:
        """
        Args:
            story_url: The URL of the story.

        Raises:
            SiteNotSupportedError: If the host of the story_url is not supported.
            ValueError: If the URL is empty or missing a domain.
        """
        if not story_url or not story_url.strip():
            raise ValueError("Story URL cannot be empty.")

        parsed_url = urlparse(story_url.strip())
        host = (parsed_url.hostname or '').lower().rstrip('.')
        if not host:
            raise ValueError(f"Could not determine domain from URL: {story_url}")

        if parsed_url.scheme.lower() in SUPPORTED_SCHEMES:
            for signature in self.signatures:
                if signature.matches(host):
                    return signature

        supported = ", ".join(domain for signature in self.signatures for domain in signature.domains)
        raise SiteNotSupportedError(f"Site not supported for URL: {story_url} (domain: {host}). Supported sites: {supported}")

    def reference_for(self, story_url: str) -> StoryReference:
        """Identifies the story behind a URL without fetching anything."""
        signature = self._match(story_url)
        story_url = story_url.strip()
        return StoryReference(url=story_url, site=signature.site, story_id=signature.fetcher_class.parse_story_id(story_url))

    def resolve(self, story_url: str) -> BaseFetcher:
        """
        Returns a fresh fetcher bound to the story behind the URL.
        No network request is made here.
        """
        fetcher = self.fetcher_for(self.reference_for(story_url))
        logger.debug(f"Resolved {story_url} to {type(fetcher).__name__}")
        return fetcher

    def fetcher_for(self, reference: StoryReference) -> BaseFetcher:
        for signature in self.signatures:
            if signature.site is reference.site:
                return signature.fetcher_class(reference, http_client=self.http_client, max_workers=self.max_workers)
        raise SiteNotSupportedError(f"No fetcher registered for site '{reference.site.value}'")
