"""News headline provider (newsapi.org)."""

import logging
import time
from typing import Optional

import httpx

from estat.config import Settings
from estat.etl.base import ProviderRateLimited, ProviderUnavailable
from estat.telemetry import record_provider_request

logger = logging.getLogger(__name__)


class NewsProvider:
    """Football headlines from a fixed set of sources, newest first."""

    name = "newsapi"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.api_key = settings.NEWS_API_KEY
        self.url = settings.NEWS_API_URL
        self.query = settings.NEWS_QUERY
        self.sources = settings.NEWS_SOURCES
        self.page_size = settings.NEWS_PAGE_SIZE
        self.max_articles = settings.NEWS_MAX_ARTICLES
        self.client = client or httpx.AsyncClient(timeout=settings.API_TIMEOUT_SECONDS)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def get_headlines(self) -> list[dict]:
        """Latest articles that carry an image, at most `max_articles`."""
        params = {
            "q": self.query,
            "sources": self.sources,
            "sortBy": "publishedAt",
            "pageSize": self.page_size,
            "apiKey": self.api_key,
        }
        start_time = time.time()
        try:
            response = await self.client.get(self.url, params=params)
        except httpx.RequestError as e:
            record_provider_request(self.name, "everything", "request_error", (time.time() - start_time) * 1000)
            raise ProviderUnavailable(f"News request failed: {e}") from e

        record_provider_request(self.name, "everything", str(response.status_code), (time.time() - start_time) * 1000)
        if response.status_code == 429:
            raise ProviderRateLimited("News API rate limited")
        if response.status_code >= 400:
            raise ProviderUnavailable(f"News API HTTP {response.status_code}")

        try:
            articles = response.json().get("articles") or []
        except (ValueError, AttributeError) as e:
            raise ProviderUnavailable("Malformed news payload") from e

        with_images = [a for a in articles if isinstance(a, dict) and a.get("urlToImage")]
        return with_images[: self.max_articles]

    async def close(self) -> None:
        await self.client.aclose()
