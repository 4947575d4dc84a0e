"""
SearchClient - Tavily web search for biographical context.

Returns the concatenated result snippets (LLM context), candidate image URLs,
and the raw result list (used as fallback sources).
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List

import httpx

logger = logging.getLogger(__name__)

QUERY_TEMPLATE = (
    "Detailed biography of {name}, a Palestinian killed in the conflict. "
    "Include date and place of birth, date and place of death, nationality, "
    "and any available images."
)


class SearchError(Exception):
    """The search provider could not be reached or returned an error."""


@dataclass
class SearchContext:
    """Search output consumed by the extractor"""
    context: str = ""
    images: List[str] = field(default_factory=list)
    sources: List[Dict] = field(default_factory=list)


class SearchClient:
    """Tavily search over a shared httpx client"""

    def __init__(self, api_key: str, http_client: httpx.AsyncClient, url: str = "https://api.tavily.com/search"):
        self.api_key = api_key
        self.http = http_client
        self.url = url

    async def search(self, name: str, max_results: int = 5) -> SearchContext:
        """
        Search the web for a person.

        Raises:
            SearchError on transport failure or non-2xx response
        """
        try:
            response = await self.http.post(self.url, json={
                'api_key': self.api_key,
                'query': QUERY_TEMPLATE.format(name=name),
                'search_depth': 'advanced',
                'include_images': True,
                'max_results': max_results,
            })
        except httpx.HTTPError as e:
            logger.error(f"❌ Error during Tavily search: {e}")
            raise SearchError("Failed to retrieve search context.") from e

        if not response.is_success:
            logger.error(f"❌ Tavily search failed: {response.status_code} {response.reason_phrase}")
            raise SearchError("Failed to retrieve search context.")

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"❌ Tavily returned a non-JSON body: {e}")
            raise SearchError("Failed to retrieve search context.") from e
        if not isinstance(data, dict):
            raise SearchError("Failed to retrieve search context.")

        results = data.get('results') or []
        images = [url for url in (data.get('images') or []) if isinstance(url, str)]

        context = "\n\n---\n\n".join(
            f"Source: {r.get('url')}\nContent: {r.get('content', '')}"
            for r in results
        )

        logger.info(f"🔍 Tavily: {len(results)} results, {len(images)} images for '{name}'")
        return SearchContext(context=context, images=images, sources=results)
