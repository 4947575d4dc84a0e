"""
EnrichmentService - memorial lookup by name.

Pipeline:
  name → existing memorial?  ── yes → stored record (images signed), isExisting
                             └─ no  → web search → LLM extraction → candidate

Candidates are never saved here. Their images are still external URLs; the
submit flow persists the ones the user keeps.
"""
import logging
from typing import Dict, Iterable, List

from models.domain.references import parse_source_list
from services.memorial_extractor import MemorialExtractor
from services.search_client import SearchClient
from services.signed_urls import sign_image_references
from services.storage_client import StorageClient

logger = logging.getLogger(__name__)


class LookupFailed(Exception):
    """No usable information could be found for the name."""


class NameRequired(ValueError):
    """Lookup was called without a usable name."""


def merge_sources(model_sources: Iterable[Dict], search_results: Iterable[Dict]) -> List[Dict]:
    """
    Model-cited sources first, then search results with unseen URLs.

    Duplicates are detected by exact URL; the model's entry wins.
    """
    merged = [s.model_dump() for s in parse_source_list(list(model_sources or []))]
    seen = {s['url'] for s in merged}

    for result in search_results or []:
        url = result.get('url') if isinstance(result, dict) else None
        if not url or url in seen:
            continue
        merged.append({'url': url, 'title': result.get('title') or "Source"})
        seen.add(url)

    return merged


class EnrichmentService:
    """
    Looks up a person by name in the record store, falling back to
    search + extraction.
    """

    def __init__(
        self,
        repository,
        storage: StorageClient,
        search_client: SearchClient,
        extractor: MemorialExtractor,
        signed_url_ttl: int = 3600
    ):
        self.repository = repository
        self.storage = storage
        self.search_client = search_client
        self.extractor = extractor
        self.signed_url_ttl = signed_url_ttl

    async def lookup(self, name: str) -> Dict:
        """
        Existing memorial or AI-synthesized candidate for `name`.

        Raises:
            NameRequired: name missing
            LookupFailed: search returned nothing usable
            SearchError / ExtractionError: upstream failures
        """
        name = (name or "").strip()
        if not name:
            raise NameRequired("Name is required")

        existing = await self.repository.find_by_name(name)
        if existing:
            logger.info(f"📚 Found existing memorial {existing.id} for '{name}'")
            signed = await sign_image_references(self.storage, existing.images, self.signed_url_ttl)
            return {**existing.with_images(signed).to_dict(), 'isExisting': True}

        search = await self.search_client.search(name)
        if not search.context:
            raise LookupFailed("No reliable information could be found.")

        data = await self.extractor.extract(name, search.context)
        data['images'] = [{'url': url, 'title': name, 'path': None} for url in search.images]
        data['sources'] = merge_sources(data.get('sources', []), search.sources)
        data['isExisting'] = False

        logger.info(
            f"✅ Synthesized memorial for '{name}': "
            f"{len(data['images'])} images, {len(data['sources'])} sources"
        )
        return data
