"""Enrichment relation discovery."""

from .resolver import EnrichmentRelation, EnrichmentResolver, find_enrichments

__all__ = ["EnrichmentRelation", "EnrichmentResolver", "find_enrichments"]
