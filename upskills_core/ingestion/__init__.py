"""
Ingestion and revalidation pipeline: admission, bounded fetch, manifest
parsing and the orchestrator that folds fetch outcomes into the ledger.
"""

from .admission import AdmittedURL, validate_source_url
from .fetcher import BoundedFetcher, FetchOutcome, Fresh, NotModified
from .manifest import ManifestConstraints, SkillManifest, parse_skill_manifest
from .revalidation import SkillRevalidationOrchestrator

__all__ = [
    "AdmittedURL",
    "validate_source_url",
    "BoundedFetcher",
    "FetchOutcome",
    "Fresh",
    "NotModified",
    "ManifestConstraints",
    "SkillManifest",
    "parse_skill_manifest",
    "SkillRevalidationOrchestrator",
]
