"""
Registration and revalidation of skill pointers.

Composes admission, the bounded fetcher, the manifest parser and the skill
ledger. Every ledger call runs in its own short-lived session so that no
transaction or connection is held while the origin is being fetched.
"""

from typing import TYPE_CHECKING

from .admission import validate_source_url
from .fetcher import Fresh, NotModified
from .manifest import ManifestConstraints, parse_skill_manifest
from ..context.operation_context import operation
from ..exceptions import CacheMissError, FetchError, ManifestError, UpstreamFetchError
from ..schemas.request_schemas import RegisterSkillRequest
from ..schemas.skill_schemas import SkillDetail, SkillRead, SkillRegistration
from ..schemas.skill_update import SkillFetchUpdate
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..context.pipeline_context import PipelineContext


class SkillRevalidationOrchestrator:
    """
    Drives the register and revalidate flows for one collection at a time.
    """

    def __init__(self, context: "PipelineContext"):
        self.context = context
        self.constraints = ManifestConstraints.from_config(context.config.manifest)
        self.logger = get_logger()

    @operation()
    def register_skill(self, collection_id: str, request: RegisterSkillRequest) -> SkillRead:
        """
        Admit, fetch, parse and persist a new skill pointer.

        Any failure before the insert is terminal and leaves no row behind.

        Raises:
            AdmissionError: If the source URL is rejected (no network call is made)
            UpstreamFetchError: If the fetch fails or the origin answers 304
            ManifestError: If the fetched SKILL.md is invalid
            ConflictError: If the URL or alias is already registered in the collection
        """
        admitted = validate_source_url(request.source_url, self.context.config.admission)

        try:
            outcome = self.context.fetcher.fetch(admitted.url)
        except FetchError as e:
            raise UpstreamFetchError(e.message, cause=e, collection_id=collection_id) from e

        if isinstance(outcome, NotModified):
            # Nothing was cached to confirm: an unconditional GET must not get 304
            raise UpstreamFetchError(
                "upstream returned 304 to an unconditional request", collection_id=collection_id
            )

        manifest = parse_skill_manifest(outcome.body, self.constraints)
        registration = SkillRegistration(
            source_url=admitted.url,
            alias=request.alias,
            name=manifest.name,
            description=manifest.description,
            etag=outcome.etag,
            content=outcome.body,
        )
        with self.context.ledger() as ledger:
            return ledger.register(collection_id, registration)

    @operation()
    def revalidate_skill(self, collection_id: str, skill_id: str) -> SkillDetail:
        """
        Re-fetch a skill with its stored ETag and fold the outcome into its row.

        - fetch failure: status 502 and the error are recorded, cached content
          is kept, and UpstreamFetchError is raised
        - 304 with cached content: status 304, fetched_at advances
        - 304 without cached content: CacheMissError, row untouched
        - 200: content and etag replaced; name and description replaced only
          when the new content parses, otherwise the parse error is recorded

        Raises:
            NotFoundError: If the skill does not exist in this collection
            UpstreamFetchError: On any fetch failure
            CacheMissError: If the origin answers 304 but nothing was cached
        """
        with self.context.ledger() as ledger:
            row = ledger.get_by_id(collection_id, skill_id)

        try:
            outcome = self.context.fetcher.fetch(row.source_url, if_none_match=row.last_etag)
        except FetchError as e:
            with self.context.ledger() as ledger:
                ledger.reconcile(collection_id, skill_id, SkillFetchUpdate.failed(e.message))
            raise UpstreamFetchError(
                e.message, cause=e, collection_id=collection_id, skill_id=skill_id
            ) from e

        if isinstance(outcome, NotModified):
            if row.last_content is None:
                raise CacheMissError(collection_id=collection_id, skill_id=skill_id)
            # A 304 leaves the stored ETag alone; the one we sent is still current
            update = SkillFetchUpdate.not_modified()
        else:
            update = self._fresh_update(skill_id, outcome)

        with self.context.ledger() as ledger:
            updated = ledger.reconcile(collection_id, skill_id, update)
        return SkillDetail.from_read(updated)

    def _fresh_update(self, skill_id: str, outcome: Fresh) -> SkillFetchUpdate:
        try:
            manifest = parse_skill_manifest(outcome.body, self.constraints)
        except ManifestError as e:
            # Stale but valid metadata beats failing an existing record
            self.logger.warning(
                "Revalidated content has an invalid manifest; keeping previous metadata",
                extra={"skill_id": skill_id, "manifest_error": e.kind},
            )
            return SkillFetchUpdate.fresh(outcome.etag, outcome.body, error=f"{e.kind}: {e.message}")
        return SkillFetchUpdate.fresh(
            outcome.etag, outcome.body, name=manifest.name, description=manifest.description
        )
