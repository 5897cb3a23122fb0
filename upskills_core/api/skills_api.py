"""
Transport-independent facade over the upskills core.

Each method corresponds to one boundary operation; an HTTP layer maps verbs
and paths onto these calls and ``error_response`` onto its error bodies.
"""

from typing import Any, Dict, Optional, Tuple

from ..context.operation_context import operation
from ..context.pipeline_context import PipelineContext, collection_scope
from ..exceptions import BaseError, ErrorCode, UnauthorizedError
from ..ingestion.revalidation import SkillRevalidationOrchestrator
from ..schemas.collection_schemas import CollectionCreated
from ..schemas.request_schemas import parse_register_request, parse_search_request
from ..schemas.skill_schemas import SkillDetail, SkillList, SkillSummary
from ..utils.logger import get_logger
from ..utils.token_utils import parse_bearer_header


class SkillsApi:
    """Boundary operations for collections and their skill pointers."""

    def __init__(self, context: PipelineContext):
        self.context = context
        self.orchestrator = SkillRevalidationOrchestrator(context)
        self.logger = get_logger()

    @operation()
    def create_collection(self) -> CollectionCreated:
        with self.context.collections() as collections:
            return collections.create_collection()

    @operation()
    def authenticate(self, token: Optional[str]) -> str:
        """
        Resolve a raw token to its collection id.

        Raises:
            UnauthorizedError: ``missing bearer token`` or ``invalid token``
        """
        with self.context.collections() as collections:
            return collections.authenticate_by_token(token)

    def authenticate_header(self, authorization: Optional[str]) -> str:
        """Resolve an ``Authorization: Bearer <token>`` header value."""
        token = parse_bearer_header(authorization)
        if token is None:
            raise UnauthorizedError("missing bearer token")
        return self.authenticate(token)

    @operation()
    def register_skill(self, collection_id: str, payload: Any) -> SkillSummary:
        """Register a skill from a raw body (JSON text, bytes or mapping)."""
        request = parse_register_request(payload)
        with collection_scope(collection_id):
            row = self.orchestrator.register_skill(collection_id, request)
        return SkillSummary.from_read(row)

    @operation()
    def list_skills(self, collection_id: str) -> SkillList:
        with self.context.ledger() as ledger:
            rows = ledger.list(collection_id)
        return SkillList(items=[SkillSummary.from_read(row) for row in rows])

    @operation()
    def search_skills(self, collection_id: str, q: Optional[str] = None) -> SkillList:
        request = parse_search_request(q)
        with self.context.ledger() as ledger:
            rows = ledger.search(collection_id, request.q)
        return SkillList(items=[SkillSummary.from_read(row) for row in rows])

    @operation()
    def get_skill(self, collection_id: str, skill_id: str) -> SkillDetail:
        """Return the skill after revalidating it against its origin."""
        with collection_scope(collection_id):
            return self.orchestrator.revalidate_skill(collection_id, skill_id)

    @operation()
    def delete_skill(self, collection_id: str, skill_id: str) -> None:
        with self.context.ledger() as ledger:
            ledger.delete(collection_id, skill_id)


def error_response(exc: Exception) -> Tuple[int, Dict[str, Any]]:
    """
    Map an exception to ``(http_status, {"error": {...}})``.

    Library errors keep their kind and message; anything else becomes an
    opaque ``internal_error`` so engine or library text never leaks.
    """
    if isinstance(exc, BaseError):
        return exc.status_code, exc.to_dict()

    get_logger().error(
        "Unhandled error at the boundary",
        extra={"error_type": type(exc).__name__},
        exc_info=exc,
    )
    wrapped = BaseError(
        "internal error", error_code=ErrorCode.INTERNAL_ERROR, status_code=500, cause=exc
    )
    return wrapped.status_code, wrapped.to_dict()
