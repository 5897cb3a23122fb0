"""
Collection service: token issuance and token lookup.

A collection is the tenant boundary. Its raw token leaves this module exactly
once, inside ``CollectionCreated``.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .base_service import SessionManagedService
from ..config import SecurityConfig, get_config
from ..context.operation_context import operation
from ..db.db_base import utc_now
from ..db.db_collection_models import Collection
from ..exceptions import UnauthorizedError
from ..schemas.collection_schemas import CollectionCreated, CollectionRead
from ..utils import crud_helpers
from ..utils.token_utils import generate_token, hash_token


class CollectionService(SessionManagedService):
    """Creates collections and resolves bearer tokens to collection ids."""

    def __init__(self, security: Optional[SecurityConfig] = None, **kwargs):
        super().__init__(**kwargs)
        self.security = security or get_config().security

    @operation()
    def create_collection(self) -> CollectionCreated:
        """
        Create a new collection and return its one-time token.

        Returns:
            CollectionCreated with the raw token, collection id and creation time
        """
        token = generate_token(self.security.token_prefix)
        try:
            with self.transaction() as session:
                collection = crud_helpers.create_record(
                    session,
                    Collection,
                    {"token_hash": hash_token(self.security.token_salt, token)},
                )
        except Exception as e:
            self._handle_service_exception("create_collection", e)

        self.logger.info("Created collection", extra={"collection_id": collection.id})
        return CollectionCreated(
            token=token, collection_id=collection.id, created_at=collection.created_at
        )

    @operation()
    def authenticate_by_token(self, token: Optional[str]) -> str:
        """
        Resolve a raw bearer token to its collection id.

        ``last_used_at`` is refreshed best-effort: a failure there is logged
        and never fails the lookup.

        Raises:
            UnauthorizedError: When the token is empty or matches no collection
        """
        if not token:
            raise UnauthorizedError("missing bearer token")

        token_hash = hash_token(self.security.token_salt, token)
        try:
            collection = crud_helpers.get_record(self.session, Collection, {"token_hash": token_hash})
        except SQLAlchemyError as e:
            self._handle_service_exception("authenticate_by_token", e)

        if collection is None:
            raise UnauthorizedError("invalid token")

        collection_id = collection.id
        self._touch_last_used(collection_id)
        return collection_id

    def _touch_last_used(self, collection_id: str) -> None:
        try:
            with self.transaction() as session:
                crud_helpers.update_record_values(
                    session, Collection, collection_id, {"last_used_at": utc_now()}
                )
        except Exception as e:
            self.logger.warning(
                "Failed to update collection last_used_at",
                extra={"collection_id": collection_id, "error_type": type(e).__name__},
            )

    @operation()
    def get_collection(self, collection_id: str) -> Optional[CollectionRead]:
        """Return the collection without its token digest, or None."""
        collection = crud_helpers.get_record_by_id(self.session, Collection, collection_id)
        return CollectionRead.model_validate(collection) if collection else None
