"""
Skill ledger: the persisted, collection-scoped record of skill pointers.

Every read and write is filtered by collection id, so a skill of another
collection is indistinguishable from a missing one. Fetch outcomes are folded
into a row through ``reconcile`` with one UPDATE statement, which keeps the
etag/content/name/description group coherent under concurrent revalidations.
"""

from typing import List

from sqlalchemy import exists, or_
from sqlalchemy.exc import IntegrityError

from .base_service import SessionManagedService
from ..constants import FetchStatus
from ..context.operation_context import operation
from ..db.db_base import utc_now
from ..db.db_skill_models import Skill
from ..exceptions import duplicate, not_found
from ..schemas.skill_schemas import SkillRead, SkillRegistration
from ..schemas.skill_update import SkillFetchUpdate
from ..utils import crud_helpers

_LIKE_ESCAPE = "\\"


def _like_pattern(query: str) -> str:
    escaped = (
        query.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


class SkillLedgerService(SessionManagedService):
    """
    Collection-scoped CRUD over skill pointers plus fetch-outcome reconciliation.
    """

    def _conflict_reason(self, collection_id: str, data: SkillRegistration) -> str:
        if self.session.query(
            exists().where(
                Skill.collection_id == collection_id, Skill.source_url == data.source_url
            )
        ).scalar():
            return "source_url already registered in this collection"
        if data.alias is not None and self.session.query(
            exists().where(Skill.collection_id == collection_id, Skill.alias == data.alias)
        ).scalar():
            return "alias already used in this collection"
        return ""

    @operation()
    def register(self, collection_id: str, data: SkillRegistration) -> SkillRead:
        """
        Insert a new skill pointer with its first fetch result.

        Args:
            collection_id: Owning collection
            data: Admitted URL, optional alias, parsed name/description and the
                fetched etag/content

        Returns:
            The stored row

        Raises:
            ConflictError: If the source URL or alias is already used in the collection
        """
        reason = self._conflict_reason(collection_id, data)
        if reason:
            raise duplicate("Skill", reason, collection_id=collection_id)

        now = utc_now()
        values = {
            "source_url": data.source_url,
            "alias": data.alias,
            "name": data.name,
            "description": data.description,
            "last_etag": data.etag,
            "last_content": data.content,
            "created_at": now,
        }
        if data.content is not None:
            # The registration fetch is the first successful fetch
            values["last_fetched_at"] = now
            values["last_fetch_status"] = FetchStatus.OK
        try:
            with self.transaction() as session:
                skill = crud_helpers.create_record(session, Skill, values, collection_id)
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same pointer
            raise duplicate(
                "Skill", "source_url or alias already used in this collection",
                cause=e, collection_id=collection_id,
            ) from e
        except Exception as e:
            self._handle_service_exception("register", e)

        self.logger.info(
            "Registered skill", extra={"collection_id": collection_id, "skill_id": skill.id}
        )
        return SkillRead.model_validate(skill)

    @operation()
    def list(self, collection_id: str) -> List[SkillRead]:
        """All skills of the collection, newest first."""
        rows = crud_helpers.list_records(self.session, Skill, collection_id)
        return [SkillRead.model_validate(row) for row in rows]

    @operation()
    def search(self, collection_id: str, query: str) -> List[SkillRead]:
        """
        Case-insensitive substring match over alias, name, description and source URL.

        A blank query behaves like ``list``. ``%`` and ``_`` in the query match
        literally.
        """
        query = (query or "").strip()
        if not query:
            return self.list(collection_id)

        pattern = _like_pattern(query)
        criteria = [
            or_(
                Skill.alias.ilike(pattern, escape=_LIKE_ESCAPE),
                Skill.name.ilike(pattern, escape=_LIKE_ESCAPE),
                Skill.description.ilike(pattern, escape=_LIKE_ESCAPE),
                Skill.source_url.ilike(pattern, escape=_LIKE_ESCAPE),
            )
        ]
        rows = crud_helpers.list_records(self.session, Skill, collection_id, criteria=criteria)
        return [SkillRead.model_validate(row) for row in rows]

    @operation()
    def get_by_id(self, collection_id: str, skill_id: str) -> SkillRead:
        """
        Raises:
            NotFoundError: If no skill with this id exists in the collection
        """
        skill = crud_helpers.get_record_by_id(self.session, Skill, skill_id, collection_id)
        if skill is None:
            raise not_found("Skill", collection_id=collection_id, skill_id=skill_id)
        return SkillRead.model_validate(skill)

    @operation()
    def reconcile(
        self, collection_id: str, skill_id: str, update: SkillFetchUpdate
    ) -> SkillRead:
        """
        Apply a fetch outcome to one row in a single UPDATE statement.

        Only the fields set in ``update`` are written.

        Raises:
            NotFoundError: If the row vanished or belongs to another collection
        """
        values = update.to_values()
        try:
            with self.transaction() as session:
                matched = crud_helpers.update_record_values(
                    session, Skill, skill_id, values, collection_id
                )
                if not matched:
                    raise not_found("Skill", collection_id=collection_id, skill_id=skill_id)
        except Exception as e:
            self._handle_service_exception("reconcile", e, entity_id=skill_id)

        self.logger.debug(
            "Reconciled skill",
            extra={
                "collection_id": collection_id,
                "skill_id": skill_id,
                "fetch_status": values.get("last_fetch_status"),
                "content_changed": update.touches_content,
            },
        )
        # The bulk UPDATE bypassed the identity map
        self.session.expire_all()
        return self.get_by_id(collection_id, skill_id)

    @operation()
    def delete(self, collection_id: str, skill_id: str) -> None:
        """
        Raises:
            NotFoundError: If no row was deleted
        """
        try:
            with self.transaction() as session:
                deleted = crud_helpers.delete_record(session, Skill, skill_id, collection_id)
                if not deleted:
                    raise not_found("Skill", collection_id=collection_id, skill_id=skill_id)
        except Exception as e:
            self._handle_service_exception("delete", e, entity_id=skill_id)

        self.logger.info("Deleted skill", extra={"collection_id": collection_id, "skill_id": skill_id})
