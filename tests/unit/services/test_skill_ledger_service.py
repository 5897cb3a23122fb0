"""
Unit tests for SkillLedgerService.

The service borrows the test session, so nothing here is committed by the
service itself; factories commit their own rows.
"""

import pytest

from upskills_core.exceptions import ConflictError, NotFoundError
from upskills_core.schemas import SkillFetchUpdate, SkillRegistration
from upskills_core.services.skill_ledger_service import SkillLedgerService

from tests.fixtures.factories import CollectionFactory, SkillFactory, UncachedSkillFactory

URL_A = "https://raw.githubusercontent.com/acme/skills/main/a/SKILL.md"
URL_B = "https://raw.githubusercontent.com/acme/skills/main/b/SKILL.md"


@pytest.fixture
def ledger(db_session) -> SkillLedgerService:
    return SkillLedgerService(session=db_session)


@pytest.fixture
def collection(db_session):
    return CollectionFactory()


def registration(url=URL_A, alias=None, name="demo", description="Demo skill", etag='"v1"', content="---\n"):
    return SkillRegistration(
        source_url=url, alias=alias, name=name, description=description, etag=etag, content=content
    )


class TestRegister:
    """Test skill registration."""

    def test_register_round_trip(self, ledger, collection):
        row = ledger.register(collection.id, registration(alias="demo"))

        assert row.id.startswith("sk_")
        assert row.collection_id == collection.id
        assert row.source_url == URL_A
        assert row.alias == "demo"
        assert row.name == "demo"
        assert row.description == "Demo skill"
        assert row.last_etag == '"v1"'
        assert row.last_content == "---\n"
        assert row.last_fetch_status == 200
        assert row.last_fetch_error is None
        assert row.last_fetched_at == row.created_at

        assert ledger.get_by_id(collection.id, row.id).source_url == URL_A

    def test_register_without_content_leaves_fetch_fields_empty(self, ledger, collection):
        row = ledger.register(collection.id, registration(content=None, etag=None))

        assert row.last_fetch_status is None
        assert row.last_fetched_at is None

    def test_duplicate_source_url_conflicts(self, ledger, collection):
        ledger.register(collection.id, registration())

        with pytest.raises(ConflictError) as exc_info:
            ledger.register(collection.id, registration(alias="other"))

        assert exc_info.value.kind == "conflict"
        assert exc_info.value.status_code == 409
        assert "source_url" in exc_info.value.message

    def test_duplicate_alias_conflicts(self, ledger, collection):
        ledger.register(collection.id, registration(alias="demo"))

        with pytest.raises(ConflictError) as exc_info:
            ledger.register(collection.id, registration(url=URL_B, alias="demo"))

        assert "alias" in exc_info.value.message

    def test_null_aliases_never_collide(self, ledger, collection):
        ledger.register(collection.id, registration(url=URL_A))
        ledger.register(collection.id, registration(url=URL_B))

        assert len(ledger.list(collection.id)) == 2

    def test_same_url_and_alias_allowed_across_collections(self, ledger):
        first, second = CollectionFactory(), CollectionFactory()

        a = ledger.register(first.id, registration(alias="demo"))
        b = ledger.register(second.id, registration(alias="demo"))

        assert a.id != b.id
        assert a.collection_id == first.id
        assert b.collection_id == second.id


class TestQueries:
    """List, search and get."""

    def test_list_is_newest_first(self, ledger, collection):
        older = SkillFactory(collection=collection, name="older")
        newer = SkillFactory(collection=collection, name="newer")
        older.created_at = newer.created_at.replace(year=newer.created_at.year - 1)
        ledger.session.commit()

        assert [row.name for row in ledger.list(collection.id)] == ["newer", "older"]

    def test_list_is_scoped_to_collection(self, ledger, collection):
        SkillFactory(collection=collection)
        SkillFactory()

        rows = ledger.list(collection.id)

        assert len(rows) == 1
        assert rows[0].collection_id == collection.id

    @pytest.mark.parametrize("query", ["PDF", "pdf", "extract", "Tooling", "pdf-tools/SKILL"])
    def test_search_matches_any_field_case_insensitively(self, ledger, collection, query):
        SkillFactory(
            collection=collection,
            alias="tooling",
            name="pdf",
            description="Extract text from documents",
            source_url="https://raw.githubusercontent.com/acme/pdf-tools/main/SKILL.md",
        )
        SkillFactory(collection=collection, name="unrelated", description="Nothing here")

        assert [row.name for row in ledger.search(collection.id, query)] == ["pdf"]

    def test_blank_search_lists_everything(self, ledger, collection):
        SkillFactory(collection=collection)
        SkillFactory(collection=collection)

        assert len(ledger.search(collection.id, "   ")) == 2
        assert len(ledger.search(collection.id, "")) == 2

    def test_search_treats_wildcards_literally(self, ledger, collection):
        SkillFactory(collection=collection, name="plain", description="no wildcards")
        SkillFactory(collection=collection, name="pct", description="100% coverage")

        assert [row.name for row in ledger.search(collection.id, "%")] == ["pct"]
        assert ledger.search(collection.id, "_") == []

    def test_search_does_not_cross_collections(self, ledger, collection):
        SkillFactory(name="shared-name")

        assert ledger.search(collection.id, "shared") == []

    def test_get_by_id_of_other_collection_is_not_found(self, ledger, collection):
        foreign = SkillFactory()

        with pytest.raises(NotFoundError) as exc_info:
            ledger.get_by_id(collection.id, foreign.id)

        assert exc_info.value.kind == "not_found"
        assert exc_info.value.message == "skill not found"

    def test_get_by_unknown_id_is_not_found(self, ledger, collection):
        with pytest.raises(NotFoundError):
            ledger.get_by_id(collection.id, "sk_missing")


class TestReconcile:
    """Fetch outcomes folded into one row."""

    def test_fresh_replaces_content_and_metadata(self, ledger, collection):
        skill = SkillFactory(collection=collection, name="demo", last_etag='"v1"')

        row = ledger.reconcile(
            collection.id,
            skill.id,
            SkillFetchUpdate.fresh('"v2"', "new body", name="demo2", description="v2"),
        )

        assert row.last_etag == '"v2"'
        assert row.last_content == "new body"
        assert row.name == "demo2"
        assert row.description == "v2"
        assert row.last_fetch_status == 200
        assert row.last_fetch_error is None

    def test_fresh_without_manifest_keeps_metadata(self, ledger, collection):
        skill = SkillFactory(collection=collection, name="demo", description="old")

        row = ledger.reconcile(
            collection.id,
            skill.id,
            SkillFetchUpdate.fresh('"v2"', "garbage", error="missing_frontmatter: missing YAML frontmatter"),
        )

        assert row.last_content == "garbage"
        assert row.name == "demo"
        assert row.description == "old"
        assert row.last_fetch_error.startswith("missing_frontmatter")

    def test_not_modified_keeps_content(self, ledger, collection):
        skill = SkillFactory(collection=collection, last_etag='"v1"', last_fetch_error="stale")
        before = ledger.get_by_id(collection.id, skill.id)

        row = ledger.reconcile(collection.id, skill.id, SkillFetchUpdate.not_modified())

        assert row.last_fetch_status == 304
        assert row.last_fetch_error is None
        assert row.last_etag == before.last_etag
        assert row.last_content == before.last_content
        assert row.name == before.name
        assert row.description == before.description

    def test_failed_keeps_last_known_good(self, ledger, collection, db_session):
        skill = SkillFactory(collection=collection)
        # Load the row as stored, not as the factory built it
        db_session.expire_all()
        before = ledger.get_by_id(collection.id, skill.id)

        row = ledger.reconcile(collection.id, skill.id, SkillFetchUpdate.failed("timeout"))

        assert row.last_fetch_status == 502
        assert row.last_fetch_error == "timeout"
        assert row.last_content == before.last_content
        assert row.last_etag == before.last_etag
        assert row.last_fetched_at == before.last_fetched_at

    def test_failed_on_uncached_row_keeps_null_content(self, ledger, collection):
        skill = UncachedSkillFactory(collection=collection)

        row = ledger.reconcile(collection.id, skill.id, SkillFetchUpdate.failed("upstream_status_500"))

        assert row.last_content is None
        assert row.last_fetch_status == 502

    def test_fresh_can_clear_etag(self, ledger, collection):
        skill = SkillFactory(collection=collection, last_etag='"v1"')

        row = ledger.reconcile(collection.id, skill.id, SkillFetchUpdate.fresh(None, "body"))

        assert row.last_etag is None

    def test_reconcile_other_collection_is_not_found(self, ledger, collection):
        foreign = SkillFactory()

        with pytest.raises(NotFoundError):
            ledger.reconcile(collection.id, foreign.id, SkillFetchUpdate.failed("timeout"))

        assert ledger.get_by_id(foreign.collection_id, foreign.id).last_fetch_error is None


class TestDelete:
    """Test skill deletion."""

    def test_delete(self, ledger, collection):
        skill = SkillFactory(collection=collection)

        ledger.delete(collection.id, skill.id)

        with pytest.raises(NotFoundError):
            ledger.get_by_id(collection.id, skill.id)

    def test_delete_twice_is_not_found(self, ledger, collection):
        skill = SkillFactory(collection=collection)
        ledger.delete(collection.id, skill.id)

        with pytest.raises(NotFoundError):
            ledger.delete(collection.id, skill.id)

    def test_delete_other_collection_is_not_found(self, ledger, collection):
        foreign = SkillFactory()

        with pytest.raises(NotFoundError):
            ledger.delete(collection.id, foreign.id)

        assert ledger.get_by_id(foreign.collection_id, foreign.id).id == foreign.id
