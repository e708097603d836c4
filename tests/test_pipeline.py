"""
Entity Pipeline Tests

🧪 Write pipeline and read dispatcher:
- Default assignment, hashing and private attribute stripping on create
- Relation existence checks and relation directives
- Update / delete semantics for missing entities
- Lifecycle events for committed writes only
- Single type vs collection type reads and pagination
"""

import asyncio

import pytest

from entityservice import (
    EntityOperations, EventHub, RelationNotFoundError, SchemaNotFoundError, ValidationError, set_config
)
from entityservice.events import EventType

from conftest import ARTICLE, AUTHOR, HOMEPAGE, ROLE, TAG, USER


class TestCreate:
    """Create path: defaults -> validation -> hashing -> relations -> store"""

    @pytest.mark.asyncio
    async def test_defaults_are_applied(self, service):
        entry = await service.create(ARTICLE, {"data": {"title": "Hello"}})

        assert entry == {"id": 1, "title": "Hello", "status": "draft", "views": 0, "featured": False}

    @pytest.mark.asyncio
    async def test_supplied_falsy_values_are_kept(self, service):
        entry = await service.create(ARTICLE, {"data": {"title": "", "featured": True, "views": 0, "status": None}})

        assert entry["title"] == ""
        assert entry["featured"] is True
        assert entry["views"] == 0
        assert entry["status"] is None

    @pytest.mark.asyncio
    async def test_private_attributes_are_stored_but_not_returned(self, service, database):
        entry = await service.create(ARTICLE, {"data": {"title": "Hello", "notes": "internal"}})

        assert "notes" not in entry
        assert database.records(ARTICLE)[0]["notes"] == "internal"

    @pytest.mark.asyncio
    async def test_passwords_are_hashed(self, service, pipeline, database):
        entry = await service.create(USER, {"data": {"username": "ann", "password": "hunter22"}})

        assert "password" not in entry
        stored = database.records(USER)[0]["password"]
        assert stored != "hunter22"
        assert stored.startswith("pbkdf2_sha256$")
        assert pipeline.hasher.verify("hunter22", stored)

    @pytest.mark.asyncio
    async def test_missing_relation_fails_without_writing(self, service, database, event_hub, received):
        with pytest.raises(RelationNotFoundError) as exc_info:
            await service.create(USER, {"data": {"username": "ann", "password": "hunter22", "role": 3}})

        assert str(exc_info.value) == "1 relation(s) of type api::role.role associated with this entity do not exist"
        assert exc_info.value.missing_count == 1
        assert exc_info.value.target_uid == ROLE
        assert exc_info.value.field == "role"
        assert database.metrics.writes == 0
        assert database.records(USER) == []
        await event_hub.drain()
        assert received == []

    @pytest.mark.asyncio
    async def test_missing_relation_count_is_the_deficit(self, service, database):
        database.seed(TAG, [{"id": 1, "label": "python"}])

        with pytest.raises(RelationNotFoundError) as exc_info:
            await service.create(ARTICLE, {"data": {"title": "Hello", "tags": [1, 50, 51]}})

        assert str(exc_info.value) == "2 relation(s) of type api::tag.tag associated with this entity do not exist"

    @pytest.mark.asyncio
    async def test_connect_directive_to_missing_entity(self, service, database):
        with pytest.raises(RelationNotFoundError) as exc_info:
            await service.create(ARTICLE, {"data": {"title": "Hello", "tags": {"connect": [{"id": 3}]}}})

        assert str(exc_info.value) == "1 relation(s) of type api::tag.tag associated with this entity do not exist"
        assert exc_info.value.field == "tags"
        assert database.records(ARTICLE) == []

    @pytest.mark.asyncio
    async def test_first_failing_relation_in_schema_order_wins(self, service):
        with pytest.raises(RelationNotFoundError) as exc_info:
            await service.create(ARTICLE, {"data": {"title": "Hello", "tags": [77, 78], "author": 42}})

        assert exc_info.value.target_uid == AUTHOR
        assert exc_info.value.missing_count == 1

    @pytest.mark.asyncio
    async def test_existing_relations_are_linked(self, service, database):
        database.seed(ROLE, [{"id": 1, "name": "admin"}])

        entry = await service.create(USER, {"data": {"username": "ann", "password": "hunter22", "role": 1}})

        assert entry["role"] == 1
        populated = await service.find_one(USER, entry["id"], {"populate": ["role"]})
        assert populated["role"] == {"id": 1, "name": "admin"}

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_counted_once(self, service, database):
        database.seed(TAG, [{"id": 1, "label": "python"}])

        entry = await service.create(ARTICLE, {"data": {"title": "Hello", "tags": [1, 1]}})

        assert entry["tags"] == [1]

    @pytest.mark.asyncio
    async def test_structural_validation_runs_before_any_write(self, service, database):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(ARTICLE, {"data": {"status": "archived"}})

        assert exc_info.value.errors["title"] == ["must be defined"]
        assert "status" in exc_info.value.errors
        assert database.metrics.writes == 0

    @pytest.mark.asyncio
    async def test_create_emits_sanitized_event(self, service, event_hub, received):
        entry = await service.create(ARTICLE, {"data": {"title": "Hello", "notes": "internal"}})

        await event_hub.drain()
        assert len(received) == 1
        event = received[0]
        assert event.name == EventType.ENTRY_CREATE.value
        assert event.uid == ARTICLE
        assert event.payload["model"] == "article"
        assert event.entry == entry
        assert "notes" not in event.entry

    @pytest.mark.asyncio
    async def test_unknown_content_type(self, service):
        with pytest.raises(SchemaNotFoundError):
            await service.create("api::nope.nope", {"data": {}})


class TestConstruction:

    def test_settings_default_without_reading_the_environment(self, registry, database, monkeypatch):
        monkeypatch.setenv("ENTITYSERVICE_HASH_ITERATIONS", "5")
        monkeypatch.setenv("ENTITYSERVICE_MAX_PAGE_SIZE", "7")
        set_config(None)

        pipeline = EntityOperations(schemas=registry, database=database)

        assert pipeline.config.security.password_hash_iterations == 260000
        assert pipeline.config.pagination.max_page_size == 100
        assert pipeline.hasher.iterations == 260000

    def test_explicit_config_is_used(self, registry, database, config):
        pipeline = EntityOperations(schemas=registry, database=database, config=config)

        assert pipeline.config is config
        assert pipeline.hasher.iterations == config.security.password_hash_iterations


class BrokenEventHub(EventHub):
    """Hub whose emit always fails"""

    async def emit(self, event_name, payload):
        raise RuntimeError("broker unavailable")

    async def subscribe(self, handler, event_names=None):
        return "broken"

    async def unsubscribe(self, subscription_id):
        return False


class TestEventFailures:

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_fail_the_write(self, service, event_hub):
        def explode(event):
            raise RuntimeError("subscriber bug")

        await event_hub.subscribe(explode)

        entry = await service.create(ARTICLE, {"data": {"title": "Hello"}})

        assert entry["id"] == 1
        await event_hub.drain()
        assert event_hub.metrics.handler_errors == 1

    @pytest.mark.asyncio
    async def test_slow_subscriber_does_not_block_the_write(self, service, event_hub):
        release = asyncio.Event()

        async def stuck(event):
            await release.wait()

        await event_hub.subscribe(stuck)

        entry = await asyncio.wait_for(service.create(ARTICLE, {"data": {"title": "Hi"}}), timeout=1)

        assert entry["title"] == "Hi"
        assert event_hub.pending_deliveries == 1
        assert await event_hub.drain(timeout=0.05) is False

        release.set()
        assert await event_hub.drain(timeout=1) is True
        assert event_hub.metrics.events_delivered == 1

    @pytest.mark.asyncio
    async def test_failing_hub_does_not_fail_the_write(self, pipeline, database):
        pipeline.event_hub = BrokenEventHub()

        entry = await pipeline.create(ARTICLE, {"data": {"title": "Hello"}})

        assert entry["id"] == 1
        assert len(database.records(ARTICLE)) == 1


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_missing_entity_returns_none(self, service, database, event_hub, received):
        result = await service.update(ARTICLE, 999, {"data": {"title": "Nope"}})

        assert result is None
        assert database.metrics.writes == 0
        await event_hub.drain()
        assert received == []

    @pytest.mark.asyncio
    async def test_update_does_not_reapply_defaults(self, service):
        created = await service.create(ARTICLE, {"data": {"title": "Hello", "status": "published"}})

        updated = await service.update(ARTICLE, created["id"], {"data": {"title": "Hello again"}})

        assert updated["title"] == "Hello again"
        assert updated["status"] == "published"

    @pytest.mark.asyncio
    async def test_update_validates_supplied_attributes_only(self, service):
        created = await service.create(ARTICLE, {"data": {"title": "Hello"}})

        with pytest.raises(ValidationError) as exc_info:
            await service.update(ARTICLE, created["id"], {"data": {"title": None}})

        assert exc_info.value.errors == {"title": ["cannot be null"]}

    @pytest.mark.asyncio
    async def test_update_rehashes_password(self, service, pipeline, database):
        created = await service.create(USER, {"data": {"username": "ann", "password": "hunter22"}})

        await service.update(USER, created["id"], {"data": {"password": "correcthorse"}})

        stored = database.records(USER)[0]["password"]
        assert pipeline.hasher.verify("correcthorse", stored)

    @pytest.mark.asyncio
    async def test_relation_directives(self, service, database):
        database.seed(TAG, [{"id": 1, "label": "a"}, {"id": 2, "label": "b"}, {"id": 3, "label": "c"}])
        created = await service.create(ARTICLE, {"data": {"title": "Hello", "tags": {"connect": [{"id": 1}, {"id": 2}]}}})
        assert created["tags"] == [1, 2]

        updated = await service.update(ARTICLE, created["id"], {"data": {"tags": {
            "connect": [{"id": 3, "position": {"before": 1}}],
            "disconnect": [{"id": 2}],
        }}})

        assert updated["tags"] == [3, 1]

    @pytest.mark.asyncio
    async def test_disconnect_of_unknown_ids_is_not_checked(self, service, database):
        database.seed(TAG, [{"id": 1, "label": "a"}])
        created = await service.create(ARTICLE, {"data": {"title": "Hello", "tags": [1]}})

        updated = await service.update(ARTICLE, created["id"], {"data": {"tags": {"disconnect": [99]}}})

        assert updated["tags"] == [1]

    @pytest.mark.asyncio
    async def test_update_with_missing_relation_fails_without_writing(self, service, database, event_hub, received):
        database.seed(TAG, [{"id": 1, "label": "a"}])
        created = await service.create(ARTICLE, {"data": {"title": "Hello", "tags": [1]}})
        writes = database.metrics.writes

        with pytest.raises(RelationNotFoundError) as exc_info:
            await service.update(ARTICLE, created["id"], {"data": {"title": "Changed", "tags": {"connect": [{"id": 3}]}}})

        assert str(exc_info.value) == "1 relation(s) of type api::tag.tag associated with this entity do not exist"
        assert database.metrics.writes == writes
        stored = database.records(ARTICLE)[0]
        assert stored["title"] == "Hello"
        assert stored["tags"] == [1]
        await event_hub.drain()
        assert [event.name for event in received] == ["entry.create"]

    @pytest.mark.asyncio
    async def test_update_emits_event(self, service, event_hub, received):
        created = await service.create(ARTICLE, {"data": {"title": "Hello"}})

        await service.update(ARTICLE, created["id"], {"data": {"views": 10}})

        await event_hub.drain()
        assert [event.name for event in received] == ["entry.create", "entry.update"]
        assert received[1].entry["views"] == 10


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_returns_sanitized_entity(self, service, database, event_hub, received):
        created = await service.create(ARTICLE, {"data": {"title": "Hello", "notes": "internal"}})

        deleted = await service.delete(ARTICLE, created["id"])

        assert deleted == created
        assert database.records(ARTICLE) == []
        await event_hub.drain()
        assert received[-1].name == "entry.delete"
        assert received[-1].entry == created

    @pytest.mark.asyncio
    async def test_delete_missing_entity_returns_none(self, service, event_hub, received):
        assert await service.delete(ARTICLE, 999) is None
        await event_hub.drain()
        assert received == []

    @pytest.mark.asyncio
    async def test_delete_many_emits_no_events(self, service, database, event_hub, received):
        database.seed(ARTICLE, [
            {"id": 1, "title": "a", "status": "draft"},
            {"id": 2, "title": "b", "status": "published"},
            {"id": 3, "title": "c", "status": "draft"},
        ])

        result = await service.delete_many(ARTICLE, {"filters": {"status": "draft"}})

        assert result == {"count": 2}
        assert [record["id"] for record in database.records(ARTICLE)] == [2]
        await event_hub.drain()
        assert received == []


class TestReads:

    @pytest.fixture
    def articles(self, database):
        database.seed(AUTHOR, [{"id": 1, "name": "Ann", "internal_code": "A-1"}])
        database.seed(ARTICLE, [
            {"id": 1, "title": "Alpha", "status": "published", "views": 5, "notes": "x", "author": 1},
            {"id": 2, "title": "Beta", "status": "draft", "views": 1, "author": None},
            {"id": 3, "title": "Gamma", "status": "published", "views": 9, "author": 1},
        ])

    @pytest.mark.asyncio
    async def test_single_type_returns_none_when_empty(self, service):
        assert await service.find_many(HOMEPAGE) is None

    @pytest.mark.asyncio
    async def test_single_type_returns_one_entity(self, service, database):
        database.seed(HOMEPAGE, [{"id": 1, "headline": "Welcome", "secret": "s3cr3t"}])

        entry = await service.find_many(HOMEPAGE)

        assert entry == {"id": 1, "headline": "Welcome"}

    @pytest.mark.asyncio
    async def test_collection_type_returns_list(self, service, articles):
        entries = await service.find_many(ARTICLE)

        assert [entry["id"] for entry in entries] == [1, 2, 3]
        assert all("notes" not in entry for entry in entries)

    @pytest.mark.asyncio
    async def test_find_many_with_filters_sort_and_fields(self, service, articles):
        entries = await service.find_many(ARTICLE, {
            "filters": {"status": "published"},
            "sort": "views:desc",
            "fields": ["title"],
        })

        assert entries == [{"id": 3, "title": "Gamma"}, {"id": 1, "title": "Alpha"}]

    @pytest.mark.asyncio
    async def test_find_one(self, service, articles):
        assert (await service.find_one(ARTICLE, 2))["title"] == "Beta"
        assert await service.find_one(ARTICLE, 42) is None

    @pytest.mark.asyncio
    async def test_populated_relations_are_sanitized(self, service, articles):
        entry = await service.find_one(ARTICLE, 1, {"populate": ["author"]})

        assert entry["author"] == {"id": 1, "name": "Ann"}

    @pytest.mark.asyncio
    async def test_count(self, service, articles):
        assert await service.count(ARTICLE) == 3
        assert await service.count(ARTICLE, {"filters": {"views": {"$gt": 4}}}) == 2

    @pytest.mark.asyncio
    async def test_find_page(self, service, database):
        database.seed(TAG, [{"id": i, "label": f"tag-{i}"} for i in range(1, 31)])

        page = await service.find_page(TAG, {"page": 2, "pageSize": 10})

        assert len(page) == 10
        assert page.first()["id"] == 11
        assert page.pagination.to_dict() == {"page": 2, "pageSize": 10, "pageCount": 3, "total": 30}

    @pytest.mark.asyncio
    async def test_find_page_defaults_and_clamping(self, service, database, config):
        database.seed(TAG, [{"id": i} for i in range(1, 31)])

        default_page = await service.find_page(TAG)
        clamped_page = await service.find_page(TAG, {"pageSize": 1000})

        assert default_page.pagination.page == 1
        assert default_page.pagination.page_size == config.pagination.default_page_size
        assert clamped_page.pagination.page_size == config.pagination.max_page_size
