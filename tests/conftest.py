"""Shared fixtures: a small blog domain wired into an in-memory service."""

import pytest

from entityservice import (
    ApplicationConfig, Environment, EntityOperations, EntityService, InMemorySchemaRegistry,
    InProcessEventHub, MemoryDatabase, set_config
)
from entityservice.entities.services import PBKDF2PasswordHasher, SchemaEntityValidator

ARTICLE = "api::article.article"
AUTHOR = "api::author.author"
TAG = "api::tag.tag"
ROLE = "api::role.role"
USER = "plugin::users.user"
HOMEPAGE = "api::homepage.homepage"

MODELS = [
    {
        "uid": ARTICLE,
        "kind": "collectionType",
        "modelName": "article",
        "attributes": {
            "title": {"type": "string", "required": True, "maxLength": 80},
            "status": {"type": "enumeration", "enum": ["draft", "published"], "default": "draft"},
            "views": {"type": "integer", "default": 0, "min": 0},
            "featured": {"type": "boolean", "default": False},
            "notes": {"type": "text", "private": True},
            "author": {"type": "relation", "relation": "manyToOne", "target": AUTHOR, "inversedBy": "articles"},
            "tags": {"type": "relation", "relation": "manyToMany", "target": TAG},
        },
    },
    {
        "uid": AUTHOR,
        "kind": "collectionType",
        "modelName": "author",
        "privateAttributes": ["internal_code"],
        "attributes": {
            "name": {"type": "string", "required": True},
            "internal_code": {"type": "string"},
            "articles": {"type": "relation", "relation": "oneToMany", "target": ARTICLE, "mappedBy": "author"},
        },
    },
    {
        "uid": TAG,
        "kind": "collectionType",
        "attributes": {"label": {"type": "string"}},
    },
    {
        "uid": ROLE,
        "kind": "collectionType",
        "attributes": {"name": {"type": "string"}},
    },
    {
        "uid": USER,
        "kind": "collectionType",
        "modelName": "user",
        "attributes": {
            "username": {"type": "string", "required": True},
            "email": {"type": "email"},
            "password": {"type": "password", "private": True, "minLength": 6},
            "confirmed": {"type": "boolean", "default": False},
            "role": {"type": "relation", "relation": "manyToOne", "target": ROLE},
        },
    },
    {
        "uid": HOMEPAGE,
        "kind": "singleType",
        "attributes": {
            "headline": {"type": "string"},
            "secret": {"type": "string", "private": True},
        },
    },
]


@pytest.fixture
def config():
    config = ApplicationConfig.for_environment(Environment.TESTING)
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def registry():
    return InMemorySchemaRegistry(MODELS)


@pytest.fixture
def database(registry):
    return MemoryDatabase(schemas=registry)


@pytest.fixture
def event_hub():
    return InProcessEventHub()


@pytest.fixture
async def received(event_hub):
    """Every event delivered by the hub, in order"""
    events = []

    async def collect(event):
        events.append(event)

    subscription_id = await event_hub.subscribe(collect)
    yield events
    await event_hub.unsubscribe(subscription_id)


@pytest.fixture
def pipeline(config, registry, database, event_hub):
    return EntityOperations(
        schemas=registry,
        database=database,
        event_hub=event_hub,
        hasher=PBKDF2PasswordHasher(iterations=config.security.password_hash_iterations),
        validator=SchemaEntityValidator(),
        config=config,
    )


@pytest.fixture
def service(pipeline):
    return EntityService.from_pipeline(pipeline)
