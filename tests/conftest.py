import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.supabase_client import get_supabase, get_service_supabase
from app.llm.openrouter_client import get_openrouter_client
from app.config.prompts_config import get_prompt_catalog
from app.modules.auth.service import clear_auth_cache
from app.modules.automations import pipeline_registry
from app.modules.automations.generation_worker import GenerationPipeline
from app.modules.automations.image_storage import ImageStorage
from app.modules.automations.routes import get_generation_pipeline
from app.modules.ai_models.routes import get_optional_llm
from tests.fakes import FakeSupabase, FakeLLM, FakeImageClient, make_auth_user

USER_TOKEN = "user-token"
OTHER_TOKEN = "other-token"
ADMIN_TOKEN = "admin-token"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_images():
    return FakeImageClient()


@pytest.fixture
def users(fake_db):
    """Three signed-in users: an owner, someone else and an admin"""
    auth = fake_db.auth
    return {
        "user": auth.add_user(
            make_auth_user(email="owner@example.com", full_name="Olive Owner"), token=USER_TOKEN
        ),
        "other": auth.add_user(make_auth_user(email="other@example.com"), token=OTHER_TOKEN),
        "admin": auth.add_user(
            make_auth_user(email="admin@example.com", role="admin", full_name="Ada Admin"), token=ADMIN_TOKEN
        ),
    }


@pytest.fixture
def pipeline(fake_db, fake_llm, fake_images):
    return GenerationPipeline(
        fake_db,
        llm=fake_llm,
        image_client=fake_images,
        storage=ImageStorage(fake_db),
    )


@pytest.fixture
def client(fake_db, fake_llm, pipeline, users):
    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_service_supabase] = lambda: fake_db
    app.dependency_overrides[get_generation_pipeline] = lambda: pipeline
    app.dependency_overrides[get_openrouter_client] = lambda: fake_llm
    app.dependency_overrides[get_optional_llm] = lambda: fake_llm
    clear_auth_cache()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_auth_cache()
    pipeline_registry.clear()


def seed_prompts(db: FakeSupabase, **overrides):
    """Insert the default prompt catalog; overrides maps prompt name -> field changes"""
    rows = []
    for prompt in get_prompt_catalog():
        row = {**prompt, "version": 1, "variables": {}, "model_id": None}
        row.update(overrides.get(prompt["name"], {}))
        rows.extend(db.seed("system_prompts", row))
    return {row["name"]: row for row in rows}


def seed_tools(db: FakeSupabase):
    """Two categories with a couple of tools each"""
    communication, crm = db.seed(
        "tool_categories",
        {"name": "Communication"},
        {"name": "CRM"},
    )
    db.seed(
        "tools",
        {"name": "Slack", "category_id": communication["id"], "logo_url": "https://logo/slack.png", "is_active": True},
        {"name": "Discord", "category_id": communication["id"], "logo_url": None, "is_active": True},
        {"name": "Teams", "category_id": communication["id"], "logo_url": None, "is_active": False},
        {"name": "HubSpot", "category_id": crm["id"], "logo_url": "https://logo/hubspot.png", "is_active": True},
    )
    return {"Communication": communication, "CRM": crm}


def seed_automation(db: FakeSupabase, owner, **fields):
    row = {
        "user_id": owner.id,
        "user_input": "When a deal closes in HubSpot, post a message to Slack",
        "status": "completed",
        "title": "Deal alerts",
        "description": "Post closed deals to Slack",
        "slug": "deal-alerts-abc123",
        "generated_json": {"nodes": [{"name": "Trigger"}], "connections": {}},
        "user_name": "Olive Owner",
        "user_email": owner.email,
        "user_avatar_url": None,
        "image_url": None,
    }
    row.update(fields)
    return db.seed("automations", row)[0]
