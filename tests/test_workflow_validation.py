"""
Tests for POST /workflow/validate.
"""

import asyncio
import time

import httpx

from app.main import app
from app.llm.errors import OpenRouterError
from tests.conftest import seed_prompts, seed_tools

URL = "/api/v1/workflow/validate"
DESCRIPTION = "When a deal closes in our CRM, post it to the team chat"


def validation_result(**overrides):
    result = {
        "is_valid": True,
        "confidence": 0.85,
        "triggers": ["deal closed"],
        "processes": ["post message"],
        "tools_needed": ["CRM", "Chat"],
        "complexity": "simple",
        "estimated_time": 1,
        "suggestions": [],
        "steps": [
            {"step_number": 1, "description": "Deal closes", "type": "trigger", "tool_category": "CRM"},
            {"step_number": 2, "description": "Post message", "type": "action", "tool_category": "Communication"},
            {"step_number": 3, "description": "Format text", "type": "logic", "tool_category": "Utility"},
        ],
    }
    result.update(overrides)
    return result


def test_validation_attaches_available_tools(client, fake_db, fake_llm):
    prompts = seed_prompts(fake_db)
    seed_tools(fake_db)
    fake_llm.validation = validation_result()

    response = client.post(URL, json={"workflow_description": DESCRIPTION})

    assert response.status_code == 200
    validation = response.json()["validation"]
    assert validation["is_valid"] is True
    crm, communication, utility = validation["steps"]
    assert crm["available_tools"] == [{"name": "HubSpot", "logo_url": "https://logo/hubspot.png"}]
    assert sorted(t["name"] for t in communication["available_tools"]) == ["Discord", "Slack"]
    assert "available_tools" not in utility

    _, description, system_prompt, model = fake_llm.calls[0]
    assert description == DESCRIPTION
    assert system_prompt == prompts["workflow_validation"]["prompt_content"]
    assert model is None


def test_validation_without_steps(client, fake_db, fake_llm):
    seed_prompts(fake_db)
    fake_llm.validation = validation_result(steps=[])
    response = client.post(URL, json={"workflow_description": DESCRIPTION})
    assert response.status_code == 200
    assert response.json()["validation"]["steps"] == []


def test_prompt_model_is_used(client, fake_db, fake_llm):
    seed_prompts(fake_db, workflow_validation={"model_id": "anthropic/claude-3.5-sonnet"})
    fake_llm.validation = validation_result(steps=[])
    client.post(URL, json={"workflow_description": DESCRIPTION})
    assert fake_llm.calls[0][3] == "anthropic/claude-3.5-sonnet"


def test_missing_prompt_is_503(client, fake_llm):
    response = client.post(URL, json={"workflow_description": DESCRIPTION})
    assert response.status_code == 503
    assert response.json()["detail"] == "Validation system prompt not found or is inactive."
    assert fake_llm.calls == []


def test_inactive_prompt_is_503(client, fake_db):
    seed_prompts(fake_db, workflow_validation={"is_active": False})
    response = client.post(URL, json={"workflow_description": DESCRIPTION})
    assert response.status_code == 503


def test_model_error_is_500(client, fake_db, fake_llm, monkeypatch):
    seed_prompts(fake_db)

    def failing_validate(*args, **kwargs):
        raise OpenRouterError("Failed to validate workflow: OpenRouter API error: rate limited", status_code=429)

    monkeypatch.setattr(fake_llm, "validate_workflow", failing_validate)
    response = client.post(URL, json={"workflow_description": DESCRIPTION})
    assert response.status_code == 500
    assert response.json()["detail"] == "An unexpected error occurred."


def test_empty_description_rejected(client):
    response = client.post(URL, json={"workflow_description": ""})
    assert response.status_code == 422


def test_slow_validation_does_not_block_other_requests(client, fake_db, fake_llm, monkeypatch):
    seed_prompts(fake_db)
    fast_validate = fake_llm.validate_workflow

    def slow_validate(*args, **kwargs):
        time.sleep(1.0)
        return fast_validate(*args, **kwargs)

    monkeypatch.setattr(fake_llm, "validate_workflow", slow_validate)

    async def validate_and_check_health():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as async_client:
            validation = asyncio.create_task(
                async_client.post(URL, json={"workflow_description": DESCRIPTION})
            )
            await asyncio.sleep(0.1)
            started = time.monotonic()
            health = await async_client.get("/health")
            health_seconds = time.monotonic() - started
            return health, health_seconds, await validation

    health, health_seconds, validation = asyncio.run(validate_and_check_health())

    assert health.status_code == 200
    assert health_seconds < 0.5
    assert validation.status_code == 200
