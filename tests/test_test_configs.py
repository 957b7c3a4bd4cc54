"""Test configuration storage and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from examprep.domain.models import CompositionRule, TestConfigModel
from examprep.services.exceptions import InvalidComposition
from examprep.services.test_configs import TestConfigService


def _payload(**overrides) -> TestConfigModel:
    values = {
        "name": "Physics mock",
        "slug": "physics-mock",
        "total_questions": 20,
        "composition": [CompositionRule(question_category_id=1, percentage=100)],
        "published": True,
    }
    values.update(overrides)
    return TestConfigModel(**values)


@pytest.mark.asyncio
async def test_create_and_lookup(session):
    service = TestConfigService(session)

    created = await service.create(_payload())

    assert (await service.get(created.id)).name == "Physics mock"
    assert (await service.get_by_slug("physics-mock")).id == created.id
    assert created.composition == [{"question_category_id": 1, "percentage": 100.0}]


@pytest.mark.asyncio
async def test_composition_over_hundred_percent_is_rejected(session):
    service = TestConfigService(session)
    rules = [
        CompositionRule(question_category_id=1, percentage=70),
        CompositionRule(question_category_id=2, percentage=40),
    ]

    with pytest.raises(InvalidComposition):
        await service.create(_payload(composition=rules))


@pytest.mark.asyncio
async def test_list_configs_filters_unpublished(session):
    service = TestConfigService(session)
    await service.create(_payload())
    await service.create(_payload(name="Draft", slug="draft", published=False))

    assert [c.name for c in await service.list_configs()] == ["Draft", "Physics mock"]
    assert [c.name for c in await service.list_configs(published_only=True)] == ["Physics mock"]


@pytest.mark.asyncio
async def test_update_validates_changes(session):
    service = TestConfigService(session)
    created = await service.create(_payload())

    updated = await service.update(created.id, total_questions=30, published=False)
    assert updated.total_questions == 30
    assert not updated.published

    with pytest.raises(ValueError):
        await service.update(created.id, colour="blue")
    with pytest.raises(ValidationError):
        await service.update(created.id, passing_marks=150)
    with pytest.raises(InvalidComposition):
        await service.update(
            created.id,
            composition=[
                {"question_category_id": 1, "percentage": 60},
                {"question_category_id": 2, "percentage": 60},
            ],
        )
    assert (await service.get(created.id)).passing_marks == 50.0
    assert await service.update(999, name="Missing") is None


@pytest.mark.asyncio
async def test_delete_config(session):
    service = TestConfigService(session)
    created = await service.create(_payload())

    assert await service.delete_config(created.id)
    assert not await service.delete_config(created.id)
