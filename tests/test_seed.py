"""Tests for default template seeding."""

import pytest
from sqlalchemy import func, select

from src.entities.template import Template
from src.seed import load_seed_templates, seed_templates


def test_bundled_templates():
    templates = load_seed_templates()
    assert [t["category"] for t in templates] == ["network", "application", "access"]
    for template in templates:
        assert template["l2_team"]
        assert template["checklist_items"]
        assert all(item["checked"] is False for item in template["checklist_items"])


def test_custom_file(tmp_path):
    path = tmp_path / "templates.yaml"
    path.write_text(
        "- name: Printer\n"
        "  category: hardware\n"
        "  checklist_items:\n"
        "    - text: Power cycled\n"
    )
    assert load_seed_templates(path) == [{
        "name": "Printer",
        "category": "hardware",
        "description": "",
        "l2_team": None,
        "checklist_items": [{"text": "Power cycled", "checked": False}],
    }]


@pytest.mark.asyncio
async def test_seed_only_once(session_factory):
    async with session_factory() as db:
        assert await seed_templates(db) == 3
        assert await seed_templates(db) == 0
        count = (await db.execute(select(func.count(Template.id)))).scalar()
    assert count == 3
