"""Seed default escalation templates."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.entities.template import Template

logger = logging.getLogger(__name__)

SEED_PATH = Path(__file__).resolve().parent / "seed_templates.yaml"


def load_seed_templates(path: Path = SEED_PATH) -> list[dict]:
    raw = yaml.safe_load(path.read_text()) or []
    templates = []
    for entry in raw:
        templates.append({
            "name": entry["name"],
            "category": entry["category"],
            "description": entry.get("description", ""),
            "l2_team": entry.get("l2_team"),
            "checklist_items": [
                {"text": item["text"], "checked": False}
                for item in entry.get("checklist_items", [])
            ],
        })
    return templates


async def seed_templates(db: AsyncSession, path: Path = SEED_PATH) -> int:
    """Insert the default templates if the table is empty. Returns rows added."""
    result = await db.execute(select(func.count(Template.id)))
    if result.scalar():
        return 0
    templates = load_seed_templates(path)
    for data in templates:
        db.add(Template(**data))
    await db.commit()
    logger.info("Seeded %d templates", len(templates))
    return len(templates)
