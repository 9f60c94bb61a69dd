"""Ticket Handoff — builds support escalations and publishes them to Jira."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.database import init_db, async_session, close_db
from src.routes import escalations, templates, settings as settings_routes, tickets, llm
from src.seed import seed_templates
from src.config import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await init_db()
    # Seed default templates on first startup
    async with async_session() as db:
        await seed_templates(db)
    yield
    await close_db()


app = FastAPI(
    title="Ticket Handoff",
    description="Structured support escalations published to Jira with an audit trail",
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(escalations.router, prefix=settings.api_prefix)
app.include_router(templates.router, prefix=settings.api_prefix)
app.include_router(settings_routes.router, prefix=settings.api_prefix)
app.include_router(tickets.router, prefix=settings.api_prefix)
app.include_router(llm.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "ticket-handoff", "version": settings.api_version}
