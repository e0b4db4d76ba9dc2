from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from tuition_api.application.use_cases.notifications import NotificationDispatcher
from tuition_api.config import get_settings
from tuition_api.domain.entities import Channel
from tuition_api.infrastructure.channels import ChannelAdapter, build_channels
from tuition_api.infrastructure.database import SessionLocal, engine, initialize_database
from tuition_api.infrastructure.notifications import notification_publisher
from tuition_api.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema on startup and release clients on shutdown."""

    initialize_database()
    yield
    await app.state.dispatcher.wait_for_background()
    for adapter in app.state.channels.values():
        await adapter.aclose()
    engine.dispose()


def create_app(
    *,
    channels: Mapping[Channel, ChannelAdapter] | None = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.session_factory = session_factory
    app.state.channels = dict(channels) if channels is not None else build_channels(settings)
    app.state.dispatcher = NotificationDispatcher(
        session_factory, app.state.channels, publisher=notification_publisher
    )

    register_routes(app)
    return app


app = create_app()
