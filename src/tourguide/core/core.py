from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from tourguide.config import Config
from tourguide.core.db import translate_store_errors

if TYPE_CHECKING:
    from tourguide.core.modules.access.service import AccessService
    from tourguide.core.modules.guide.service import GuideService
    from tourguide.core.modules.guide_session.service import GuideSessionService
    from tourguide.core.modules.session.service import SessionService
    from tourguide.core.modules.signature.service import SignatureService
    from tourguide.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


# (attribute, module, class) in start order; principal repositories come first
# so their indexes exist before any session references them
SERVICE_REGISTRY: tuple[tuple[str, str, str], ...] = (
    ("user", "tourguide.core.modules.user.service", "UserService"),
    ("guide", "tourguide.core.modules.guide.service", "GuideService"),
    ("session", "tourguide.core.modules.session.service", "SessionService"),
    ("guide_session", "tourguide.core.modules.guide_session.service", "GuideSessionService"),
    ("signature", "tourguide.core.modules.signature.service", "SignatureService"),
    ("access", "tourguide.core.modules.access.service", "AccessService"),
)


class Services:
    """Registry of service instances, one attribute per entry of SERVICE_REGISTRY."""

    user: UserService
    guide: GuideService
    session: SessionService
    guide_session: GuideSessionService
    signature: SignatureService
    access: AccessService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._services: list[Service] = []
        # Modules import Service from here, so they are loaded only once this module is complete
        for attr_name, module_path, class_name in SERVICE_REGISTRY:
            service_class = cast(type[Service], getattr(importlib.import_module(module_path), class_name))
            service = service_class(database)
            setattr(self, attr_name, service)
            self._services.append(service)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start services in registry order."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop services in reverse registry order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, MongoDB, and auto-register services."""
        self.config = config
        # Every store call is bounded so an unreachable server fails fast instead of hanging a request
        self.mongo_client = AsyncMongoClient(
            config.database_url,
            uuidRepresentation="standard",
            tz_aware=True,
            serverSelectionTimeoutMS=config.store_timeout_ms,
            connectTimeoutMS=config.store_timeout_ms,
            timeoutMS=config.store_timeout_ms,
        )
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    @translate_store_errors
    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()
        logger.debug("core_started", database=self.database.name)

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
