"""Pytest fixtures and configuration."""

from __future__ import annotations

import asyncio
import os
from typing import Any, Awaitable, Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Keep the module-level app in spendbook.main away from any local .env
os.environ.setdefault("ENVIRONMENT", "test")

from spendbook.api.deps import get_token_verifier  # noqa: E402
from spendbook.core.config import Settings  # noqa: E402
from spendbook.core.database import Database  # noqa: E402
from spendbook.core.exceptions import Unauthorized  # noqa: E402
from spendbook.main import create_app  # noqa: E402

ALICE = "user_alice"
BOB = "user_bob"


class FakeTokenVerifier:
    """Stands in for the identity provider: maps opaque tokens to user ids."""

    def __init__(self, tokens: dict[str, str]) -> None:
        self.tokens = tokens

    def verify(self, token: str) -> str:
        try:
            return self.tokens[token]
        except KeyError:
            raise Unauthorized()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'spendbook.db'}",
        ENVIRONMENT="test",
        CREATE_TABLES_ON_STARTUP=True,
    )


@pytest.fixture
def verifier() -> FakeTokenVerifier:
    return FakeTokenVerifier({"alice-token": ALICE, "bob-token": BOB})


@pytest.fixture
def app(settings: Settings, verifier: FakeTokenVerifier) -> FastAPI:
    app = create_app(settings)
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the lifespan (schema creation, pool) running."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob_headers() -> dict[str, str]:
    return {"Authorization": "Bearer bob-token"}


@pytest.fixture
def coffee() -> dict[str, Any]:
    return {"description": "Coffee", "amount": 450, "category": "Food", "date": "2024-01-01"}


@pytest.fixture
def run_db(settings: Settings) -> Callable[[Callable[..., Awaitable[Any]]], Any]:
    """Run ``fn(session)`` against a fresh schema in its own event loop."""

    def runner(fn: Callable[..., Awaitable[Any]]) -> Any:
        async def _run() -> Any:
            db = Database(settings)
            await db.create_all()
            try:
                async with db.sessionmaker() as session:
                    return await fn(session)
            finally:
                await db.dispose()

        return asyncio.run(_run())

    return runner
