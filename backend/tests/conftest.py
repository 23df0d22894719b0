import os
from typing import Optional

# App startup runs init_db() on the module engine; keep it off disk
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ringside.database import get_session
from ringside.main import app
from ringside.models.tournament_state import Category, CompetitionEntry, Competitor, SparringEntry

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Models imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    from ringside.models.checkpoint import Checkpoint  # noqa: F401

    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override is set BEFORE TestClient() so the app never touches its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="make_competitor")
def make_competitor_fixture():
    """Factory for competitors.

    forms/sparring take (category_id, pool) and mark the competitor as
    competing in that type; pass None to leave the type unassigned.
    """

    def _make(
        competitor_id: str,
        first_name: Optional[str] = None,
        last_name: str = "Tester",
        school: str = "Dragon Dojo",
        branch: Optional[str] = None,
        height: int = 60,
        age: int = 9,
        forms: Optional[tuple] = None,
        sparring: Optional[tuple] = None,
        forms_rank: Optional[int] = None,
        sparring_rank: Optional[int] = None,
        sub_group: str = "",
        division: str = "Beginner",
    ) -> Competitor:
        forms_entry = CompetitionEntry()
        if forms is not None:
            forms_entry = CompetitionEntry(
                division=division, category_id=forms[0], pool=forms[1], rank=forms_rank, competing=True
            )
        sparring_entry = SparringEntry()
        if sparring is not None:
            sparring_entry = SparringEntry(
                division=division,
                category_id=sparring[0],
                pool=sparring[1],
                rank=sparring_rank,
                competing=True,
                sub_group=sub_group,
            )
        return Competitor(
            id=competitor_id,
            first_name=first_name or f"Kid{competitor_id}",
            last_name=last_name,
            age=age,
            gender="male",
            height_feet=height // 12,
            height_inches=height % 12,
            school=school,
            branch=branch,
            forms=forms_entry,
            sparring=sparring_entry,
        )

    return _make


@pytest.fixture(name="make_category")
def make_category_fixture():
    """Factory for categories"""

    def _make(
        category_id: str = "cat-1",
        name: str = "Mixed 8-10",
        division: str = "Beginner",
        num_pools: int = 1,
    ) -> Category:
        return Category(id=category_id, name=name, division=division, num_pools=num_pools, min_age=8, max_age=10)

    return _make
