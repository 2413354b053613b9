import os
os.environ["TESTING"] = "1"
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from batchcalc.main import app
from batchcalc import models
from batchcalc.database import Base, get_db

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def create_ingredient(client, name: str | None = None, **fields):
    """Create an ingredient with a collision-free name and return its JSON body."""

    payload = {"name": name or f"Ingredient {uuid.uuid4().hex[:8]}", **fields}
    resp = client.post("/api/ingredients", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_formulation(
    client,
    lines,
    *,
    status: str = "finalized",
    base_batch_size: float = 100,
    name: str | None = None,
    **fields,
):
    """
    Create a formulation from ``(ingredient_id, percentage, phase)`` tuples.
    Status defaults to a producible state so batch tests can proceed directly.
    """

    payload = {
        "name": name or f"Formula {uuid.uuid4().hex[:8]}",
        "base_batch_size": base_batch_size,
        "status": status,
        "ingredients": [
            {"ingredient_id": ingredient_id, "percentage": percentage, "phase": phase}
            for ingredient_id, percentage, phase in lines
        ],
        **fields,
    }
    resp = client.post("/api/formulations", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_serum(client, *, status: str = "finalized"):
    """70% water / 30% glycerin at a 100 g base."""

    water = create_ingredient(client, f"Water {uuid.uuid4().hex[:8]}", inci_name="Aqua")
    glycerin = create_ingredient(client, f"Glycerin {uuid.uuid4().hex[:8]}", inci_name="Glycerin")
    formulation = create_formulation(
        client,
        [(water["id"], 70, "A"), (glycerin["id"], 30, "A")],
        status=status,
    )
    return formulation, water, glycerin


def count_batches(formulation_id):
    """Return ``(batches, lines)`` stored for a formulation, read outside the app session."""

    session = TestingSessionLocal()
    try:
        batch_ids = [
            row.id
            for row in session.query(models.ProductionBatch)
            .filter(models.ProductionBatch.formulation_id == uuid.UUID(formulation_id))
            .all()
        ]
        lines = (
            session.query(models.BatchIngredient)
            .filter(models.BatchIngredient.batch_id.in_(batch_ids))
            .count()
            if batch_ids
            else 0
        )
        return len(batch_ids), lines
    finally:
        session.close()


def count_batch_lines(batch_id):
    session = TestingSessionLocal()
    try:
        return (
            session.query(models.BatchIngredient)
            .filter(models.BatchIngredient.batch_id == uuid.UUID(batch_id))
            .count()
        )
    finally:
        session.close()
