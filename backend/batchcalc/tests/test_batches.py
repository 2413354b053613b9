import uuid

import pytest
from fastapi.testclient import TestClient

from batchcalc.main import app
from batchcalc.routes import batches as batch_routes

from .conftest import count_batch_lines, count_batches, create_serum


def create_batch(client, formulation_id, target_amount=200, **fields):
    resp = client.post(
        "/api/batches",
        json={"formulation_id": formulation_id, "target_amount": target_amount, **fields},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def lines_by_ingredient(batch):
    return {line["ingredient_id"]: line for line in batch["ingredients"]}


def test_create_batch_snapshots_planned_amounts(client):
    formulation, water, glycerin = create_serum(client)
    batch = create_batch(client, formulation["id"], 200, batch_name="Lot 1", notes="first run")

    assert batch["formulation_id"] == formulation["id"]
    assert batch["formulation_name"] == formulation["name"]
    assert batch["formulation_base_size"] == 100
    assert batch["target_amount"] == 200
    assert batch["actual_amount"] is None
    assert batch["unit"] == "g"
    assert batch["batch_name"] == "Lot 1"
    assert batch["notes"] == "first run"

    lines = lines_by_ingredient(batch)
    assert lines[water["id"]]["planned_amount"] == pytest.approx(140)
    assert lines[glycerin["id"]]["planned_amount"] == pytest.approx(60)
    for line in batch["ingredients"]:
        assert line["actual_amount"] is None
        assert line["variance"] is None
        assert line["variance_percent"] is None
        assert line["unit"] == "g"


def test_lines_are_ordered_by_ingredient_name(client):
    formulation, _, _ = create_serum(client)
    batch = create_batch(client, formulation["id"])
    names = [line["ingredient_name"] for line in batch["ingredients"]]
    assert names == sorted(names)


@pytest.mark.parametrize("status", ["finalized", "freeze", "archived"])
def test_producible_statuses(client, status):
    formulation, _, _ = create_serum(client, status=status)
    create_batch(client, formulation["id"], 50)


@pytest.mark.parametrize("status", ["testing", "discontinued"])
def test_gate_rejects_other_statuses(client, status):
    formulation, _, _ = create_serum(client, status=status)
    before = len(client.get("/api/batches").json())

    resp = client.post(
        "/api/batches",
        json={"formulation_id": formulation["id"], "target_amount": 200},
    )
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["current_status"] == status
    assert detail["allowed_statuses"] == ["finalized", "freeze", "archived"]
    assert detail["error"] == f"Cannot create batch for {status} formulation"
    assert len(client.get("/api/batches").json()) == before


@pytest.mark.parametrize("target_amount", ["abc", "", None, True, False, [5]])
def test_non_numeric_target_amount_is_invalid_size(client, target_amount):
    formulation, _, _ = create_serum(client)
    resp = client.post(
        "/api/batches",
        json={"formulation_id": formulation["id"], "target_amount": target_amount},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "target_amount is required and must be a positive number"
    assert count_batches(formulation["id"]) == (0, 0)


def test_missing_target_amount_is_invalid_size(client):
    formulation, _, _ = create_serum(client)
    resp = client.post("/api/batches", json={"formulation_id": formulation["id"]})
    assert resp.status_code == 400
    assert count_batches(formulation["id"]) == (0, 0)


def test_numeric_string_target_amount_is_scaled(client):
    formulation, water, _ = create_serum(client)
    batch = create_batch(client, formulation["id"], "200")
    assert batch["target_amount"] == 200
    assert lines_by_ingredient(batch)[water["id"]]["planned_amount"] == (70 / 100) * 200.0


@pytest.mark.parametrize("target_amount", [0, -5])
def test_non_positive_target_amount_is_invalid_size(client, target_amount):
    formulation, _, _ = create_serum(client)
    resp = client.post(
        "/api/batches",
        json={"formulation_id": formulation["id"], "target_amount": target_amount},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "target_amount is required and must be a positive number"


def test_create_batch_for_missing_formulation(client):
    resp = client.post(
        "/api/batches",
        json={"formulation_id": str(uuid.uuid4()), "target_amount": 10},
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Formulation not found"


def test_batch_is_isolated_from_later_formulation_edits(client):
    formulation, water, glycerin = create_serum(client)
    batch = create_batch(client, formulation["id"], 200)

    client.put(
        f"/api/formulations/{formulation['id']}",
        json={"name": formulation["name"], "base_batch_size": 1000, "status": "finalized"},
    )
    client.delete(f"/api/formulations/{formulation['id']}/ingredients/{water['id']}")
    client.post(
        f"/api/formulations/{formulation['id']}/ingredients",
        json={"ingredient_id": water["id"], "percentage": 10},
    )

    again = client.get(f"/api/batches/{batch['id']}").json()
    lines = lines_by_ingredient(again)
    assert len(again["ingredients"]) == 2
    assert lines[water["id"]]["planned_amount"] == pytest.approx(140)
    assert lines[glycerin["id"]]["planned_amount"] == pytest.approx(60)
    assert again["target_amount"] == 200


def test_record_actuals_and_variance(client):
    formulation, water, glycerin = create_serum(client)
    batch = create_batch(client, formulation["id"], 200)
    lines = lines_by_ingredient(batch)

    resp = client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={
            "actual_total": 203,
            "notes": "slightly over",
            "ingredients": [
                {"batch_ingredient_id": lines[water["id"]]["batch_ingredient_id"], "actual_amount": 145, "notes": "spill"},
                {"batch_ingredient_id": lines[glycerin["id"]]["batch_ingredient_id"], "actual_amount": 58},
            ],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["actual_amount"] == 203
    assert body["notes"] == "slightly over"

    updated = lines_by_ingredient(body)
    assert updated[water["id"]]["actual_amount"] == 145
    assert updated[water["id"]]["variance"] == pytest.approx(5)
    assert updated[water["id"]]["variance_percent"] == 3.57
    assert updated[water["id"]]["ingredient_notes"] == "spill"
    assert updated[glycerin["id"]]["variance"] == pytest.approx(-2)
    assert updated[glycerin["id"]]["variance_percent"] == -3.33
    assert updated[water["id"]]["planned_amount"] == pytest.approx(140)

    assert client.get(f"/api/batches/{batch['id']}").json() == body


def test_actuals_overwrite_and_omitted_lines_keep_values(client):
    formulation, water, glycerin = create_serum(client)
    batch = create_batch(client, formulation["id"], 200)
    lines = lines_by_ingredient(batch)
    water_line = lines[water["id"]]["batch_ingredient_id"]
    glycerin_line = lines[glycerin["id"]]["batch_ingredient_id"]

    client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={
            "actual_total": 199,
            "notes": "run one",
            "ingredients": [
                {"batch_ingredient_id": water_line, "actual_amount": 141, "notes": "ok"},
                {"batch_ingredient_id": glycerin_line, "actual_amount": 59},
            ],
        },
    )
    second = client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={"ingredients": [{"batch_ingredient_id": water_line, "actual_amount": 139}]},
    ).json()

    updated = lines_by_ingredient(second)
    assert updated[water["id"]]["actual_amount"] == 139
    assert updated[water["id"]]["ingredient_notes"] is None
    assert updated[glycerin["id"]]["actual_amount"] == 59
    assert second["actual_amount"] == 199
    assert second["notes"] == "run one"


def test_empty_actuals_update_changes_only_header(client):
    formulation, _, _ = create_serum(client)
    batch = create_batch(client, formulation["id"])
    resp = client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={"actual_total": 201.5, "ingredients": []},
    )
    assert resp.status_code == 200
    assert resp.json()["actual_amount"] == 201.5
    assert all(line["actual_amount"] is None for line in resp.json()["ingredients"])


def test_actuals_require_ingredients_array(client):
    formulation, _, _ = create_serum(client)
    batch = create_batch(client, formulation["id"])
    resp = client.put(f"/api/batches/{batch['id']}/actuals", json={"actual_total": 10})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "ingredients array is required"


def test_negative_actual_amount_is_rejected(client):
    formulation, _, _ = create_serum(client)
    batch = create_batch(client, formulation["id"])
    line_id = batch["ingredients"][0]["batch_ingredient_id"]
    resp = client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={"ingredients": [{"batch_ingredient_id": line_id, "actual_amount": -1}]},
    )
    assert resp.status_code == 422


def test_boolean_actuals_are_rejected(client):
    formulation, _, _ = create_serum(client)
    batch = create_batch(client, formulation["id"])
    line_id = batch["ingredients"][0]["batch_ingredient_id"]

    as_line = client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={"ingredients": [{"batch_ingredient_id": line_id, "actual_amount": True}]},
    )
    as_total = client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={"actual_total": True, "ingredients": []},
    )
    assert as_line.status_code == 422
    assert as_total.status_code == 422

    unchanged = client.get(f"/api/batches/{batch['id']}").json()
    assert unchanged["actual_amount"] is None
    assert all(line["actual_amount"] is None for line in unchanged["ingredients"])


def test_foreign_line_rolls_back_whole_update(client):
    formulation, water, _ = create_serum(client)
    batch = create_batch(client, formulation["id"])
    other = create_batch(client, formulation["id"])
    own_line = lines_by_ingredient(batch)[water["id"]]["batch_ingredient_id"]
    foreign_line = other["ingredients"][0]["batch_ingredient_id"]

    resp = client.put(
        f"/api/batches/{batch['id']}/actuals",
        json={
            "actual_total": 999,
            "ingredients": [
                {"batch_ingredient_id": own_line, "actual_amount": 140},
                {"batch_ingredient_id": foreign_line, "actual_amount": 1},
            ],
        },
    )
    assert resp.status_code == 404

    unchanged = client.get(f"/api/batches/{batch['id']}").json()
    assert unchanged["actual_amount"] is None
    assert all(line["actual_amount"] is None for line in unchanged["ingredients"])
    assert all(line["actual_amount"] is None for line in client.get(f"/api/batches/{other['id']}").json()["ingredients"])


def test_actuals_for_missing_batch(client):
    resp = client.put(f"/api/batches/{uuid.uuid4()}/actuals", json={"ingredients": []})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Batch not found"


def test_list_batches(client):
    formulation, _, _ = create_serum(client)
    first = create_batch(client, formulation["id"], 10)
    second = create_batch(client, formulation["id"], 20)

    listed = client.get("/api/batches").json()
    ids = [item["id"] for item in listed]
    assert ids.index(second["id"]) < ids.index(first["id"])
    entry = next(item for item in listed if item["id"] == first["id"])
    assert entry["formulation_name"] == formulation["name"]
    assert entry["formulation_status"] == "finalized"
    assert "ingredients" not in entry


def test_delete_batch_cascades_lines(client):
    formulation, _, _ = create_serum(client)
    batch = create_batch(client, formulation["id"])
    assert count_batch_lines(batch["id"]) == 2

    resp = client.delete(f"/api/batches/{batch['id']}")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Batch deleted successfully"
    assert resp.json()["deleted"]["id"] == batch["id"]

    assert client.get(f"/api/batches/{batch['id']}").status_code == 404
    assert count_batch_lines(batch["id"]) == 0
    assert client.delete(f"/api/batches/{batch['id']}").status_code == 404
    # the formulation is free to go once its batches are gone
    assert client.delete(f"/api/formulations/{formulation['id']}").status_code == 200


def test_malformed_batch_ids(client):
    for method, path in (
        ("get", "/api/batches/123"),
        ("delete", "/api/batches/123"),
    ):
        resp = getattr(client, method)(path)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid ID format - expected UUID"
    resp = client.put("/api/batches/123/actuals", json={"ingredients": []})
    assert resp.status_code == 400


def test_unexpected_errors_are_hidden(monkeypatch):
    def explode(db):
        raise RuntimeError("connection string with secrets")

    monkeypatch.setattr(batch_routes.batches, "list_batches", explode)
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/api/batches")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}
