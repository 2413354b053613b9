import uuid

from locust import HttpUser, task, between

class ProductionUser(HttpUser):
    wait_time = between(1, 3)

    def on_start(self):
        suffix = uuid.uuid4().hex[:8]
        water = self.client.post("/api/ingredients", json={"name": f"Water {suffix}"}).json()
        glycerin = self.client.post("/api/ingredients", json={"name": f"Glycerin {suffix}"}).json()
        payload = {
            "name": f"Bench Serum {suffix}",
            "base_batch_size": 100,
            "status": "finalized",
            "ingredients": [
                {"ingredient_id": water["id"], "percentage": 70, "phase": "A"},
                {"ingredient_id": glycerin["id"], "percentage": 30, "phase": "A"},
            ],
        }
        self.formulation_id = self.client.post("/api/formulations", json=payload).json()["id"]
        self.batch_ids = []

    @task(4)
    def preview_scale(self):
        self.client.get(
            f"/api/formulations/{self.formulation_id}/calculate",
            params={"batch_size": 250},
            name="/api/formulations/[id]/calculate",
        )

    @task(2)
    def create_batch(self):
        r = self.client.post(
            "/api/batches",
            json={"formulation_id": self.formulation_id, "target_amount": 500},
        )
        if r.status_code == 201:
            self.batch_ids.append(r.json()["id"])

    @task(3)
    def read_batch(self):
        if self.batch_ids:
            self.client.get(f"/api/batches/{self.batch_ids[-1]}", name="/api/batches/[id]")

    @task(1)
    def record_actuals(self):
        if not self.batch_ids:
            return
        batch = self.client.get(f"/api/batches/{self.batch_ids[-1]}", name="/api/batches/[id]").json()
        lines = [
            {"batch_ingredient_id": line["batch_ingredient_id"], "actual_amount": line["planned_amount"] * 1.01}
            for line in batch["ingredients"]
        ]
        self.client.put(
            f"/api/batches/{batch['id']}/actuals",
            json={"ingredients": lines},
            name="/api/batches/[id]/actuals",
        )
