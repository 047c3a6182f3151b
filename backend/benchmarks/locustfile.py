import random
import uuid

from locust import HttpUser, task, between

SET_FLOWRATES = (1000, 1500, 2000, 3000, 4000)


class CalibrationTechnician(HttpUser):
    wait_time = between(1, 3)

    def on_start(self):
        payload = {"email": "load@lab.com", "password": "password"}
        r = self.client.post(
            "/api/auth/register",
            json={**payload, "first_name": "Load", "last_name": "Test"},
        )
        if r.status_code != 200:
            r = self.client.post("/api/auth/login", json=payload)
        token = r.json().get("access_token")
        self.headers = {"Authorization": f"Bearer {token}"}
        pump = self.client.post(
            "/api/equipment",
            json={"equipment_reference": f"AP-{uuid.uuid4().hex[:8]}", "equipment_type": "Air pump"},
            headers=self.headers,
        )
        self.pump_id = pump.json().get("id")

    @task(3)
    def list_equipment(self):
        self.client.get("/api/equipment", headers=self.headers)

    @task(2)
    def list_pump_calibrations(self):
        self.client.get(
            f"/api/air-pump-calibrations/pump/{self.pump_id}",
            headers=self.headers,
            name="/api/air-pump-calibrations/pump/[id]",
        )

    @task(1)
    def calibrate_pump(self):
        target = random.choice(SET_FLOWRATES)
        data = {
            "pump_id": self.pump_id,
            "calibration_date": "2024-01-01",
            "test_results": [{"set_flowrate": target, "actual_flowrate": target * random.uniform(0.93, 1.07)}],
        }
        self.client.post("/api/air-pump-calibrations", json=data, headers=self.headers)
