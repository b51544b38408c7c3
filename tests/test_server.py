import asyncio
import unittest

from fastapi.testclient import TestClient

from server.app import ClientChannel, SimulationManager, app
from simulation import SimulationConfig


class FakeWebSocket:
    def __init__(self) -> None:
        self.sent = []

    async def send_text(self, message: str) -> None:
        self.sent.append(message)


class ApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)
        response = self.client.post(
            "/simulation/reset", json={"total_floors": 5, "total_elevators": 1, "arrival_rate": 0}
        )
        self.assertEqual(response.status_code, 200)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.json(), {"status": "ok", "running": False})

    def test_state(self):
        body = self.client.get("/state").json()
        self.assertEqual(body["type"], "simulation-state")
        self.assertEqual(body["state"]["total_floors"], 5)
        self.assertEqual(body["state"]["total_elevators"], 1)

    def test_manual_request_is_delivered(self):
        response = self.client.post("/requests", json={"origin": 3, "destination": 4})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["request"]["state"], "unassigned")

        for _ in range(6):
            body = self.client.post("/simulation/step").json()
        self.assertEqual(body["state"]["completed_requests"], 1)
        self.assertIn("events", body)

    def test_invalid_requests(self):
        same = self.client.post("/requests", json={"origin": 2, "destination": 2})
        self.assertEqual(same.status_code, 400)
        outside = self.client.post("/requests", json={"origin": 2, "destination": 9})
        self.assertEqual(outside.status_code, 400)
        negative = self.client.post("/requests", json={"origin": 0, "destination": 2})
        self.assertEqual(negative.status_code, 422)

    def test_reset_validation(self):
        response = self.client.post("/simulation/reset", json={"total_floors": 1})
        self.assertEqual(response.status_code, 422)

    def test_speed_and_arrival_rate(self):
        body = self.client.post("/simulation/speed", json={"multiplier": 2}).json()
        self.assertEqual(body["state"]["speed"], 2)
        self.assertEqual(self.client.post("/simulation/speed", json={"multiplier": 0}).status_code, 422)

        body = self.client.post("/simulation/arrival-rate", json={"rate": 0.5}).json()
        self.assertEqual(body["state"]["arrival_rate"], 0.5)

    def test_rush_hour(self):
        body = self.client.post("/rush-hour", json={"kind": "evening"}).json()
        self.assertTrue(body["state"]["is_rush_hour"])
        self.assertEqual(body["state"]["simulation_hour"], 18)

        body = self.client.delete("/rush-hour").json()
        self.assertFalse(body["state"]["is_rush_hour"])

        self.assertEqual(self.client.post("/rush-hour", json={"kind": "noon"}).status_code, 422)

    def test_escalation_test(self):
        body = self.client.post("/requests/escalation-test").json()
        self.assertEqual(len(body["requests"]), 2)
        self.assertLess(body["requests"][0]["arrival_time"], body["requests"][1]["arrival_time"])

    def test_stream_sends_initial_state_and_updates(self):
        with self.client.websocket_connect("/ws/stream") as websocket:
            initial = websocket.receive_json()
            self.assertEqual(initial["type"], "simulation-state")
            self.assertEqual(initial["state"]["time"], 0)

            self.client.post("/simulation/step")
            update = websocket.receive_json()
            self.assertEqual(update["state"]["time"], 1)
            self.assertEqual(update["events"], {"generated": 0, "completed": 0})


class ClientChannelTest(unittest.TestCase):
    def test_keeps_only_latest_snapshot(self):
        async def scenario():
            websocket = FakeWebSocket()
            channel = ClientChannel(websocket)
            for message in ("first", "second", "third"):
                channel.publish(message)
            self.assertEqual(channel.queue.qsize(), 1)

            channel.start()
            await asyncio.sleep(0.01)
            await channel.close()
            return websocket.sent

        self.assertEqual(asyncio.run(scenario()), ["third"])


class SimulationManagerTest(unittest.TestCase):
    def test_background_loop_advances_and_stops(self):
        async def scenario():
            manager = SimulationManager(
                SimulationConfig(total_floors=6, total_elevators=2, arrival_rate=0.5, random_seed=2),
                tick_interval=0.001,
            )
            await manager.start()
            self.assertTrue(manager.running)
            await asyncio.sleep(0.05)
            state = await manager.stop()
            self.assertFalse(manager.running)
            return state["state"]

        state = asyncio.run(scenario())
        self.assertGreater(state["time"], 0)
        self.assertFalse(state["is_running"])
        self.assertEqual(state["total_requests"], state["completed_requests"] + state["pending_requests"])

    def test_reset_stops_loop(self):
        async def scenario():
            manager = SimulationManager(SimulationConfig(arrival_rate=0), tick_interval=0.001)
            await manager.start()
            payload = await manager.reset(total_floors=8, total_elevators=2, arrival_rate=0.2)
            return manager.running, payload["state"]

        running, state = asyncio.run(scenario())
        self.assertFalse(running)
        self.assertEqual(state["total_floors"], 8)
        self.assertEqual(state["time"], 0)


if __name__ == "__main__":
    unittest.main()
