import random
import unittest

from scheduler import TrafficMode
from simulation import Request, RequestGenerator
from simulation.metrics import MetricsTracker


def make_generator(seed: int = 42, **overrides) -> RequestGenerator:
    params = {
        "total_floors": 20,
        "lobby_floor": 1,
        "rush_probability": 0.7,
        "random_state": random.Random(seed),
    }
    params.update(overrides)
    return RequestGenerator(**params)


class RequestGeneratorTest(unittest.TestCase):
    def test_normal_draws_are_valid_trips(self):
        generator = make_generator()
        for _ in range(1000):
            origin, destination = generator.draw()
            self.assertNotEqual(origin, destination)
            self.assertTrue(1 <= origin <= 20)
            self.assertTrue(1 <= destination <= 20)

    def test_morning_rush_favours_lobby_origin(self):
        generator = make_generator()
        draws = [generator.draw(TrafficMode.MORNING) for _ in range(1000)]
        from_lobby = sum(1 for origin, _ in draws if origin == 1)
        self.assertGreaterEqual(from_lobby, 600)
        self.assertTrue(all(origin != destination for origin, destination in draws))

    def test_evening_rush_favours_lobby_destination(self):
        generator = make_generator()
        draws = [generator.draw(TrafficMode.EVENING) for _ in range(1000)]
        to_lobby = sum(1 for _, destination in draws if destination == 1)
        self.assertGreaterEqual(to_lobby, 600)

    def test_zero_rush_probability_is_uniform(self):
        generator = make_generator(rush_probability=0.0)
        draws = [generator.draw(TrafficMode.MORNING) for _ in range(1000)]
        from_lobby = sum(1 for origin, _ in draws if origin == 1)
        self.assertLess(from_lobby, 200)

    def test_arrival_counts(self):
        generator = make_generator(seed=3)
        self.assertEqual(generator.arrivals(0), 0)
        counts = [generator.arrivals(1.5) for _ in range(2000)]
        self.assertTrue(all(count >= 0 for count in counts))
        self.assertAlmostEqual(sum(counts) / len(counts), 1.5, delta=0.15)

    def test_same_seed_same_stream(self):
        first, second = make_generator(seed=5), make_generator(seed=5)
        self.assertEqual(
            [first.draw(TrafficMode.EVENING) for _ in range(50)],
            [second.draw(TrafficMode.EVENING) for _ in range(50)],
        )


class MetricsTrackerTest(unittest.TestCase):
    def delivered(self, request_id: int, arrival: float, pickup: float, delivery: float) -> Request:
        request = Request(request_id=request_id, origin=1, destination=5, arrival_time=arrival)
        request.assign(1)
        request.mark_picked_up(pickup)
        request.mark_delivered(delivery)
        return request

    def test_empty_tracker(self):
        stats = MetricsTracker().snapshot()
        self.assertEqual(stats.total_requests, 0)
        self.assertEqual(stats.average_wait_time, 0.0)
        self.assertEqual(stats.average_travel_time, 0.0)

    def test_aggregates(self):
        tracker = MetricsTracker()
        tracker.record_arrival(3)
        tracker.record_delivery(self.delivered(1, arrival=0, pickup=6, delivery=10))
        tracker.record_delivery(self.delivered(2, arrival=5, pickup=19, delivery=25))
        tracker.record_utilization(moving=1, fleet_size=4)

        stats = tracker.snapshot()
        self.assertEqual(stats.total_requests, 3)
        self.assertEqual(stats.completed_requests, 2)
        self.assertEqual(stats.average_wait_time, 15)
        self.assertEqual(stats.max_wait_time, 20)
        self.assertEqual(stats.average_travel_time, 5)
        self.assertEqual(stats.elevator_utilization, 25)

    def test_rejects_undelivered_request(self):
        request = Request(request_id=1, origin=1, destination=5, arrival_time=0)
        with self.assertRaises(ValueError):
            MetricsTracker().record_delivery(request)


if __name__ == "__main__":
    unittest.main()
