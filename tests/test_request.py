import unittest

from scheduler import Direction, PriorityPolicy, escalated_priority
from simulation.errors import InvalidRequestError, RequestStateError
from simulation.request import Request, RequestState


class RequestLifecycleTest(unittest.TestCase):
    def test_rejects_same_origin_and_destination(self):
        with self.assertRaises(InvalidRequestError):
            Request(request_id=1, origin=4, destination=4, arrival_time=0)

    def test_forward_transitions(self):
        request = Request(request_id=1, origin=2, destination=7, arrival_time=3)
        self.assertEqual(request.state, RequestState.UNASSIGNED)
        self.assertFalse(request.is_assigned)

        request.assign(2)
        self.assertEqual(request.state, RequestState.ASSIGNED)
        self.assertEqual(request.assigned_elevator_id, 2)

        request.mark_picked_up(8)
        self.assertTrue(request.picked_up)
        self.assertFalse(request.delivered)

        request.mark_delivered(15)
        self.assertTrue(request.delivered)
        self.assertEqual(request.total_wait, 12)
        self.assertEqual(request.travel_time, 7)

    def test_cannot_skip_pickup(self):
        request = Request(request_id=1, origin=2, destination=7, arrival_time=0)
        request.assign(1)
        with self.assertRaises(RequestStateError):
            request.mark_delivered(5)

    def test_cannot_move_backward(self):
        request = Request(request_id=1, origin=2, destination=7, arrival_time=0)
        request.assign(1)
        request.mark_picked_up(2)
        with self.assertRaises(RequestStateError):
            request.assign(3)
        with self.assertRaises(RequestStateError):
            request.reassign(3)
        with self.assertRaises(RequestStateError):
            request.mark_picked_up(4)

    def test_reassign_only_changes_owner(self):
        request = Request(request_id=1, origin=2, destination=7, arrival_time=0)
        request.assign(1)
        request.reassign(3)
        self.assertEqual(request.assigned_elevator_id, 3)
        self.assertEqual(request.state, RequestState.ASSIGNED)

    def test_direction(self):
        self.assertEqual(Request(1, 2, 9, 0).direction, Direction.UP)
        self.assertEqual(Request(2, 9, 2, 0).direction, Direction.DOWN)


class PriorityTest(unittest.TestCase):
    def test_flat_below_threshold(self):
        request = Request(request_id=1, origin=1, destination=5, arrival_time=0)
        self.assertEqual(escalated_priority(request.wait_time(0)), 1.0)
        self.assertEqual(escalated_priority(request.wait_time(30)), 1.0)

    def test_superlinear_growth_after_threshold(self):
        self.assertAlmostEqual(escalated_priority(31), 2.0)
        self.assertAlmostEqual(escalated_priority(34), 1 + 4 ** 1.5)

    def test_step_bonuses(self):
        policy = PriorityPolicy()
        below = escalated_priority(60, policy)
        above = escalated_priority(61, policy)
        self.assertGreater(above - below, policy.step_bonus)
        below = escalated_priority(120, policy)
        above = escalated_priority(121, policy)
        self.assertGreater(above - below, policy.final_step_bonus)

    def test_priority_is_monotonic_and_unbounded(self):
        values = [escalated_priority(wait) for wait in range(0, 2000, 5)]
        self.assertEqual(values, sorted(values))
        self.assertGreater(values[-1], 10_000)

    def test_custom_policy(self):
        policy = PriorityPolicy(escalation_threshold=5, step_threshold=10, final_step_threshold=20)
        self.assertAlmostEqual(escalated_priority(6, policy), 2.0)
        self.assertEqual(escalated_priority(6), 1.0)

    def test_invalid_policy(self):
        with self.assertRaises(ValueError):
            PriorityPolicy(step_threshold=10).validate()


if __name__ == "__main__":
    unittest.main()
