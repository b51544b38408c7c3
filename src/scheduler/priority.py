from __future__ import annotations

from .config import PriorityPolicy

DEFAULT_POLICY = PriorityPolicy()


def escalated_priority(wait_time: float, policy: PriorityPolicy = DEFAULT_POLICY) -> float:
    """Return the priority of a request that has waited ``wait_time`` ticks.

    Priority is 1 until the escalation threshold, then grows as
    ``(wait - threshold) ** exponent`` with two step bonuses on top. The
    curve is unbounded, so any request eventually outranks every fresher one.
    """

    priority = 1.0
    if wait_time > policy.escalation_threshold:
        priority += (wait_time - policy.escalation_threshold) ** policy.escalation_exponent
    if wait_time > policy.step_threshold:
        priority += policy.step_bonus
    if wait_time > policy.final_step_threshold:
        priority += policy.final_step_bonus
    return priority
