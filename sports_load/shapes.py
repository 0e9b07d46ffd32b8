"""
Stage-based ramping load shapes.

A plan is a list of ``(duration_seconds, target_users)`` stages run back
to back.  During each stage Locust is asked to move towards the stage
target at a spawn rate derived from the ramp slope, so a stage going
from 40 to 80 users over 180 s spawns at ~0.22 users/s.  The test stops
after the last stage.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from locust import LoadTestShape


@dataclass(frozen=True)
class Stage:
    duration: float
    target: int


def minutes(value: float) -> float:
    return value * 60.0


WEB_STAGES = (
    Stage(minutes(2), 40),
    Stage(minutes(3), 80),
    Stage(minutes(3), 120),
    Stage(minutes(3), 160),
    Stage(minutes(2), 0),
)
WEB_START_USERS = 5

MOBILE_STAGES = (
    Stage(minutes(2), 15),
    Stage(minutes(3), 35),
    Stage(minutes(3), 50),
    Stage(minutes(3), 65),
    Stage(minutes(2), 0),
)
MOBILE_START_USERS = 3

# Standalone guest step ramps, far steeper than the blended plan.
WEB_STEP_STAGES = (
    Stage(minutes(2), 200),
    Stage(minutes(3), 400),
    Stage(minutes(3), 1000),
    Stage(minutes(3), 2000),
    Stage(minutes(2), 0),
)
WEB_STEP_START_USERS = 5
WEB_STEP_GRACEFUL_RAMP_DOWN = 30.0

MOBILE_STEP_STAGES = (
    Stage(minutes(1), 200),
    Stage(minutes(2), 600),
    Stage(minutes(2), 1200),
    Stage(minutes(2), 2400),
    Stage(minutes(2), 0),
)
MOBILE_STEP_START_USERS = 5
MOBILE_STEP_GRACEFUL_RAMP_DOWN = 20.0


def combine_stages(*plans: Sequence[Stage]) -> tuple[Stage, ...]:
    """
    Sum several plans that share stage boundaries into one plan.

    Raises:
        ValueError: If the plans differ in stage count or durations.
    """
    if not plans:
        return ()
    first = plans[0]
    for plan in plans[1:]:
        if [stage.duration for stage in plan] != [stage.duration for stage in first]:
            raise ValueError("Plans must share identical stage durations to be combined")
    return tuple(
        Stage(stages[0].duration, sum(stage.target for stage in stages))
        for stages in zip(*plans)
    )


def stage_at(
    stages: Sequence[Stage], run_time: float, start_users: int = 0
) -> tuple[int, float] | None:
    """
    Return ``(target_users, spawn_rate)`` for *run_time*, or ``None`` when done.

    The spawn rate never drops below ``1`` so a flat stage still lets
    Locust correct drift quickly.
    """
    elapsed = 0.0
    previous = start_users
    for stage in stages:
        if run_time < elapsed + stage.duration:
            slope = abs(stage.target - previous) / stage.duration if stage.duration else 0.0
            return stage.target, max(1.0, slope)
        elapsed += stage.duration
        previous = stage.target
    return None


class StagesShape(LoadTestShape):
    """Drive Locust through :attr:`stages`, then stop."""

    abstract = True
    stages: Sequence[Stage] = ()
    start_users = 0
    graceful_ramp_down = 0.0

    def tick(self):
        return stage_at(self.stages, self.get_run_time(), self.start_users)


def apply_graceful_ramp_down(environment, seconds: float) -> None:
    """
    Let stopping users finish their current iteration for up to *seconds*.

    Locust applies ``stop_timeout`` whenever it stops users, during a
    ramp-down as well as at the end of the run.  An explicit
    ``--stop-timeout`` wins.
    """
    if not environment.stop_timeout:
        environment.stop_timeout = seconds
