"""
hex_state.py — Shared kinematic state for the hexapod.

One State instance is owned by the control loop and handed to every
collaborator's tick() in turn. The teleop controller writes the command
fields (target, offset, look_at, speed, gait_index, shutdown); the gait/IK
engine reads them and advances pose.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from math3d import Pose, Vector3


@dataclass
class State:
    """Kinematic state shared between collaborators for one process lifetime."""
    # Current body placement (advanced by the gait engine)
    pose: Pose = field(default_factory=Pose)

    # Commanded body placement the gait engine moves toward
    target: Pose = field(default_factory=Pose)

    # Lateral/depth body shift, written while R1 is held
    offset: Vector3 = field(default_factory=Vector3)

    # Focal point for the head; None until first computed
    look_at: Optional[Vector3] = None

    speed: int = 0
    gait_index: int = 0

    # Cooperative stop flag, polled by every collaborator. Never cleared.
    shutdown: bool = False

    @property
    def has_look_at(self) -> bool:
        return self.look_at is not None


__all__ = ['State']
