"""
math3d.py — Vector and pose types for the body frame.

Coordinate System (Body Frame, matches kinematics/gait engine):
    X: Right is positive
    Y: Up is positive
    Z: Forward is positive

Angles are in degrees:
    heading: rotation about Y (positive turns toward +X)
    pitch:   rotation about X
    bank:    rotation about Z
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field

import numpy as np


@dataclass
class Vector3:
    """3D point or displacement (mm)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @classmethod
    def from_array(cls, arr) -> 'Vector3':
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def add(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalized(self) -> 'Vector3':
        """Unit vector in the same direction; zero vector stays zero."""
        mag = self.magnitude()
        if mag == 0.0 or not math.isfinite(mag):
            return Vector3()
        return Vector3(self.x / mag, self.y / mag, self.z / mag)

    def copy(self) -> 'Vector3':
        return Vector3(self.x, self.y, self.z)


def rotation_matrix(heading: float, pitch: float, bank: float) -> np.ndarray:
    """Body-to-world rotation for the given Euler angles (degrees).

    Applied as heading (Y), then pitch (X), then bank (Z):
        R = Ry(heading) @ Rx(pitch) @ Rz(bank)
    """
    h, p, b = math.radians(heading), math.radians(pitch), math.radians(bank)
    ch, sh = math.cos(h), math.sin(h)
    cp, sp = math.cos(p), math.sin(p)
    cb, sb = math.cos(b), math.sin(b)

    ry = np.array([[ch, 0.0, sh],
                   [0.0, 1.0, 0.0],
                   [-sh, 0.0, ch]])
    rx = np.array([[1.0, 0.0, 0.0],
                   [0.0, cp, -sp],
                   [0.0, sp, cp]])
    rz = np.array([[cb, -sb, 0.0],
                   [sb, cb, 0.0],
                   [0.0, 0.0, 1.0]])
    return ry @ rx @ rz


@dataclass
class Pose:
    """Body placement: position (mm) plus heading/pitch/bank (degrees)."""
    position: Vector3 = field(default_factory=Vector3)
    heading: float = 0.0
    pitch: float = 0.0
    bank: float = 0.0

    def add(self, delta: 'Pose') -> 'Pose':
        """Compose a delta expressed in this pose's frame.

        The delta position is rotated by this pose's orientation before being
        added, so a delta of +Z always means "forwards" for the body. Angles
        are summed.
        """
        rot = rotation_matrix(self.heading, self.pitch, self.bank)
        world = self.position.to_array() + rot @ delta.position.to_array()
        return Pose(
            position=Vector3.from_array(world),
            heading=self.heading + delta.heading,
            pitch=self.pitch + delta.pitch,
            bank=self.bank + delta.bank,
        )

    def copy(self) -> 'Pose':
        return Pose(self.position.copy(), self.heading, self.pitch, self.bank)


__all__ = ['Vector3', 'Pose', 'rotation_matrix']
