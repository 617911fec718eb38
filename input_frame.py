"""
input_frame.py — Normalized gamepad snapshot for one control cycle.

The sampler thread builds a new InputFrame for every batch of device events
and publishes it by reference; consumers never see a partially updated frame.

Ranges:
    sticks      -127 .. 127   (+x right, +y down, as reported by the pad)
    pressures      0 .. 255   (digital-only buttons read 0 or 255)
    orientation  unit vector  (normalized accelerometer / gravity)
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field

from math3d import Vector3

AXIS_MAX = 127.0
PRESSURE_MAX = 255.0


def _finite(value: float) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_axis(value: float) -> float:
    """Clamp a stick reading to [-127, 127]; NaN/inf read as centred."""
    return clamp(_finite(value), -AXIS_MAX, AXIS_MAX)


def clamp_pressure(value: float) -> float:
    """Clamp a pressure reading to [0, 255]; NaN/inf read as released."""
    return clamp(_finite(value), 0.0, PRESSURE_MAX)


def clamp_unit(value: float) -> float:
    """Clamp an orientation component to [-1, 1]."""
    return clamp(_finite(value), -1.0, 1.0)


@dataclass(frozen=True)
class Stick:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class InputFrame:
    """Controller state for one cycle."""
    left_stick: Stick = field(default_factory=Stick)
    right_stick: Stick = field(default_factory=Stick)

    # Analog pressures
    l2: float = 0.0
    r2: float = 0.0
    r1: float = 0.0
    up: float = 0.0
    down: float = 0.0
    left: float = 0.0
    right: float = 0.0
    triangle: float = 0.0

    # Digital buttons
    select: bool = False
    ps: bool = False
    start: bool = False

    orientation: Vector3 = field(default_factory=Vector3)

    # Event time (s) of the SYN_REPORT that published this frame
    timestamp: float = 0.0


__all__ = [
    'InputFrame',
    'Stick',
    'AXIS_MAX',
    'PRESSURE_MAX',
    'clamp',
    'clamp_axis',
    'clamp_pressure',
    'clamp_unit',
]
