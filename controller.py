#----------------------------------------------------------------------------------------------------------------------
#    controller.py
#----------------------------------------------------------------------------------------------------------------------
# Teleop controller: maps the operator's gamepad onto the hexapod's target state once per control cycle.
#
# Controls:
#   Left stick        walk (strafe / forward-back), relative to current pose
#   R2 - L2           turn
#   D-pad Up/Down     clearance +/- one step
#   D-pad Right/Left  speed +/- 1
#   PS                toggle orientation follow (body pitch/bank follow the pad tilt)
#   Right stick       look (head focal point); with R1 held, body offset instead
#   Select + Triangle next gait
#   Start             shut down (terminal)
#----------------------------------------------------------------------------------------------------------------------
"""
Gamepad → target state mapping for the hexapod.

The controller reads the sampler's latest InputFrame every tick and writes
State.target, State.offset / State.look_at, State.speed, State.gait_index and
State.shutdown. It never blocks on the device.
"""

from __future__ import annotations
import logging
from typing import Optional

from config_manager import ControllerConfig
from hex_state import State
from input_frame import InputFrame, AXIS_MAX, clamp_axis, clamp_pressure, clamp_unit
from latch import Latch
from math3d import Pose, Vector3


class Controller:
    """Turns InputFrames into kinematic targets.

    `source` is anything with get_frame() -> InputFrame; when it also has
    open()/start()/stop() (SixaxisThread) boot() and close() drive it.
    """

    def __init__(self,
                 source,
                 config: Optional[ControllerConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.source = source
        self.config = config or ControllerConfig()
        self.log = logger or logging.getLogger(__name__)

        self.clearance = self.config.initial_clearance

        # Body pitch/bank follow the pad orientation. Toggled with PS.
        self.orientation_follow = False

        # One latch per discrete control, to avoid key repeat while held
        self.up_latch = Latch()
        self.down_latch = Latch()
        self.left_latch = Latch()
        self.right_latch = Latch()
        self.ps_latch = Latch()
        self.select_triangle_latch = Latch()

        self._booted = False
        self._closed = False
        self.last_tick: Optional[float] = None

    def boot(self) -> None:
        """Open the gamepad and start sampling. Raises DeviceError on failure.

        A sampler thread runs once, so a closed controller cannot be booted
        again (RuntimeError).
        """
        if self._closed:
            raise RuntimeError("Controller was closed; build a new one to reboot")
        if self._booted:
            return
        self.source.open()
        self.source.start()
        self._booted = True

    def close(self) -> None:
        """Stop the sampler. Terminal for this controller."""
        if self._booted and not self._closed:
            self.source.stop()
        self._closed = True

    def _pressed(self, pressure: float) -> bool:
        return clamp_pressure(pressure) > self.config.min_button_pressure

    def tick(self, now: float, state: State) -> None:
        """Run one control cycle against the latest input frame."""

        # Do nothing if we're shutting down.
        if state.shutdown:
            return
        self.last_tick = now

        frame: InputFrame = self.source.get_frame()
        cfg = self.config

        # At any time, pressing Start shuts down the hex.
        if frame.start:
            self.log.warning("Pressed START, shutting down")
            state.shutdown = True
            return

        # Target position and heading relative to the current pose, so that
        # holding the left stick moves the machine steadily.
        lx = clamp_axis(frame.left_stick.x) / AXIS_MAX
        ly = clamp_axis(frame.left_stick.y) / AXIS_MAX
        turn = (clamp_pressure(frame.r2) - clamp_pressure(frame.l2)) / AXIS_MAX
        state.target = state.pose.add(Pose(
            position=Vector3(x=lx * cfg.move_speed, z=-ly * cfg.move_speed),
            heading=turn * cfg.rot_speed,
        ))

        # Clearance is absolute; the body must not rise continuously.
        state.target.position.y = self.clearance

        # Pad axes are swapped and inverted relative to the body.
        if self.orientation_follow:
            state.target.pitch = -clamp_unit(frame.orientation.y) * cfg.pitch_scale
            state.target.bank = -clamp_unit(frame.orientation.x) * cfg.bank_scale
        else:
            state.target.pitch = 0.0
            state.target.bank = 0.0

        rx = clamp_axis(frame.right_stick.x) / AXIS_MAX
        ry = clamp_axis(frame.right_stick.y) / AXIS_MAX

        # Right stick sets the body offset while R1 is held, otherwise the
        # focal point. The field not written keeps its previous value.
        if self._pressed(frame.r1):
            state.offset = Vector3(x=rx * cfg.x_offset_scale, z=-ry * cfg.z_offset_scale)
        else:
            state.look_at = self.focal_point(state.pose, rx, ry)

        if self.ps_latch.run(frame.ps):
            self.orientation_follow = not self.orientation_follow
            self.log.info("orientation_follow=%s", self.orientation_follow)

        # Target Y tracks clearance within the same tick.
        if self.up_latch.run(self._pressed(frame.up)):
            self.clearance += cfg.clearance_step
            state.target.position.y = self.clearance
            self.log.info("clearance=%s", self.clearance)

        if self.down_latch.run(self._pressed(frame.down)):
            self.clearance -= cfg.clearance_step
            state.target.position.y = self.clearance
            self.log.info("clearance=%s", self.clearance)

        if self.right_latch.run(self._pressed(frame.right)):
            state.speed += 1
            self.log.info("speed=%s", state.speed)

        if self.left_latch.run(self._pressed(frame.left)):
            state.speed -= 1
            self.log.info("speed=%s", state.speed)

        # Wrapping the gait index is the gait engine's job.
        if self.select_triangle_latch.run(frame.select and self._pressed(frame.triangle)):
            state.gait_index += 1
            self.log.info("gait_index=%s", state.gait_index)

    def focal_point(self, pose: Pose, rx: float, ry: float) -> Vector3:
        """Point the head should aim at, for normalized right stick (rx, ry).

        Pitch and bank of the pose are discarded, so "forwards" is relative
        to the ground rather than the chassis. Stick Y is inverted: push up to
        look up.
        """
        cfg = self.config
        level = pose.add(Pose(pitch=-pose.pitch, bank=-pose.bank))
        return level.add(Pose(position=Vector3(
            x=rx * cfg.horizontal_look_scale + cfg.focal_horizontal_offset,
            y=-ry * cfg.vertical_look_scale + cfg.focal_vertical_offset,
            z=cfg.focal_distance,
        ))).position


__all__ = ['Controller']
