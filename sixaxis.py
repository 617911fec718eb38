#----------------------------------------------------------------------------------------------------------------------
#    sixaxis.py
#----------------------------------------------------------------------------------------------------------------------
# Background sampler for a PS3 (Sixaxis/DualShock 3) gamepad via evdev.
#
# The kernel hid-sony driver exposes two input devices per pad: the gamepad
# itself (sticks, pressure axes, buttons) and a "Motion Sensors" device
# (accelerometer). This thread reads both and keeps the freshest InputFrame
# available to the control loop.
#----------------------------------------------------------------------------------------------------------------------
"""
Sixaxis gamepad sampler.

This module provides:
- Gamepad discovery by device name (evdev)
- SixaxisThread: background reader publishing immutable InputFrame snapshots
- Event → InputFrame field mapping for the hid-sony layout

Usage:
    pad = SixaxisThread(GamepadConfig())
    pad.open()      # raises DeviceError if no pad is found
    pad.start()
    ...
    frame = pad.get_frame()
    ...
    pad.stop()
"""

from __future__ import annotations
import time
import select
import logging
import threading
from dataclasses import replace
from typing import Optional, Dict, Tuple

from evdev import InputDevice, ecodes, list_devices

from config_manager import GamepadConfig
from input_frame import InputFrame, Stick, PRESSURE_MAX, clamp_axis, clamp_pressure
from math3d import Vector3

#----------------------------------------------------------------------------------------------------------------------
# Event mapping (hid-sony)
#----------------------------------------------------------------------------------------------------------------------

# Sticks report 0..255 with 128 at rest
STICK_CENTER = 128

# (stick attribute, component)
STICK_AXES: Dict[int, Tuple[str, str]] = {
    ecodes.ABS_X: ('left_stick', 'x'),
    ecodes.ABS_Y: ('left_stick', 'y'),
    ecodes.ABS_RX: ('right_stick', 'x'),
    ecodes.ABS_RY: ('right_stick', 'y'),
}

# Analog trigger pressure, 0..255
PRESSURE_AXES: Dict[int, str] = {
    ecodes.ABS_Z: 'l2',
    ecodes.ABS_RZ: 'r2',
}

# Buttons consumed as pressures. The driver only reports them as keys, so a
# press reads as full pressure.
PRESSURE_BUTTONS: Dict[int, str] = {
    ecodes.BTN_TR: 'r1',
    ecodes.BTN_NORTH: 'triangle',
    ecodes.BTN_DPAD_UP: 'up',
    ecodes.BTN_DPAD_DOWN: 'down',
    ecodes.BTN_DPAD_LEFT: 'left',
    ecodes.BTN_DPAD_RIGHT: 'right',
}

DIGITAL_BUTTONS: Dict[int, str] = {
    ecodes.BTN_SELECT: 'select',
    ecodes.BTN_START: 'start',
    ecodes.BTN_MODE: 'ps',
}

ACCEL_AXES: Dict[int, int] = {
    ecodes.ABS_X: 0,
    ecodes.ABS_Y: 1,
    ecodes.ABS_Z: 2,
}

POLL_TIMEOUT_S = 0.1


class DeviceError(RuntimeError):
    """Gamepad could not be found or opened. Fatal at startup."""


#----------------------------------------------------------------------------------------------------------------------
# Device discovery
#----------------------------------------------------------------------------------------------------------------------

def find_device(name: str) -> Optional[InputDevice]:
    """Return the first input device whose name matches (case-insensitive)."""
    wanted = name.lower()
    for path in list_devices():
        try:
            dev = InputDevice(path)
        except OSError:
            continue
        if dev.name.lower() == wanted:
            return dev
        dev.close()
    return None


#----------------------------------------------------------------------------------------------------------------------
# Sampler thread
#----------------------------------------------------------------------------------------------------------------------

class SixaxisThread(threading.Thread):
    """Background thread reading gamepad events and publishing InputFrames.

    Events are folded into a private accumulator owned by this thread; on each
    SYN_REPORT a new frozen InputFrame is built and swapped in under the lock.
    get_frame() therefore always returns a complete snapshot and never waits
    for the device.
    """

    def __init__(self,
                 config: Optional[GamepadConfig] = None,
                 logger: Optional[logging.Logger] = None,
                 device: Optional[InputDevice] = None,
                 motion_device: Optional[InputDevice] = None):
        super().__init__(daemon=True, name="SixaxisThread")
        self.config = config or GamepadConfig()
        self.log = logger or logging.getLogger(__name__)
        self.device = device
        self.motion_device = motion_device

        # Thread control
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

        # Latest published frame (protected by lock)
        self._frame = InputFrame()

        # Working copy, only touched by the reader
        self._pending = InputFrame()
        self._accel = [0.0, 0.0, 0.0]

        # Statistics
        self._frame_count = 0
        self._error_count = 0
        self._last_error: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.device is not None and self.is_alive()

    @property
    def frame_count(self) -> int:
        with self._lock:
            return self._frame_count

    @property
    def error_count(self) -> int:
        with self._lock:
            return self._error_count

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    def get_frame(self) -> InputFrame:
        """Latest complete InputFrame (thread-safe, non-blocking)."""
        with self._lock:
            return self._frame

    def open(self) -> None:
        """Locate and claim the gamepad. Raises DeviceError if it is absent."""
        if self.device is None:
            self.device = find_device(self.config.device_name)
        if self.device is None:
            raise DeviceError(f"No gamepad named '{self.config.device_name}' found")

        if self.motion_device is None and self.config.motion_device_name:
            self.motion_device = find_device(self.config.motion_device_name)
            if self.motion_device is None:
                self.log.warning("Motion sensors not found, orientation stays level")

        if self.config.grab:
            try:
                self.device.grab()
            except OSError as e:
                path = self.device.path
                self._close_devices()
                raise DeviceError(f"Cannot grab {path}: {e}") from e

        self.log.info("Connected to %s (%s)", self.device.name, self.device.path)

    def stop(self) -> None:
        """Signal thread to stop, wait for it and release the devices."""
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout=1.0)
        if self.device is not None and self.config.grab:
            try:
                self.device.ungrab()
            except OSError:
                pass
        self._close_devices()

    def _close_devices(self) -> None:
        for dev in (self.device, self.motion_device):
            if dev is None:
                continue
            try:
                dev.close()
            except OSError:
                pass
        self.device = None
        self.motion_device = None

    #------------------------------------------------------------------------------------------------------------------
    # Event handling
    #------------------------------------------------------------------------------------------------------------------

    def apply_event(self, event, motion: bool = False) -> None:
        """Fold one evdev event into the pending frame; publish on SYN_REPORT."""
        if event.type == ecodes.EV_SYN:
            if event.code == ecodes.SYN_REPORT:
                self._publish(event.timestamp())
            return

        if motion:
            if event.type == ecodes.EV_ABS and event.code in ACCEL_AXES:
                self._accel[ACCEL_AXES[event.code]] = float(event.value)
            return

        if event.type == ecodes.EV_ABS:
            if event.code in STICK_AXES:
                attr, comp = STICK_AXES[event.code]
                stick = getattr(self._pending, attr)
                value = clamp_axis(event.value - STICK_CENTER)
                self._pending = replace(self._pending, **{attr: replace(stick, **{comp: value})})
            elif event.code in PRESSURE_AXES:
                self._pending = replace(self._pending, **{PRESSURE_AXES[event.code]: clamp_pressure(event.value)})

        elif event.type == ecodes.EV_KEY:
            pressed = event.value != 0  # 1 = down, 2 = autorepeat
            if event.code in PRESSURE_BUTTONS:
                value = PRESSURE_MAX if pressed else 0.0
                self._pending = replace(self._pending, **{PRESSURE_BUTTONS[event.code]: value})
            elif event.code in DIGITAL_BUTTONS:
                self._pending = replace(self._pending, **{DIGITAL_BUTTONS[event.code]: pressed})

    def _publish(self, timestamp: float) -> None:
        orientation = Vector3(*self._accel).normalized()
        self._pending = replace(self._pending, orientation=orientation, timestamp=timestamp)
        with self._lock:
            self._frame = self._pending
            self._frame_count += 1

    def run(self) -> None:
        """Main thread loop: wait on both devices and apply their events."""
        devices = [d for d in (self.device, self.motion_device) if d is not None]
        if not devices:
            return

        while not self._stop_event.is_set():
            try:
                readable, _, _ = select.select(devices, [], [], POLL_TIMEOUT_S)
                for dev in readable:
                    motion = dev is self.motion_device
                    for event in dev.read():
                        self.apply_event(event, motion=motion)
            except BlockingIOError:
                continue
            except OSError as e:
                # Pad disconnected; the last published frame stays current
                with self._lock:
                    self._error_count += 1
                    self._last_error = f"Read error: {e}"
                self.log.error("Gamepad read error, sampler stopped: %s", e)
                break


#----------------------------------------------------------------------------------------------------------------------
# Standalone Test
#----------------------------------------------------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    pad = SixaxisThread()
    pad.open()
    pad.start()
    try:
        while True:
            f = pad.get_frame()
            print(f"\rL({f.left_stick.x:+4.0f},{f.left_stick.y:+4.0f}) "
                  f"R({f.right_stick.x:+4.0f},{f.right_stick.y:+4.0f}) "
                  f"L2={f.l2:3.0f} R2={f.r2:3.0f} R1={f.r1:3.0f} "
                  f"ori=({f.orientation.x:+.2f},{f.orientation.y:+.2f},{f.orientation.z:+.2f})",
                  end="", flush=True)
            time.sleep(0.05)
    except KeyboardInterrupt:
        print()
    finally:
        pad.stop()
