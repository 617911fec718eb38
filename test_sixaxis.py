"""
test_sixaxis.py - Gamepad sampler tests (no hardware).

Tests validate:
- Stick, pressure and button events map onto InputFrame fields
- Frames are only published on SYN_REPORT, as a new immutable snapshot
- Accelerometer events produce a normalized orientation
- Discovery skips device nodes it cannot open
- open() raises DeviceError without a pad and grabs the pad it finds
- A failed grab closes both devices before raising
- stop() releases the devices
"""

from evdev import ecodes
from evdev.events import InputEvent

import sixaxis
from config_manager import GamepadConfig
from sixaxis import SixaxisThread, DeviceError

TOL = 1e-9


# ============================================================================
# Test Utilities
# ============================================================================

class FakeDevice:
    def __init__(self, name="PLAYSTATION(R)3 Controller", path="/dev/input/event7"):
        self.name = name
        self.path = path
        self.grabbed = False
        self.closed = False

    def grab(self):
        self.grabbed = True

    def ungrab(self):
        self.grabbed = False

    def close(self):
        self.closed = True


def ev(type_, code, value, sec=100, usec=0):
    return InputEvent(sec, usec, type_, code, value)


def syn(sec=100, usec=0):
    return ev(ecodes.EV_SYN, ecodes.SYN_REPORT, 0, sec, usec)


def feed(pad: SixaxisThread, *events, motion=False):
    for e in events:
        pad.apply_event(e, motion=motion)


# ============================================================================
# Event mapping
# ============================================================================

def test_sticks_centre_and_extremes():
    pad = SixaxisThread(GamepadConfig())
    feed(pad,
         ev(ecodes.EV_ABS, ecodes.ABS_X, 255),
         ev(ecodes.EV_ABS, ecodes.ABS_Y, 128),
         ev(ecodes.EV_ABS, ecodes.ABS_RX, 0),
         ev(ecodes.EV_ABS, ecodes.ABS_RY, 200),
         syn())
    f = pad.get_frame()
    assert f.left_stick.x == 127.0
    assert f.left_stick.y == 0.0
    assert f.right_stick.x == -127.0   # 0 - 128 clamps to -127
    assert f.right_stick.y == 72.0


def test_trigger_pressures():
    pad = SixaxisThread(GamepadConfig())
    feed(pad,
         ev(ecodes.EV_ABS, ecodes.ABS_Z, 40),
         ev(ecodes.EV_ABS, ecodes.ABS_RZ, 255),
         syn())
    f = pad.get_frame()
    assert f.l2 == 40.0
    assert f.r2 == 255.0


def test_buttons():
    pad = SixaxisThread(GamepadConfig())
    feed(pad,
         ev(ecodes.EV_KEY, ecodes.BTN_DPAD_UP, 1),
         ev(ecodes.EV_KEY, ecodes.BTN_TR, 1),
         ev(ecodes.EV_KEY, ecodes.BTN_NORTH, 1),
         ev(ecodes.EV_KEY, ecodes.BTN_SELECT, 1),
         ev(ecodes.EV_KEY, ecodes.BTN_MODE, 1),
         syn())
    f = pad.get_frame()
    assert f.up == 255.0 and f.r1 == 255.0 and f.triangle == 255.0
    assert f.select and f.ps
    assert not f.start
    assert f.down == 0.0

    feed(pad,
         ev(ecodes.EV_KEY, ecodes.BTN_DPAD_UP, 0),
         ev(ecodes.EV_KEY, ecodes.BTN_MODE, 0),
         ev(ecodes.EV_KEY, ecodes.BTN_START, 1),
         syn())
    f = pad.get_frame()
    assert f.up == 0.0
    assert not f.ps
    assert f.start
    assert f.r1 == 255.0   # untouched buttons keep their state


def test_publish_only_on_syn_report():
    pad = SixaxisThread(GamepadConfig())
    first = pad.get_frame()
    feed(pad, ev(ecodes.EV_ABS, ecodes.ABS_X, 255))
    assert pad.get_frame() is first
    assert pad.get_frame().left_stick.x == 0.0
    assert pad.frame_count == 0

    feed(pad, syn(sec=5, usec=500000))
    published = pad.get_frame()
    assert published is not first
    assert published.left_stick.x == 127.0
    assert abs(published.timestamp - 5.5) < TOL
    assert pad.frame_count == 1

    # later events do not mutate an already published frame
    feed(pad, ev(ecodes.EV_ABS, ecodes.ABS_X, 0))
    assert published.left_stick.x == 127.0


def test_motion_orientation_normalized():
    pad = SixaxisThread(GamepadConfig())
    feed(pad,
         ev(ecodes.EV_ABS, ecodes.ABS_X, 30),
         ev(ecodes.EV_ABS, ecodes.ABS_Y, 0),
         ev(ecodes.EV_ABS, ecodes.ABS_Z, 40),
         syn(),
         motion=True)
    o = pad.get_frame().orientation
    assert abs(o.x - 0.6) < TOL
    assert abs(o.y) < TOL
    assert abs(o.z - 0.8) < TOL
    # motion axes never leak into the stick fields
    assert pad.get_frame().left_stick.x == 0.0


def test_unmapped_events_ignored():
    pad = SixaxisThread(GamepadConfig())
    feed(pad,
         ev(ecodes.EV_KEY, ecodes.BTN_THUMBL, 1),
         ev(ecodes.EV_MSC, ecodes.MSC_SCAN, 42),
         syn())
    f = pad.get_frame()
    assert f.left_stick.x == 0.0 and not f.start


# ============================================================================
# Device lifecycle
# ============================================================================

def test_open_without_pad_raises():
    original = sixaxis.find_device
    sixaxis.find_device = lambda name: None
    try:
        pad = SixaxisThread(GamepadConfig())
        try:
            pad.open()
        except DeviceError as e:
            assert "PLAYSTATION" in str(e)
        else:
            raise AssertionError("open() should raise DeviceError")
    finally:
        sixaxis.find_device = original


def test_find_device_skips_unreadable_nodes():
    devices = {
        "/dev/input/event3": PermissionError(13, "Permission denied"),
        "/dev/input/event4": FakeDevice(name="Some Keyboard", path="/dev/input/event4"),
        "/dev/input/event7": FakeDevice(),
    }

    def open_device(path):
        dev = devices[path]
        if isinstance(dev, Exception):
            raise dev
        return dev

    original_list, original_open = sixaxis.list_devices, sixaxis.InputDevice
    sixaxis.list_devices = lambda: list(devices)
    sixaxis.InputDevice = open_device
    try:
        found = sixaxis.find_device("playstation(r)3 controller")
        assert found is devices["/dev/input/event7"]
        assert devices["/dev/input/event4"].closed
        assert sixaxis.find_device("missing pad") is None
    finally:
        sixaxis.list_devices, sixaxis.InputDevice = original_list, original_open


def test_open_grabs_and_stop_releases():
    dev = FakeDevice()
    motion = FakeDevice(name="PLAYSTATION(R)3 Controller Motion Sensors")
    pad = SixaxisThread(GamepadConfig(), device=dev, motion_device=motion)
    pad.open()
    assert dev.grabbed
    assert not motion.grabbed
    pad.stop()
    assert not dev.grabbed
    assert dev.closed and motion.closed


def test_failed_grab_releases_devices():
    class BusyDevice(FakeDevice):
        def grab(self):
            raise OSError(16, "Device or resource busy")

    dev = BusyDevice()
    motion = FakeDevice(name="PLAYSTATION(R)3 Controller Motion Sensors")
    pad = SixaxisThread(GamepadConfig(), device=dev, motion_device=motion)
    try:
        pad.open()
    except DeviceError as e:
        assert dev.path in str(e)
    else:
        raise AssertionError("open() should raise DeviceError when grab fails")
    assert dev.closed and motion.closed
    assert pad.device is None and pad.motion_device is None


def test_open_without_grab():
    dev = FakeDevice()
    pad = SixaxisThread(GamepadConfig(grab=False, motion_device_name=""), device=dev)
    pad.open()
    assert not dev.grabbed
    assert pad.motion_device is None


if __name__ == "__main__":
    for name, fn in list(globals().items()):
        if name.startswith("test_") and callable(fn):
            fn()
            print(f"  [✓] {name}")
