"""
config_manager.py — Configuration loading and persistence for the teleop controller.

Handles controller.ini parsing, defaults, and save functions. Every section
maps to a dataclass whose defaults are used for any missing key.
"""

from __future__ import annotations
import os
import logging
import configparser
from dataclasses import dataclass, field
from typing import Optional

log = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Configuration file path (module-level state shared with main.py)
# -----------------------------------------------------------------------------
_cfg: Optional[configparser.ConfigParser] = None
_cfg_path: Optional[str] = None


def _get_config_path() -> str:
    """Return path to controller.ini relative to this module."""
    if '__file__' in globals():
        return os.path.join(os.path.dirname(__file__), 'controller.ini')
    return 'controller.ini'


# -----------------------------------------------------------------------------
# Default configuration values
# -----------------------------------------------------------------------------
@dataclass
class ControllerConfig:
    """Stick/button to target mapping constants ([controller] section)."""
    move_speed: float = 100.0           # mm per cycle at full left stick
    rot_speed: float = 15.0             # deg per cycle at full trigger difference
    horizontal_look_scale: float = 250.0
    vertical_look_scale: float = 250.0
    focal_horizontal_offset: float = 0.0
    focal_vertical_offset: float = 43.0 + 34.5  # origin to camera mount + mount to lens centre
    focal_distance: float = 500.0
    initial_clearance: float = 40.0
    clearance_step: float = 10.0        # per Up/Down press
    min_button_pressure: float = 10.0   # pressure needed to count as pressed
    bank_scale: float = 15.0            # max bank (deg) from pad orientation
    pitch_scale: float = 15.0           # max pitch (deg) from pad orientation
    x_offset_scale: float = 40.0
    z_offset_scale: float = 40.0

    @classmethod
    def from_config(cls, cfg: configparser.ConfigParser) -> 'ControllerConfig':
        """Load from ConfigParser [controller] section."""
        d = cls()
        s = 'controller'
        return cls(
            move_speed=cfg.getfloat(s, 'move_speed', fallback=d.move_speed),
            rot_speed=cfg.getfloat(s, 'rot_speed', fallback=d.rot_speed),
            horizontal_look_scale=cfg.getfloat(s, 'horizontal_look_scale', fallback=d.horizontal_look_scale),
            vertical_look_scale=cfg.getfloat(s, 'vertical_look_scale', fallback=d.vertical_look_scale),
            focal_horizontal_offset=cfg.getfloat(s, 'focal_horizontal_offset', fallback=d.focal_horizontal_offset),
            focal_vertical_offset=cfg.getfloat(s, 'focal_vertical_offset', fallback=d.focal_vertical_offset),
            focal_distance=cfg.getfloat(s, 'focal_distance', fallback=d.focal_distance),
            initial_clearance=cfg.getfloat(s, 'initial_clearance', fallback=d.initial_clearance),
            clearance_step=cfg.getfloat(s, 'clearance_step', fallback=d.clearance_step),
            min_button_pressure=cfg.getfloat(s, 'min_button_pressure', fallback=d.min_button_pressure),
            bank_scale=cfg.getfloat(s, 'bank_scale', fallback=d.bank_scale),
            pitch_scale=cfg.getfloat(s, 'pitch_scale', fallback=d.pitch_scale),
            x_offset_scale=cfg.getfloat(s, 'x_offset_scale', fallback=d.x_offset_scale),
            z_offset_scale=cfg.getfloat(s, 'z_offset_scale', fallback=d.z_offset_scale),
        )


@dataclass
class GamepadConfig:
    """Device discovery ([gamepad] section). Names match case-insensitively."""
    device_name: str = "PLAYSTATION(R)3 Controller"
    motion_device_name: str = "PLAYSTATION(R)3 Controller Motion Sensors"
    grab: bool = True   # exclusive access while running

    @classmethod
    def from_config(cls, cfg: configparser.ConfigParser) -> 'GamepadConfig':
        """Load from ConfigParser [gamepad] section."""
        d = cls()
        return cls(
            device_name=cfg.get('gamepad', 'device_name', fallback=d.device_name),
            motion_device_name=cfg.get('gamepad', 'motion_device_name', fallback=d.motion_device_name),
            grab=cfg.getboolean('gamepad', 'grab', fallback=d.grab),
        )


@dataclass
class LoopConfig:
    hz: float = 60.0

    @classmethod
    def from_config(cls, cfg: configparser.ConfigParser) -> 'LoopConfig':
        return cls(hz=cfg.getfloat('loop', 'hz', fallback=cls.hz))


@dataclass
class TeleopConfig:
    """Master configuration container holding all subsystem configs."""
    verbose: bool = False
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    gamepad: GamepadConfig = field(default_factory=GamepadConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)


# -----------------------------------------------------------------------------
# Load configuration
# -----------------------------------------------------------------------------
def load_config(config_path: Optional[str] = None) -> TeleopConfig:
    """Load configuration from controller.ini file.

    Returns a TeleopConfig dataclass with all values populated.
    Missing file, sections or keys use defaults.
    """
    global _cfg, _cfg_path

    cfg = TeleopConfig()

    if config_path is None:
        config_path = _get_config_path()

    _cfg_path = config_path
    _cfg = configparser.ConfigParser()

    try:
        _cfg.read(config_path)
    except configparser.Error as e:
        log.error("Config read error: %s", e)
        return cfg

    try:
        if 'ui' in _cfg:
            cfg.verbose = _cfg.getboolean('ui', 'verbose', fallback=cfg.verbose)
        cfg.controller = ControllerConfig.from_config(_cfg)
        cfg.gamepad = GamepadConfig.from_config(_cfg)
        cfg.loop = LoopConfig.from_config(_cfg)
    except (configparser.Error, ValueError) as e:
        log.error("Config parse error (using defaults): %s", e)
        return TeleopConfig()

    return cfg


# -----------------------------------------------------------------------------
# Save functions
# -----------------------------------------------------------------------------
def save_clearance(clearance: float) -> bool:
    """Save the current clearance to controller.ini [controller] section,
    so the next boot starts at the height the operator left it."""
    global _cfg, _cfg_path
    if _cfg is None or _cfg_path is None:
        return False
    try:
        if 'controller' not in _cfg:
            _cfg.add_section('controller')
        _cfg.set('controller', 'initial_clearance', f'{clearance:.1f}')
        with open(_cfg_path, 'w') as f:
            _cfg.write(f)
        return True
    except (IOError, OSError, configparser.Error) as e:
        log.error("Failed to save clearance: %s", e)
        return False


__all__ = [
    'ControllerConfig',
    'GamepadConfig',
    'LoopConfig',
    'TeleopConfig',
    'load_config',
    'save_clearance',
]
