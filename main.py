#!/usr/bin/env python3
#----------------------------------------------------------------------------------------------------------------------
#    main.py
#----------------------------------------------------------------------------------------------------------------------
# Entry point for hexapod teleop.
# Boots the gamepad sampler, then runs the control loop until START is pressed or SIGTERM arrives.
#----------------------------------------------------------------------------------------------------------------------
"""
Hexapod teleop entry point.

Usage:
    python3 main.py [--config controller.ini] [--hz 60] [--verbose]
"""

import sys
import signal
import logging
import argparse

from config_manager import load_config, save_clearance
from control_loop import ControlLoop
from controller import Controller
from hex_state import State
from sixaxis import SixaxisThread, DeviceError

log = logging.getLogger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hexapod gamepad teleop")
    parser.add_argument("-c", "--config", default=None, help="Path to controller.ini")
    parser.add_argument("--hz", type=float, default=None, help="Control loop rate (overrides [loop] hz)")
    parser.add_argument("--remember-clearance", action="store_true",
                        help="Write the final clearance back to the config on exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    """Entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or cfg.verbose) else logging.INFO,
        format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
    )

    hz = args.hz if args.hz is not None else cfg.loop.hz
    if not hz > 0:
        log.error("Startup failed: loop rate must be positive, got %s Hz", hz)
        return 1

    state = State()
    pad = SixaxisThread(cfg.gamepad, logger=logging.getLogger("sixaxis"))
    controller = Controller(pad, cfg.controller, logger=logging.getLogger("controller"))

    try:
        controller.boot()
    except DeviceError as e:
        log.error("Startup failed: %s", e)
        return 1

    # SIGTERM stops the loop the same way START does
    def _sigterm_handler(signum, frame):
        log.warning("Signal %d received, shutting down", signum)
        state.shutdown = True

    signal.signal(signal.SIGTERM, _sigterm_handler)

    try:
        loop = ControlLoop([controller], state, period_s=1.0 / hz, logger=logging.getLogger("loop"))
        loop.run()
    except KeyboardInterrupt:
        state.shutdown = True
    finally:
        controller.close()

    if args.remember_clearance:
        save_clearance(controller.clearance)
    return 0


if __name__ == "__main__":
    sys.exit(main())
