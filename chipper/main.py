"""
Chipper -- CHIP-8 interpreter.

Command-line entry point.  Parses arguments, builds the interpreter from a
program file, and launches the pygame display window.

Usage examples::

    # Run a program with the modern quirk set
    chipper games/PONG.ch8

    # Original COSMAC VIP behaviour, bigger window, faster clock
    chipper games/BLINKY.ch8 --quirks cosmac_vip --scale 12 --ips 1000

    # Print metadata / a disassembly listing without launching
    chipper games/PONG.ch8 --info
    chipper games/PONG.ch8 --disassemble

    # Run 500 instructions headless and print the registers and screen
    chipper games/PONG.ch8 --headless 500
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from chipper.core.clock import DEFAULT_INSTRUCTIONS_PER_SECOND
from chipper.core.errors import Chip8Error
from chipper.core.logger import DEFAULT_LOGGER, LEVEL_TRACE, ConsoleLogger, ILogger
from chipper.core.types import QuirkPreset, StepOutcome
from chipper.shell.services.machine_factory import MachineFactory
from chipper.shell.services.rom_service import RomService


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chipper",
        description=(
            "Chipper -- CHIP-8 interpreter.  "
            "Load a program image and run it in a pygame window."
        ),
    )

    parser.add_argument(
        "rom",
        help="Path to the program image (.ch8, .c8, or raw binary)",
    )

    # Quirks
    preset_names = [p.name.lower() for p in QuirkPreset]
    parser.add_argument(
        "--quirks", "-q",
        choices=preset_names,
        default="modern",
        metavar="PRESET",
        help="Compatibility preset.  Valid values: " + ", ".join(preset_names),
    )
    parser.add_argument(
        "--wrap-draw",
        dest="draw_wrap",
        action="store_const",
        const=True,
        default=None,
        help="Wrap sprites around the screen edges instead of clipping.",
    )
    parser.add_argument(
        "--no-wrap-draw",
        dest="draw_wrap",
        action="store_const",
        const=False,
        help="Clip sprites at the screen edges.",
    )
    parser.add_argument(
        "--strict-memory",
        dest="memory_wrap",
        action="store_const",
        const=False,
        default=None,
        help="Fail on memory accesses past 0xFFF instead of wrapping.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the RND instruction (default: random).",
    )

    # Timing / display
    parser.add_argument(
        "--ips",
        type=int,
        default=DEFAULT_INSTRUCTIONS_PER_SECOND,
        help=f"Instructions per second.  Default: {DEFAULT_INSTRUCTIONS_PER_SECOND}.",
    )
    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=10,
        help="Display scale factor (1-20).  Default: 10.",
    )
    parser.add_argument(
        "--paused",
        action="store_true",
        default=False,
        help="Start paused (F5 resumes, F6 steps).",
    )

    # Audio
    parser.add_argument(
        "--no-audio",
        action="store_true",
        default=False,
        help="Disable the buzzer.",
    )

    # Debugging / info
    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print program metadata and exit without launching the window.",
    )
    parser.add_argument(
        "--disassemble",
        action="store_true",
        default=False,
        help="Print a disassembly listing and exit.",
    )
    parser.add_argument(
        "--headless",
        type=int,
        default=None,
        metavar="STEPS",
        help="Run STEPS instructions without a window, then print the state.",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        default=False,
        help="Print every executed instruction.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Info / listing modes
# ---------------------------------------------------------------------------

def _print_rom_info(rom_path: str) -> int:
    """Print human-readable metadata for a program."""
    info = MachineFactory.describe(rom_path)

    print("Chipper Program Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("=" * 40)
    return 0


def _print_listing(rom_path: str) -> int:
    for line in RomService.disassemble(RomService.read(rom_path)):
        print(line)
    return 0


def _print_state(machine) -> None:
    state = machine.debug_state()
    print(f"PC=${state['pc']:03X}  I=${state['i']:03X}  SP={state['sp']}  "
          f"DT={state['delay_timer']}  ST={state['sound_timer']}  "
          f"cycles={state['cycles']}")
    print("  " + "  ".join(f"V{n:X}={val:02X}" for n, val in enumerate(state["v"])))
    if state["stack"]:
        print("  stack: " + " ".join(f"{a:03X}" for a in state["stack"]))
    print(f"  next: {state['instruction']}")


def _run_headless(machine, steps: int) -> int:
    """Run *steps* instructions, ticking timers every ~12 steps, then
    print the registers and the frame buffer."""
    print("=" * 64)
    print("Chipper Headless Run")
    print("=" * 64)

    executed = 0
    outcome = StepOutcome.EXECUTED
    while executed < steps:
        outcome = machine.step()
        if outcome is StepOutcome.BLOCKED:
            break
        executed += 1
        if executed % 12 == 0:
            machine.tick_timers()

    print(f"Executed {executed} instructions"
          + (" (blocked waiting for a key)" if outcome is StepOutcome.BLOCKED else ""))
    _print_state(machine)
    print(machine.frame_buffer.to_text(on="#", off="."))
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("chipper.main")

    rom_path: str = os.path.expanduser(args.rom)
    if not os.path.isfile(rom_path):
        print(f"Error: program file not found: {rom_path}", file=sys.stderr)
        return 1

    try:
        if args.info:
            return _print_rom_info(rom_path)
        if args.disassemble:
            return _print_listing(rom_path)
    except (OSError, Chip8Error) as exc:
        print(f"Error reading program: {exc}", file=sys.stderr)
        return 1

    core_logger: ILogger = ConsoleLogger(LEVEL_TRACE) if args.trace else DEFAULT_LOGGER

    try:
        machine = MachineFactory.create(
            rom_path,
            args.quirks,
            seed=args.seed,
            core_logger=core_logger,
            draw_wrap=args.draw_wrap,
            memory_wrap=args.memory_wrap,
        )
    except (OSError, Chip8Error, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.headless is not None:
        try:
            return _run_headless(machine, args.headless)
        except Chip8Error as exc:
            logger.error("Halted: %s", exc)
            _print_state(machine)
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    # Imported here so --info / --headless work without a display.
    from chipper.platform.window import Window

    logger.info("Starting emulation ...")
    window: Optional[Window] = None
    try:
        window = Window(
            machine,
            scale=args.scale,
            instructions_per_second=args.ips,
            enable_audio=not args.no_audio,
            start_paused=args.paused,
        )
        window.run()
    except KeyboardInterrupt:
        pass

    if window is not None and window.error is not None:
        print(f"Error: {window.error}", file=sys.stderr)
        _print_state(machine)
        return 1

    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":
    sys.exit(main())
