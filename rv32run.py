#!/usr/bin/env python3
"""
rv32run: RV32 assembly interpreter CLI

Usage:
    python rv32run.py <program.s> [--memory 10240] [--max-steps N]
                      [--break ADDR ...] [--trace] [--dump START:LEN]
                      [--step] [-v | -q] [--log-file PATH] [--plain]

Loads the program (one instruction or label per line), runs it to
completion, then prints the register file, the PC and the memory access
history (most recent first).

--step switches to an interactive session:
    Enter   execute one instruction
    r       run to completion
    q       quit

Examples:
    python rv32run.py fib.s
    python rv32run.py fib.s --trace --dump 0:64
    python rv32run.py loop.s --max-steps 1000 --break 40
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from rv32_interpreter import __version__, Interpreter, InterpreterError, StopReason


def setup_logging(
    level: int = logging.WARNING,
    log_file: Optional[str] = None,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the 'rv32_interpreter' logger tree and return it.

    Console: RichHandler (or a plain stderr StreamHandler with --plain).
    File:    everything at DEBUG+ when --log-file is given.
    """
    logger = logging.getLogger("rv32_interpreter")
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if log_file else level)

    if rich_console:
        ch = RichHandler(
            level=level,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    ch.setLevel(level)
    logger.addHandler(ch)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)

    return logger


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...) or decimal."""
    value = value.strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    return int(value)


def parse_dump_arg(value: str):
    """START:LEN -> (start, length)."""
    start, _, length = value.partition(":")
    return parse_int_arg(start), parse_int_arg(length) if length else 256


def print_state(emu: Interpreter, history_limit: int = 20):
    print(emu.regs.display())
    print(f"\nPC: {emu.pc}")
    history = emu.access_history
    if history:
        print("\nMemory history:")
        for entry in history[:history_limit]:
            print(f"  {entry}")
        if len(history) > history_limit:
            print(f"  ... {len(history) - history_limit} more")


def interactive(emu: Interpreter):
    """Enter = step, r = run, q = quit."""
    while True:
        line = emu.current_line()
        status = "done" if emu.done else f"pc={emu.pc}"
        try:
            cmd = input(f"[{status}] {line.strip()} > ").strip().lower()
        except EOFError:
            return
        if cmd == "q":
            return
        if cmd == "r":
            reason = emu.run()
            print(f"[rv32run] {reason.value}")
        elif not emu.done:
            emu.step()
        print_state(emu, history_limit=5)


def main():
    parser = argparse.ArgumentParser(
        prog="rv32run",
        description="Interpret an RV32 assembly program",
    )
    parser.add_argument("input", help="Assembly source file")
    parser.add_argument("--memory", default=str(Interpreter.DEFAULT_MEMORY_SIZE),
                        help="Data memory size in bytes (default: %(default)s)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Stop with TIMEOUT after this many steps")
    parser.add_argument("--break", dest="breakpoints", action="append", default=[],
                        help="Breakpoint address (repeatable, hex or decimal)")
    parser.add_argument("--trace", action="store_true",
                        help="Print the executed instruction trace")
    parser.add_argument("--dump", default=None,
                        help="Hex dump memory START:LEN after the run")
    parser.add_argument("--step", action="store_true",
                        help="Interactive single-step session")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="-v for INFO, -vv for per-instruction DEBUG")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only report errors")
    parser.add_argument("--log-file", default=None,
                        help="Write a DEBUG log to this file")
    parser.add_argument("--plain", action="store_true",
                        help="Plain stderr logging instead of rich")
    parser.add_argument("--version", action="version",
                        version=f"rv32run {__version__}")

    args = parser.parse_args()

    if args.quiet:
        level = logging.ERROR
    elif args.verbose >= 2:
        level = logging.DEBUG
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    log = setup_logging(level, args.log_file, rich_console=not args.plain)

    try:
        source = Path(args.input).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        memory_size = parse_int_arg(args.memory)
        dump = parse_dump_arg(args.dump) if args.dump else None
        breakpoints = [parse_int_arg(b) for b in args.breakpoints]
        emu = Interpreter(memory_size)
    except ValueError as e:
        print(f"Error: bad numeric argument: {e}", file=sys.stderr)
        sys.exit(1)

    emu.load(source)
    for addr in breakpoints:
        emu.add_breakpoint(addr)
    emu.enable_trace(args.trace)
    log.info("loaded %s: %d lines, %d labels", args.input, len(emu.program), len(emu.labels))

    try:
        if args.step:
            interactive(emu)
            return

        reason = emu.run(max_steps=args.max_steps)
        log.info("stopped: %s", reason.value)

        if args.trace:
            print(emu.get_trace())
            print()
        if not args.quiet:
            print_state(emu)
            if reason is not StopReason.DONE:
                print(f"\n[rv32run] stopped: {reason.value} at pc={emu.pc}")
        if dump is not None:
            print()
            print(emu.mem.hexdump(*dump))

    except InterpreterError as e:
        print(f"{e.kind} error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Internal interpreter error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(2)


if __name__ == "__main__":
    main()
