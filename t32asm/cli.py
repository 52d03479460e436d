"""Command line front end: parse, assemble and run t32 programs."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from .assembler import Assembler, AssemblerError
from .parser import ParseError, parse, print_tokens
from .vm import RunResult, VirtualMachine, VMError


class _CommandError(Exception):
    """A failure to report to the user before exiting."""


def _read_text(path: str) -> str:
    try:
        with open(path, encoding="utf-8", newline="") as source:
            return source.read()
    except OSError as exc:
        raise _CommandError(f"Could not open input file: {path}") from exc


def _read_binary(path: str) -> bytes:
    try:
        with open(path, "rb") as rom:
            return rom.read()
    except OSError as exc:
        raise _CommandError(f"Could not open file: {path}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="t32", description="t32 assembler/interpreter")
    commands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = commands.add_parser("parse", help="Parse and print instructions")
    parse_cmd.add_argument("input", help="Input file")

    assemble_cmd = commands.add_parser("assemble", help="Assemble into object file")
    assemble_cmd.add_argument("input", help="Input file")
    assemble_cmd.add_argument("output", help="Output file")

    run_cmd = commands.add_parser("run", help="Run object file")
    run_cmd.add_argument("input", help="Input file")

    return parser


def _parse_command(args: argparse.Namespace) -> None:
    print_tokens(parse(_read_text(args.input)))


def _assemble_command(args: argparse.Namespace) -> None:
    tokens = parse(_read_text(args.input))
    try:
        Assembler().assemble_to_file(args.output, tokens)
    except OSError as exc:
        raise _CommandError(f"Could not open output file: {args.output}") from exc


def _run_command(args: argparse.Namespace) -> None:
    vm = VirtualMachine(_read_binary(args.input))
    if vm.run() is RunResult.WAITING_FOR_INPUT:
        raise _CommandError(
            "Program is waiting for input but no input source is available."
        )
    sys.stdout.write("\n")
    sys.stdout.flush()


_COMMANDS = {
    "parse": _parse_command,
    "assemble": _assemble_command,
    "run": _run_command,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line interface and return the exit status."""
    args = _build_parser().parse_args(argv)
    try:
        _COMMANDS[args.command](args)
    except (_CommandError, ParseError, AssemblerError, VMError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())