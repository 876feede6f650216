#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Generate a clang compilation database from MSBuild compiler task events.

This script consumes the "task command line" events of an MSBuild build, one
JSON object per line, and writes compile_commands.json for clang tooling.
Each event carries the task name, the project file and the raw command line:

    {"taskName": "CL", "projectFile": "C:\\src\\app\\app.vcxproj", "commandLine": "..."}

Only CL tasks (and tasks containing the custom task name) are recorded.

Requirements:
    - Python 3.8+
    - colorama, packaging

Usage:
    compileCommandsLogger.py [events.jsonl] [--parameters path:out.json,task:MyCL,mode:stream]

Exit Codes:
    0: Success
    1: Invalid arguments or logger parameters
    2: Output file could not be opened or written
    130: Interrupted
"""

import os
import sys
import json
import signal
import logging
import argparse
import contextlib
from typing import Any, Dict, Iterator, List, Optional, TextIO

__version__ = "1.0.0"
__author__ = "Mana Battery"

from cclog.cl_utils import CompilerLocation
from cclog.color_utils import Colors, print_error, print_success, print_warning, should_use_color
from cclog.compile_db import MergingCompileCommandsStore
from cclog.constants import (
    CL_EXE_MARKER,
    EXIT_INVALID_ARGS,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    CompileCommandsError,
    ConfigurationError,
    StoreError,
)
from cclog.invocation_logger import CompileCommandsSession
from cclog.logger_config import LoggerConfig, parse_logger_parameters, parse_store_mode
from cclog.package_verification import verify_requirements

# Export for tests
__all__ = ["EXIT_SUCCESS", "main", "build_config", "iter_events"]

logger = logging.getLogger(__name__)


def signal_handler(signum: int, frame: Any) -> None:
    """Handle interrupt signals gracefully."""
    print_warning("\nInterrupted by user. Exiting...", prefix=False)
    sys.exit(EXIT_KEYBOARD_INTERRUPT)


def setup_logging(verbose: bool) -> None:
    """Configure logging to stderr; --verbose enables per-argument debug output."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(levelname)s: %(message)s", stream=sys.stderr)


def build_config(args: argparse.Namespace) -> LoggerConfig:
    """Build the logger configuration from --parameters and the override flags.

    Raises:
        ConfigurationError: If a logger parameter or mode is not recognized
    """
    config = parse_logger_parameters(args.parameters)
    if args.output:
        config.output_path = args.output
    if args.task:
        config.custom_task = args.task
    if args.mode:
        config.mode = parse_store_mode(args.mode)
    return config


def iter_events(stream: TextIO) -> Iterator[Dict[str, Any]]:
    """Yield the JSON objects of a JSON Lines event stream.

    Blank lines are skipped; lines that are not JSON objects are skipped with a warning.
    """
    for line_number, line in enumerate(stream, 1):
        line = line.strip()
        if not line:
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Skipping event on line %d: invalid JSON (%s)", line_number, e)
            continue
        if not isinstance(event, dict):
            logger.warning("Skipping event on line %d: expected object, got %s", line_number, type(event).__name__)
            continue
        yield event


def open_events(path: str) -> Any:
    """Open the event file, or stdin for '-'."""
    if path == "-":
        return contextlib.nullcontext(sys.stdin)
    return open(path, "r", encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    parser = argparse.ArgumentParser(
        description="Generate compile_commands.json from MSBuild compiler task events.",
        epilog=f"Version {__version__}\n\nExamples:\n"
        f"  %(prog)s events.jsonl\n"
        f"  %(prog)s events.jsonl --parameters path:build/compile_commands.json,task:DistCL\n"
        f"  %(prog)s - --mode stream < events.jsonl\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("events", nargs="?", default="-", help="JSON Lines file of task command line events (default: stdin)")

    parser.add_argument("--parameters", "-p", metavar="PARAMS", help="Logger parameters: comma separated path:<file>, task:<name>, mode:<merge|stream>")

    parser.add_argument("--output", "-o", metavar="FILE", help="Output file (overrides path: parameter)")

    parser.add_argument("--task", metavar="NAME", help="Additional task name substring to record (overrides task: parameter)")

    parser.add_argument("--mode", choices=["merge", "stream"], help="Store discipline (overrides mode: parameter, default: merge)")

    parser.add_argument(
        "--strategy",
        choices=[location.value for location in CompilerLocation],
        default=CompilerLocation.AUTO.value,
        help="How to find the compiler executable in a command line (default: auto)",
    )

    parser.add_argument("--marker", default=CL_EXE_MARKER, help=f"Compiler executable file name (default: {CL_EXE_MARKER})")

    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output to stderr")

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    if not should_use_color(sys.stderr, no_color=args.no_color):
        Colors.disable()
    verify_requirements()

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print_error(str(e))
        return e.exit_code

    try:
        events = open_events(args.events)
    except OSError as e:
        print_error(f"Cannot read events from '{args.events}': {e}")
        return EXIT_INVALID_ARGS

    session = CompileCommandsSession(config, marker=args.marker, strategy=CompilerLocation(args.strategy))
    with events as stream:
        try:
            session.initialize()
        except StoreError as e:
            print_error(str(e))
            return e.exit_code

        store = session.store
        if isinstance(store, MergingCompileCommandsStore) and store.load_error is not None:
            print_warning(f"{store.load_error}; regenerating {config.output_path}")

        exit_code = EXIT_SUCCESS
        try:
            for event in iter_events(stream):
                session.handle_event(event)
        except StoreError as e:
            print_error(str(e))
            exit_code = e.exit_code
        except (OSError, UnicodeDecodeError) as e:
            print_error(f"Failed reading events from '{args.events}': {e}")
            exit_code = EXIT_RUNTIME_ERROR

        try:
            session.shutdown()
        except StoreError as e:
            print_error(str(e))
            return e.exit_code

    if exit_code != EXIT_SUCCESS:
        return exit_code

    stats = session.stats
    if stats.invocations_skipped:
        print_warning(f"Skipped {stats.invocations_skipped} compiler invocation(s), run with --verbose for details")
    print_success(
        f"Recorded {stats.records_written} compile command(s) from {stats.invocations_matched} compiler invocation(s) into {os.path.abspath(config.output_path)}",
        file=sys.stderr,
    )
    return EXIT_SUCCESS


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print_warning("Interrupted.", prefix=False)
        sys.exit(EXIT_KEYBOARD_INTERRUPT)
    except CompileCommandsError as e:
        print_error(str(e))
        sys.exit(e.exit_code)
