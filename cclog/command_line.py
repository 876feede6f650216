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
"""Splitting of raw compiler command lines into arguments.

MSBuild reports the command line of a task as a single string that follows the
Windows argv conventions of the Microsoft C runtime, so shlex (POSIX rules)
cannot be used for it. The rules implemented here:

- spaces and tabs separate arguments unless inside double quotes
- ``2n`` backslashes followed by ``"`` produce ``n`` backslashes and toggle quoting
- ``2n+1`` backslashes followed by ``"`` produce ``n`` backslashes and a literal ``"``
- backslashes not followed by ``"`` are literal
- ``""`` inside a quoted region produces a literal ``"`` and stays quoted
- an unterminated quoted region runs to the end of the string
"""

import logging
import subprocess
from typing import Iterator, List, Sequence, Tuple

from .constants import TokenizationError

logger = logging.getLogger(__name__)

__all__ = ["split_command_line", "split_first_argument", "join_command_line"]

_SEPARATORS = " \t"


def _scan_arguments(command_line: str) -> Iterator[Tuple[str, int]]:
    """Yield each argument together with the index just past its last character."""
    length = len(command_line)
    i = 0
    while True:
        while i < length and command_line[i] in _SEPARATORS:
            i += 1
        if i >= length:
            return

        chars: List[str] = []
        in_quotes = False
        while i < length:
            char = command_line[i]

            if char == "\\":
                start = i
                while i < length and command_line[i] == "\\":
                    i += 1
                count = i - start
                if i < length and command_line[i] == '"':
                    chars.append("\\" * (count // 2))
                    if count % 2:
                        chars.append('"')
                        i += 1
                    # Even count: the quote is handled as a delimiter below
                else:
                    chars.append("\\" * count)
                continue

            if char == '"':
                if in_quotes and i + 1 < length and command_line[i + 1] == '"':
                    chars.append('"')
                    i += 2
                else:
                    in_quotes = not in_quotes
                    i += 1
                continue

            if not in_quotes and char in _SEPARATORS:
                break

            chars.append(char)
            i += 1

        yield "".join(chars), i


def _validate_command_line(command_line: str) -> None:
    if not isinstance(command_line, str):
        raise TokenizationError(f"Command line must be a string, got {type(command_line).__name__}")
    if "\0" in command_line:
        raise TokenizationError(f"Command line contains a NUL character: {command_line[:200]!r}")


def split_command_line(command_line: str) -> List[str]:
    """Split a raw command line into its arguments.

    The first argument (normally the executable) gets no special treatment.

    Args:
        command_line: Raw command line as reported by the build tool

    Returns:
        Arguments in order; empty for an empty or blank command line

    Raises:
        TokenizationError: If the command line is not a string or contains NUL
    """
    _validate_command_line(command_line)
    return [argument for argument, _ in _scan_arguments(command_line)]


def split_first_argument(command_line: str) -> Tuple[str, str]:
    """Split off the first argument and keep the remainder verbatim.

    Args:
        command_line: Raw command line as reported by the build tool

    Returns:
        Tuple of (first_argument, remainder) where remainder has its leading
        whitespace removed but its quoting untouched. Both are empty strings
        for a blank command line.

    Raises:
        TokenizationError: If the command line is not a string or contains NUL
    """
    _validate_command_line(command_line)
    for argument, end in _scan_arguments(command_line):
        return argument, command_line[end:].lstrip(_SEPARATORS)
    return "", ""


def join_command_line(arguments: Sequence[str]) -> str:
    """Quote and join arguments so that split_command_line() restores them."""
    return subprocess.list2cmdline(arguments)
