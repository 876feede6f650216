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
"""Classification of MSVC compiler invocations.

Given the raw command line of a ``CL`` task, this module finds the compiler
executable, decides which arguments name source files, and rebuilds the
command line with a canonical compiler path for the compilation database.

Only the subset of the cl.exe grammar that affects source detection is
modelled. Unknown options are ignored, response files (``@file``) are not
expanded.
"""

import re
import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .command_line import join_command_line, split_command_line, split_first_argument
from .constants import (
    ALL_SOURCES_OPTIONS,
    CL_EXE_MARKER,
    FORCED_SOURCE_OPTIONS,
    LINK_OPTION,
    OPTION_PREFIXES,
    OPTIONS_WITH_PARAM,
    RESPONSE_FILE_PREFIX,
    SOURCE_EXTENSIONS,
    ClassificationError,
)
from .path_utils import canonicalize_path, path_basename

logger = logging.getLogger(__name__)

__all__ = ["CompilerLocation", "ClassifiedInvocation", "classify_arguments", "locate_compiler", "classify_command_line"]


class CompilerLocation(enum.Enum):
    """Strategies for finding the compiler executable in a raw command line.

    Attributes:
        FIRST_TOKEN: The first argument of the command line is the executable
        CL_MARKER: The executable ends at the first occurrence of the marker
            followed by a space; used when the path is not quoted and may
            contain spaces (e.g. ``C:\\Program Files (x86)\\...\\cl.exe``)
        AUTO: FIRST_TOKEN when the first argument names the marker executable,
            CL_MARKER otherwise
    """

    AUTO = "auto"
    FIRST_TOKEN = "first-token"
    CL_MARKER = "cl-marker"


@dataclass
class ClassifiedInvocation:
    """Result of classifying one compiler command line.

    Attributes:
        compiler_path: Canonical absolute path of the compiler executable
        arguments: Argument string following the executable, verbatim
        command: Rebuilt command line (quoted canonical compiler + arguments)
        source_files: Source files compiled by the invocation, as written
    """

    compiler_path: str
    arguments: str
    command: str
    source_files: List[str] = field(default_factory=list)


def _option_name(argument: str) -> Optional[str]:
    """Return the option name without its ``/`` or ``-`` prefix, or None for non-options."""
    if argument.startswith(OPTION_PREFIXES):
        return argument[1:]
    return None


def is_source_file(filename: str) -> bool:
    """Check if a file name has a recognized C/C++ source extension.

    The extension is everything after the last dot, compared case-insensitively.
    """
    suffix_pos = filename.rfind(".")
    if suffix_pos == -1:
        return False
    return filename[suffix_pos + 1 :].lower() in SOURCE_EXTENSIONS


def classify_arguments(arguments: Sequence[str]) -> List[str]:
    """Find the source files among compiler arguments.

    The arguments must not include the compiler executable itself.

    Args:
        arguments: Tokenized arguments following the executable

    Returns:
        Forced sources (``/Tc``, ``/Tp``) in scan order, followed by the bare
        arguments that are sources, in scan order. Bare arguments are sources
        when ``/TC`` or ``/TP`` is present, otherwise when their extension is
        one of SOURCE_EXTENSIONS.
    """
    forced_sources: List[str] = []
    candidates: List[str] = []
    all_inputs_are_sources = False

    i = 0
    while i < len(arguments):
        argument = arguments[i]
        option = _option_name(argument)

        if option is None:
            if argument.startswith(RESPONSE_FILE_PREFIX):
                logger.debug("Ignoring response file: %s", argument)
            else:
                candidates.append(argument)
        elif option in OPTIONS_WITH_PARAM:
            # The value belongs to the option, never a source
            i += 1
        elif option in FORCED_SOURCE_OPTIONS:
            if i + 1 < len(arguments):
                forced_sources.append(arguments[i + 1])
            i += 1
        elif option.startswith(FORCED_SOURCE_OPTIONS):
            forced_sources.append(option[2:])
        elif option in ALL_SOURCES_OPTIONS:
            all_inputs_are_sources = True
        elif option == LINK_OPTION:
            logger.debug("Stopping at %s, %d linker argument(s) ignored", argument, len(arguments) - i - 1)
            break

        i += 1

    source_files = list(forced_sources)
    for candidate in candidates:
        if all_inputs_are_sources or is_source_file(candidate):
            source_files.append(candidate)
        else:
            logger.debug("Not a source file: %s", candidate)
    return source_files


def _names_marker_executable(argument: str, marker: str) -> bool:
    basename = path_basename(argument).lower()
    marker = marker.lower()
    stem = marker[:-4] if marker.endswith(".exe") else marker
    return basename in (marker, stem)


def _locate_by_first_argument(command_line: str) -> Tuple[str, str]:
    compiler, arguments = split_first_argument(command_line)
    if not compiler:
        raise ClassificationError("Empty compiler command line")
    return compiler, arguments


def _locate_by_marker(command_line: str, marker: str) -> Tuple[str, str]:
    # Regex keeps indices aligned with the original text, unlike lower()
    match = re.search(re.escape(marker) + " ", command_line, re.IGNORECASE)
    if match is None:
        raise ClassificationError(f"Unexpected lack of {marker} in {command_line[:200]}")
    end = match.end() - 1
    compiler = command_line[:end].strip().strip('"')
    if not compiler:
        raise ClassificationError(f"No compiler path before {marker} in {command_line[:200]}")
    return compiler, command_line[end:].lstrip()


def locate_compiler(command_line: str, marker: str = CL_EXE_MARKER, strategy: CompilerLocation = CompilerLocation.AUTO) -> Tuple[str, str]:
    """Find the compiler executable in a raw command line.

    Args:
        command_line: Raw command line as reported by the build tool
        marker: File name of the compiler executable
        strategy: How to find the executable (see CompilerLocation)

    Returns:
        Tuple of (compiler_path, argument_string), where argument_string is
        the rest of the command line with its original quoting

    Raises:
        ClassificationError: If no usable executable is found
        TokenizationError: If the command line cannot be tokenized
    """
    if strategy is CompilerLocation.FIRST_TOKEN:
        return _locate_by_first_argument(command_line)
    if strategy is CompilerLocation.CL_MARKER:
        return _locate_by_marker(command_line, marker)

    compiler, arguments = split_first_argument(command_line)
    if compiler and _names_marker_executable(compiler, marker):
        return compiler, arguments
    return _locate_by_marker(command_line, marker)


def canonical_compiler_path(compiler_path: str, base_directory: Optional[str] = None) -> str:
    """Return the absolute compiler path with ``.`` and ``..`` segments resolved.

    A relative path is resolved against base_directory, the directory the
    compiler ran in (default: the current working directory).
    """
    return canonicalize_path(compiler_path, base_directory)


def build_command(compiler_path: str, arguments: str) -> str:
    """Rebuild a command line from a compiler path and a verbatim argument string.

    The compiler path is always double-quoted since it may contain spaces.
    """
    quoted = f'"{compiler_path}"'
    if not arguments:
        return quoted
    return f"{quoted} {arguments}"


def classify_command_line(
    command_line: str,
    marker: str = CL_EXE_MARKER,
    strategy: CompilerLocation = CompilerLocation.AUTO,
    base_directory: Optional[str] = None,
) -> ClassifiedInvocation:
    """Classify one compiler command line.

    Args:
        command_line: Raw command line as reported by the build tool
        marker: File name of the compiler executable
        strategy: How to find the executable (see CompilerLocation)
        base_directory: Directory a relative compiler path is resolved against

    Returns:
        ClassifiedInvocation; source_files may be empty

    Raises:
        ClassificationError: If no usable executable is found
        TokenizationError: If the command line cannot be tokenized
    """
    compiler, arguments = locate_compiler(command_line, marker, strategy)
    source_files = classify_arguments(split_command_line(arguments))
    compiler_path = canonical_compiler_path(compiler, base_directory)

    if source_files:
        logger.debug("Sources of %s: %s", compiler_path, join_command_line(source_files))
    else:
        logger.debug("No source files in invocation of %s", compiler_path)

    return ClassifiedInvocation(
        compiler_path=compiler_path,
        arguments=arguments,
        command=build_command(compiler_path, arguments),
        source_files=source_files,
    )
