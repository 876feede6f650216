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
"""Shared constants for the compile commands logger.

This module provides centralized constants used across the logger modules
to ensure consistency and make it easy to adjust defaults in one place.
"""

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Compilation Database Constants
# =============================================================================

COMPILE_COMMANDS_JSON = "compile_commands.json"  # Standard compilation database filename
JSON_INDENT = 2  # Indentation used when the merged database is written

# =============================================================================
# Build Event Constants
# =============================================================================

DEFAULT_TASK_NAME = "CL"  # MSBuild compiler task name
CL_EXE_MARKER = "cl.exe"  # Compiler executable searched for in raw command lines

# Logger parameter prefixes (case-insensitive)
PARAM_PATH = "path:"
PARAM_TASK = "task:"
PARAM_MODE = "mode:"

# =============================================================================
# Compiler Flag Grammar (MSVC cl.exe)
# =============================================================================

# Options that consume the following argument
OPTIONS_WITH_PARAM = frozenset(
    (
        "D",
        "I",
        "F",
        "U",
        "FI",
        "FU",
        "analyze:log",
        "analyze:stacksize",
        "analyze:max_paths",
        "analyze:ruleset",
        "analyze:plugin",
    )
)

FORCED_SOURCE_OPTIONS = ("Tc", "Tp")  # Next argument (or rest of this one) is a source file
ALL_SOURCES_OPTIONS = ("TC", "TP")  # Every bare input is a source file
LINK_OPTION = "link"  # Only linker options follow
OPTION_PREFIXES = ("/", "-")
RESPONSE_FILE_PREFIX = "@"

# Lowercase extensions (without the dot) of recognized source files
SOURCE_EXTENSIONS = frozenset(("c", "cxx", "cpp"))

# =============================================================================
# Exception Classes
# =============================================================================


class CompileCommandsError(Exception):
    """Base exception for all compile commands logger errors.

    All exceptions carry an exit_code attribute that indicates what exit code
    the program should use when this error is caught at the main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Validation errors (EXIT_INVALID_ARGS)
class ValidationError(CompileCommandsError):
    """Raised when input validation fails (arguments, parameters, etc)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class ConfigurationError(ValidationError):
    """Raised when a logger parameter is not recognized."""


# Per-invocation errors, never fatal for the session
class InvocationError(CompileCommandsError):
    """Raised when a single compiler invocation cannot be processed."""


class TokenizationError(InvocationError):
    """Raised when a raw command line cannot be split into arguments."""


class ClassificationError(InvocationError):
    """Raised when no compiler executable can be located in a command line."""


# Output file errors
class StoreError(CompileCommandsError):
    """Raised when the compilation database file cannot be handled."""


class OutputOpenError(StoreError):
    """Raised when the output path is unwritable or invalid at startup."""


class DatabaseLoadError(StoreError):
    """Raised when an existing compilation database cannot be parsed."""


class DatabaseWriteError(StoreError):
    """Raised when writing the compilation database fails."""
