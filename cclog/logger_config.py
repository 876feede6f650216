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
"""Parsing of compile commands logger parameters.

Parameters use the MSBuild logger parameter syntax: a comma separated list of
``name:value`` options, all optional and in any order::

    path:custom/path/here.json    where to write the database (default: compile_commands.json)
    task:customTaskName           extra task name substring to record, e.g. a distributed CL task
    mode:merge|stream             store discipline (default: merge)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .compile_db import StoreMode
from .constants import COMPILE_COMMANDS_JSON, PARAM_MODE, PARAM_PATH, PARAM_TASK, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class LoggerConfig:
    """Settings of one logger session.

    Attributes:
        output_path: Path of the compilation database file
        custom_task: Additional task name substring to match, beyond CL
        mode: Store discipline used for the output file
    """

    output_path: str = COMPILE_COMMANDS_JSON
    custom_task: Optional[str] = None
    mode: StoreMode = StoreMode.MERGE


def parse_store_mode(value: str) -> StoreMode:
    """Parse a store mode name (case-insensitive).

    Raises:
        ConfigurationError: If the name is not a known mode
    """
    try:
        return StoreMode(value.strip().lower())
    except ValueError:
        choices = ", ".join(mode.value for mode in StoreMode)
        raise ConfigurationError(f"Unknown store mode in compile command logger: {value} (expected one of: {choices})") from None


def parse_logger_parameters(parameters: Optional[str]) -> LoggerConfig:
    """Parse a logger parameter string into a LoggerConfig.

    Args:
        parameters: Comma separated options, or None/empty for defaults

    Returns:
        Parsed configuration

    Raises:
        ConfigurationError: If an option is not recognized
    """
    config = LoggerConfig()
    if not parameters:
        return config

    for arg in parameters.split(","):
        if not arg.strip():
            continue
        lowered = arg.lower()
        if lowered.startswith(PARAM_PATH):
            config.output_path = arg[len(PARAM_PATH) :]
        elif lowered.startswith(PARAM_TASK):
            config.custom_task = arg[len(PARAM_TASK) :]
        elif lowered.startswith(PARAM_MODE):
            config.mode = parse_store_mode(arg[len(PARAM_MODE) :])
        else:
            raise ConfigurationError(f"Unknown argument in compile command logger: {arg}")

    logger.debug("Logger configuration: %s", config)
    return config
