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
"""Compile commands logger session.

A session owns one compilation database store from initialize() to
shutdown(). Build events are filtered by task name, the command line of each
matching compiler task is classified, and one record per source file is handed
to the store. A malformed invocation is logged and skipped; it never ends the
session.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .cl_utils import CompilerLocation, classify_command_line
from .compile_db import CompileCommandRecord, CompileCommandsStore, create_store
from .constants import CL_EXE_MARKER, DEFAULT_TASK_NAME, InvocationError
from .logger_config import LoggerConfig
from .path_utils import parent_directory

logger = logging.getLogger(__name__)

# Keys of a task command line event
EVENT_TASK_NAME = "taskName"
EVENT_PROJECT_FILE = "projectFile"
EVENT_COMMAND_LINE = "commandLine"


@dataclass
class Invocation:
    """One observed compiler task execution.

    Attributes:
        task_name: Name of the build task (e.g. CL)
        project_file: Project file that ran the task
        command_line: Raw command line of the task
    """

    task_name: str
    project_file: str
    command_line: str

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "Invocation":
        """Build an Invocation from a task command line event.

        Raises:
            ValueError: If a key is missing or its value is not a string
        """
        values = []
        for key in (EVENT_TASK_NAME, EVENT_PROJECT_FILE, EVENT_COMMAND_LINE):
            value = event.get(key)
            if not isinstance(value, str):
                raise ValueError(f"event field '{key}' is missing or not a string")
            values.append(value)
        return cls(*values)


class TaskFilter:
    """Selects the build tasks whose command lines are recorded."""

    def __init__(self, custom_task: Optional[str] = None, task_name: str = DEFAULT_TASK_NAME):
        self.task_name = task_name
        self.custom_task = custom_task

    def matches(self, task_name: str) -> bool:
        """True for the compiler task itself or any task containing the custom name."""
        if task_name == self.task_name:
            return True
        return bool(self.custom_task) and self.custom_task in task_name


@dataclass
class SessionStats:
    """Counters reported at the end of a session."""

    events_seen: int = 0
    invocations_matched: int = 0
    invocations_skipped: int = 0
    records_written: int = 0


class CompileCommandsSession:
    """Turns compiler task events into compilation database records.

    Usage:
        with CompileCommandsSession(config) as session:
            for event in events:
                session.handle_event(event)
    """

    def __init__(self, config: LoggerConfig, marker: str = CL_EXE_MARKER, strategy: CompilerLocation = CompilerLocation.AUTO):
        self.config = config
        self.marker = marker
        self.strategy = strategy
        self.task_filter = TaskFilter(config.custom_task)
        self.store: CompileCommandsStore = create_store(config.mode, config.output_path)
        self.stats = SessionStats()

    def initialize(self) -> None:
        """Open the output store.

        Raises:
            OutputOpenError: If the output file cannot be created or read
        """
        logger.debug("Starting %s session writing to %s", self.config.mode.value, self.config.output_path)
        self.store.initialize()

    def handle_event(self, event: Mapping[str, Any]) -> int:
        """Filter a raw build event and record it when it is a compiler task.

        Returns:
            Number of records written for the event
        """
        self.stats.events_seen += 1
        try:
            invocation = Invocation.from_event(event)
        except ValueError as e:
            logger.warning("Ignoring malformed build event: %s", e)
            return 0

        if not self.task_filter.matches(invocation.task_name):
            return 0
        return self.record_invocation(invocation)

    def record_invocation(self, invocation: Invocation) -> int:
        """Classify a compiler invocation and store one record per source file.

        Tokenization and classification failures skip the invocation with a
        warning. Store write failures propagate.

        Returns:
            Number of records written for the invocation
        """
        self.stats.invocations_matched += 1
        directory = parent_directory(invocation.project_file)
        try:
            classified = classify_command_line(invocation.command_line, self.marker, self.strategy, base_directory=directory)
        except InvocationError as e:
            self.stats.invocations_skipped += 1
            logger.warning("Skipping %s task of %s: %s", invocation.task_name, invocation.project_file, e)
            return 0

        for source_file in classified.source_files:
            self.store.add(CompileCommandRecord(directory=directory, command=classified.command, file=source_file))

        self.stats.records_written += len(classified.source_files)
        return len(classified.source_files)

    def shutdown(self) -> None:
        """Finalize the output store.

        Raises:
            DatabaseWriteError: If the database cannot be written
        """
        self.store.finalize()
        logger.debug("Session finished: %s", self.stats)

    def __enter__(self) -> "CompileCommandsSession":
        self.initialize()
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self.shutdown()
