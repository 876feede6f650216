#!/usr/bin/env python3
#****************************************************************************************************************************************************
#* BSD 3-Clause License
#*
#* Copyright (c) 2025, Mana Battery
#* All rights reserved.
#*
#* Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
#*
#* 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
#* 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
#*    documentation and/or other materials provided with the distribution.
#* 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
#*    software without specific prior written permission.
#*
#* THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
#* THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
#* CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
#* PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
#* LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
#* EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#****************************************************************************************************************************************************
"""Pytest configuration and shared base fixtures for compile commands logger tests.

Fixture Scopes:
- function: Default, recreated for each test
"""

import os
import sys
import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Scope: function (default)
    Use for: File I/O operations that need isolation
    """
    tmpdir = tempfile.mkdtemp(prefix="cclog_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def output_path(temp_dir: str) -> str:
    """Path of a compile_commands.json that does not exist yet.

    Scope: function
    Dependencies: temp_dir
    """
    return os.path.join(temp_dir, "compile_commands.json")


@pytest.fixture
def existing_compile_commands(output_path: str) -> str:
    """Create a compile_commands.json left behind by a previous build.

    Scope: function
    Dependencies: output_path
    Use for: Testing incremental (merging) builds
    """
    compile_commands = [
        {"directory": "C:\\src\\app", "command": '"C:\\VC\\bin\\cl.exe" /c /Od main.cpp', "file": "main.cpp"},
        {"directory": "C:\\src\\app", "command": '"C:\\VC\\bin\\cl.exe" /c /Od util.cpp', "file": "util.cpp"},
    ]
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(compile_commands, f, indent=2)
    return output_path


@pytest.fixture
def make_event() -> Callable[..., Dict[str, Any]]:
    """Factory for task command line events.

    Scope: function
    Use for: Feeding sessions and the driver
    """

    def _make_event(command_line: str, task_name: str = "CL", project_file: str = "C:\\src\\app\\app.vcxproj") -> Dict[str, Any]:
        return {"taskName": task_name, "projectFile": project_file, "commandLine": command_line}

    return _make_event


@pytest.fixture
def events_file(temp_dir: str) -> Callable[[List[Dict[str, Any]]], str]:
    """Factory writing events to a JSON Lines file.

    Scope: function
    Dependencies: temp_dir
    """

    def _events_file(events: List[Dict[str, Any]]) -> str:
        path = os.path.join(temp_dir, "events.jsonl")
        with open(path, "w", encoding="utf-8") as f:
            for event in events:
                f.write(json.dumps(event) + "\n")
        return path

    return _events_file
