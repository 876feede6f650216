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
"""Tests for compileCommandsLogger.py driver."""

import io
import os
import json
import argparse
import logging
from typing import Any, Callable, Dict, List

import pytest

import compileCommandsLogger
from cclog.compile_db import StoreMode
from cclog.constants import EXIT_INVALID_ARGS, EXIT_RUNTIME_ERROR, EXIT_SUCCESS, ConfigurationError

CL = "C:\\VC\\bin\\cl.exe"

EventFactory = Callable[..., Dict[str, Any]]
EventsFileFactory = Callable[[List[Dict[str, Any]]], str]


def _namespace(**overrides: Any) -> argparse.Namespace:
    values: Dict[str, Any] = {"parameters": None, "output": None, "task": None, "mode": None}
    values.update(overrides)
    return argparse.Namespace(**values)


def _read_json(path: str) -> list:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class TestBuildConfig:
    """Tests for build_config."""

    def test_defaults(self) -> None:
        """No parameters gives the default configuration."""
        config = compileCommandsLogger.build_config(_namespace())
        assert config.output_path == "compile_commands.json"
        assert config.custom_task is None
        assert config.mode is StoreMode.MERGE

    def test_flags_override_parameters(self) -> None:
        """--output and --mode override the logger parameters."""
        config = compileCommandsLogger.build_config(_namespace(parameters="path:a.json,task:DistCL,mode:merge", output="b.json", mode="stream"))
        assert config.output_path == "b.json"
        assert config.custom_task == "DistCL"
        assert config.mode is StoreMode.STREAM

    def test_invalid_parameters(self) -> None:
        """Unknown parameters raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            compileCommandsLogger.build_config(_namespace(parameters="verbosity:high"))


class TestIterEvents:
    """Tests for iter_events."""

    def test_skips_blank_and_invalid_lines(self, caplog: Any) -> None:
        """Only JSON objects are yielded."""
        stream = io.StringIO('{"taskName": "CL"}\n\nnot json\n[1, 2]\n{"taskName": "Link"}\n')
        with caplog.at_level(logging.WARNING):
            events = list(compileCommandsLogger.iter_events(stream))
        assert events == [{"taskName": "CL"}, {"taskName": "Link"}]
        assert "line 3" in caplog.text
        assert "line 4" in caplog.text


class TestMain:
    """Tests for main()."""

    def test_merge_run(self, events_file: EventsFileFactory, make_event: EventFactory, output_path: str, capsys: Any) -> None:
        """A build writes one record per source file."""
        path = events_file(
            [
                make_event(f"{CL} /c /nologo /I include main.cpp util.cpp"),
                make_event("link.exe /OUT:app.exe main.obj util.obj", task_name="Link"),
            ]
        )
        assert compileCommandsLogger.main([path, "-o", output_path]) == EXIT_SUCCESS

        data = _read_json(output_path)
        assert [entry["file"] for entry in data] == ["main.cpp", "util.cpp"]
        assert data[0] == {"directory": "C:\\src\\app", "command": f'"{CL}" /c /nologo /I include main.cpp util.cpp', "file": "main.cpp"}
        assert "Recorded 2 compile command(s) from 1 compiler invocation(s)" in capsys.readouterr().err

    def test_parameters_string(self, events_file: EventsFileFactory, make_event: EventFactory, output_path: str) -> None:
        """The logger parameter string selects path and custom task."""
        path = events_file([make_event(f"{CL} /c a.cpp", task_name="MyDistCLTask")])
        assert compileCommandsLogger.main([path, "--parameters", f"path:{output_path},task:DistCL"]) == EXIT_SUCCESS
        assert [entry["file"] for entry in _read_json(output_path)] == ["a.cpp"]

    def test_incremental_merge(self, events_file: EventsFileFactory, make_event: EventFactory, existing_compile_commands: str) -> None:
        """Existing entries are kept and recompiled files are updated."""
        path = events_file([make_event(f"{CL} /c /O2 util.cpp extra.cpp")])
        assert compileCommandsLogger.main([path, "-o", existing_compile_commands]) == EXIT_SUCCESS

        data = _read_json(existing_compile_commands)
        assert [entry["file"] for entry in data] == ["main.cpp", "util.cpp", "extra.cpp"]
        assert data[0]["command"] == '"C:\\VC\\bin\\cl.exe" /c /Od main.cpp'
        assert data[1]["command"] == f'"{CL}" /c /O2 util.cpp extra.cpp'

    def test_stream_mode(self, events_file: EventsFileFactory, make_event: EventFactory, existing_compile_commands: str) -> None:
        """Streaming mode truncates and keeps duplicates."""
        path = events_file([make_event(f"{CL} /c /Od a.cpp"), make_event(f"{CL} /c /O2 a.cpp")])
        assert compileCommandsLogger.main([path, "-o", existing_compile_commands, "--mode", "stream"]) == EXIT_SUCCESS
        assert [entry["file"] for entry in _read_json(existing_compile_commands)] == ["a.cpp", "a.cpp"]

    def test_stdin(self, make_event: EventFactory, output_path: str, monkeypatch: Any) -> None:
        """'-' reads events from stdin."""
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(make_event(f"{CL} /c a.c")) + "\n"))
        assert compileCommandsLogger.main(["-", "-o", output_path]) == EXIT_SUCCESS
        assert [entry["file"] for entry in _read_json(output_path)] == ["a.c"]

    def test_skipped_invocation_warning(self, events_file: EventsFileFactory, make_event: EventFactory, output_path: str, capsys: Any) -> None:
        """Unclassifiable invocations are counted in a warning."""
        path = events_file([make_event("clang-cl /c a.cpp"), make_event(f"{CL} /c b.cpp")])
        assert compileCommandsLogger.main([path, "-o", output_path]) == EXIT_SUCCESS
        assert "Skipped 1 compiler invocation(s)" in capsys.readouterr().err

    def test_corrupt_database_is_regenerated(self, events_file: EventsFileFactory, make_event: EventFactory, output_path: str, capsys: Any) -> None:
        """A corrupt database is replaced with a warning."""
        with open(output_path, "w", encoding="utf-8") as f:
            f.write("{not json")
        path = events_file([make_event(f"{CL} /c a.cpp")])

        assert compileCommandsLogger.main([path, "-o", output_path]) == EXIT_SUCCESS
        assert "regenerating" in capsys.readouterr().err
        assert [entry["file"] for entry in _read_json(output_path)] == ["a.cpp"]

    def test_unknown_parameter(self, events_file: EventsFileFactory, capsys: Any) -> None:
        """Unknown logger parameters are a configuration error."""
        path = events_file([])
        assert compileCommandsLogger.main([path, "--parameters", "bogus"]) == EXIT_INVALID_ARGS
        assert "Unknown argument in compile command logger: bogus" in capsys.readouterr().err

    def test_missing_events_file(self, temp_dir: str, output_path: str, capsys: Any) -> None:
        """An unreadable events file is an argument error."""
        missing = os.path.join(temp_dir, "missing.jsonl")
        assert compileCommandsLogger.main([missing, "-o", output_path]) == EXIT_INVALID_ARGS
        assert "Cannot read events" in capsys.readouterr().err
        assert not os.path.exists(output_path)

    def test_output_directory_missing(self, events_file: EventsFileFactory, temp_dir: str, capsys: Any) -> None:
        """An output path in a missing directory is a runtime error."""
        path = events_file([])
        output = os.path.join(temp_dir, "missing", "compile_commands.json")
        assert compileCommandsLogger.main([path, "-o", output]) == EXIT_RUNTIME_ERROR
        assert "does not exist" in capsys.readouterr().err

    def test_invalid_mode_flag(self, events_file: EventsFileFactory) -> None:
        """argparse rejects unknown modes."""
        with pytest.raises(SystemExit) as exc_info:
            compileCommandsLogger.main([events_file([]), "--mode", "append"])
        assert exc_info.value.code == 2

    def test_database_write_error(self, events_file: EventsFileFactory, make_event: EventFactory, existing_compile_commands: str, capsys: Any) -> None:
        """A database that cannot be written is a runtime error and the old file survives."""
        with open(existing_compile_commands, "rb") as f:
            previous = f.read()
        path = events_file([make_event(f"{CL} /c bad\ud800.cpp")])

        assert compileCommandsLogger.main([path, "-o", existing_compile_commands]) == EXIT_RUNTIME_ERROR
        assert "Failed to write" in capsys.readouterr().err
        with open(existing_compile_commands, "rb") as f:
            assert f.read() == previous

    def test_stream_write_error(self, events_file: EventsFileFactory, make_event: EventFactory, output_path: str) -> None:
        """A record that cannot be streamed is a runtime error and the array is still closed."""
        path = events_file([make_event(f"{CL} /c a.cpp"), make_event(f"{CL} /c bad\ud800.cpp")])

        assert compileCommandsLogger.main([path, "-o", output_path, "--mode", "stream"]) == EXIT_RUNTIME_ERROR
        assert [entry["file"] for entry in _read_json(output_path)] == ["a.cpp"]
