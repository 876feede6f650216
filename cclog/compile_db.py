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
"""Compilation database model and the stores that persist it.

Format spec: https://clang.llvm.org/docs/JSONCompilationDatabase.html

Two store disciplines are supported:

- MERGE: load the existing database, upsert one record per observed source
  file, write the whole database once at shutdown. Incremental builds
  accumulate entries across runs. Entries for files no longer built are kept.
- STREAM: truncate the file at startup and append one record per observation
  as it arrives, closing the JSON array at shutdown. Nothing is merged, and a
  killed process leaves an unterminated array behind.
"""

import os
import json
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from .constants import JSON_INDENT, DatabaseLoadError, DatabaseWriteError, OutputOpenError

logger = logging.getLogger(__name__)

__all__ = [
    "StoreMode",
    "CompileCommandRecord",
    "CompilationDatabase",
    "load_compilation_database",
    "MergingCompileCommandsStore",
    "StreamingCompileCommandsStore",
    "create_store",
]

_RECORD_KEYS = ("directory", "command", "file")


class StoreMode(enum.Enum):
    """How the compilation database file is maintained during a session."""

    MERGE = "merge"
    STREAM = "stream"


@dataclass
class CompileCommandRecord:
    """One entry of a compilation database.

    Attributes:
        directory: Working directory of the compilation (the project directory)
        command: Full compiler command line
        file: Source file as it appeared on the command line; the database key
    """

    directory: str
    command: str
    file: str

    def to_dict(self) -> Dict[str, str]:
        """Return the record as a dict with keys in directory, command, file order."""
        return {"directory": self.directory, "command": self.command, "file": self.file}

    @classmethod
    def from_dict(cls, entry: Any) -> "CompileCommandRecord":
        """Build a record from a parsed JSON entry.

        Raises:
            ValueError: If the entry is not an object with string directory, command and file
        """
        if not isinstance(entry, dict):
            raise ValueError(f"expected object, got {type(entry).__name__}")
        for key in _RECORD_KEYS:
            if not isinstance(entry.get(key), str):
                raise ValueError(f"missing or non-string '{key}' in {entry}")
        return cls(directory=entry["directory"], command=entry["command"], file=entry["file"])


class CompilationDatabase:
    """Ordered compile command records with at most one record per file.

    Records keep the order in which their file was first seen; upserting a
    known file overwrites its directory and command in place.
    """

    def __init__(self, records: Iterable[CompileCommandRecord] = ()):
        self._records: List[CompileCommandRecord] = []
        self._lookup: Dict[str, CompileCommandRecord] = {}
        for record in records:
            if not self.upsert(record):
                logger.debug("Collapsed duplicate entry for %s", record.file)

    def upsert(self, record: CompileCommandRecord) -> bool:
        """Insert a record, or update the existing record for the same file.

        Args:
            record: Record to store

        Returns:
            True if a new record was appended, False if an existing one was updated
        """
        existing = self._lookup.get(record.file)
        if existing is None:
            self._records.append(record)
            self._lookup[record.file] = record
            return True

        existing.directory = record.directory
        existing.command = record.command
        return False

    def get(self, file: str) -> Optional[CompileCommandRecord]:
        return self._lookup.get(file)

    def __contains__(self, file: object) -> bool:
        return file in self._lookup

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CompileCommandRecord]:
        return iter(self._records)

    def to_list(self) -> List[Dict[str, str]]:
        return [record.to_dict() for record in self._records]

    def to_json(self) -> str:
        """Serialize the database as a pretty-printed JSON array."""
        return json.dumps(self.to_list(), indent=JSON_INDENT, ensure_ascii=False)


def load_compilation_database(path: str) -> List[CompileCommandRecord]:
    """Load the records of an existing compilation database file.

    An empty file or a JSON ``null`` document is an empty database.

    Args:
        path: Path to compile_commands.json

    Returns:
        Records in file order (duplicates included)

    Raises:
        DatabaseLoadError: If the file is not a JSON array of compile command objects
        OutputOpenError: If the file exists but cannot be read
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise DatabaseLoadError(f"Failed to decode {path}: {e}") from e
    except OSError as e:
        raise OutputOpenError(f"Failed to read {path}: {e}") from e

    if not text.strip():
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DatabaseLoadError(f"Invalid JSON in {path}: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise DatabaseLoadError(f"Invalid compilation database format in {path}: expected list, got {type(data).__name__}")

    records = []
    for index, entry in enumerate(data):
        try:
            records.append(CompileCommandRecord.from_dict(entry))
        except ValueError as e:
            raise DatabaseLoadError(f"Invalid entry {index} in {path}: {e}") from e
    return records


def check_output_path(path: str) -> None:
    """Verify that the compilation database can be written at path.

    Raises:
        OutputOpenError: If the path is empty, a directory, in a missing
            directory, or not writable
    """
    if not path:
        raise OutputOpenError("Failed to create compilation database: empty output path")

    directory = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(directory):
        raise OutputOpenError(f"Failed to create {path}: directory {directory} does not exist")
    if os.path.isdir(path):
        raise OutputOpenError(f"Failed to create {path}: path is a directory")

    if os.path.exists(path):
        if not os.access(path, os.W_OK):
            raise OutputOpenError(f"Failed to create {path}: file is not writable")
    elif not os.access(directory, os.W_OK):
        raise OutputOpenError(f"Failed to create {path}: directory {directory} is not writable")


class CompileCommandsStore:
    """Base class for compilation database stores.

    A store is initialized once, receives records through add(), and is
    finalized exactly once; later finalize() calls do nothing.
    """

    mode: StoreMode

    def __init__(self, path: str):
        self.path = path
        self.records_added = 0
        self._initialized = False
        self._finalized = False

    def initialize(self) -> None:
        raise NotImplementedError

    def add(self, record: CompileCommandRecord) -> None:
        raise NotImplementedError

    def finalize(self) -> None:
        raise NotImplementedError

    def _require_open(self) -> None:
        if not self._initialized or self._finalized:
            raise RuntimeError(f"{type(self).__name__} for {self.path} is not open")

    def __enter__(self) -> "CompileCommandsStore":
        self.initialize()
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self.finalize()


class MergingCompileCommandsStore(CompileCommandsStore):
    """Store that merges observations into the existing database file.

    Attributes:
        database: In-memory database, written to path by finalize()
        load_error: Error that caused an existing file to be discarded, if any
    """

    mode = StoreMode.MERGE

    def __init__(self, path: str):
        super().__init__(path)
        self.database = CompilationDatabase()
        self.load_error: Optional[DatabaseLoadError] = None

    def initialize(self) -> None:
        """Validate the output path and load the existing database.

        Raises:
            OutputOpenError: If the output path cannot be written or read
        """
        check_output_path(self.path)

        if os.path.exists(self.path):
            try:
                records = load_compilation_database(self.path)
            except DatabaseLoadError as e:
                # Regenerating beats failing the build over a corrupt file
                self.load_error = e
                logger.warning("%s; starting with an empty compilation database", e)
            else:
                self.database = CompilationDatabase(records)
                logger.info("Loaded %d compile command(s) from %s", len(self.database), self.path)

        self._initialized = True

    def add(self, record: CompileCommandRecord) -> None:
        """Upsert a record keyed by its source file."""
        self._require_open()
        if self.database.upsert(record):
            logger.debug("Added compile command for %s", record.file)
        else:
            logger.debug("Updated compile command for %s", record.file)
        self.records_added += 1

    def finalize(self) -> None:
        """Write the whole database to path (truncate + write).

        The database is encoded before the file is opened, so a record that
        cannot be encoded leaves the previous file untouched.

        Raises:
            DatabaseWriteError: If the database cannot be encoded or written
        """
        if not self._initialized or self._finalized:
            return
        self._finalized = True

        try:
            payload = (self.database.to_json() + "\n").encode("utf-8")
            with open(self.path, "wb") as f:
                f.write(payload)
        except (OSError, UnicodeError) as e:
            raise DatabaseWriteError(f"Failed to write {self.path}: {e}") from e

        logger.info("Wrote %d compile command(s) to %s", len(self.database), self.path)


class StreamingCompileCommandsStore(CompileCommandsStore):
    """Store that appends every observation to a freshly truncated file."""

    mode = StoreMode.STREAM

    def __init__(self, path: str):
        super().__init__(path)
        self._stream: Optional[TextIO] = None

    def initialize(self) -> None:
        """Truncate the output file and open the JSON array.

        Raises:
            OutputOpenError: If the output file cannot be created
        """
        check_output_path(self.path)
        try:
            self._stream = open(self.path, "w", encoding="utf-8")
            self._stream.write("[\n")
        except OSError as e:
            raise OutputOpenError(f"Failed to create {self.path}: {e}") from e
        self._initialized = True

    def add(self, record: CompileCommandRecord) -> None:
        """Append one record, preceded by a separator unless it is the first.

        A record that cannot be encoded is not written, and the array stays
        well formed.

        Raises:
            DatabaseWriteError: If the record cannot be encoded or written
        """
        if self._stream is None or self._finalized:
            raise RuntimeError(f"{type(self).__name__} for {self.path} is not open")

        chunk = json.dumps(record.to_dict(), ensure_ascii=False)
        if self.records_added:
            chunk = ",\n" + chunk
        try:
            chunk.encode("utf-8")
            self._stream.write(chunk)
            self._stream.flush()
        except (OSError, UnicodeError) as e:
            raise DatabaseWriteError(f"Failed to write {self.path}: {e}") from e
        self.records_added += 1

    def finalize(self) -> None:
        """Close the JSON array and the file.

        Raises:
            DatabaseWriteError: If the closing bracket cannot be written
        """
        if self._stream is None or self._finalized:
            return
        self._finalized = True

        stream, self._stream = self._stream, None
        try:
            try:
                if self.records_added:
                    stream.write("\n")
                stream.write("]\n")
            finally:
                stream.close()
        except (OSError, UnicodeError) as e:
            raise DatabaseWriteError(f"Failed to write {self.path}: {e}") from e

        logger.info("Streamed %d compile command(s) to %s", self.records_added, self.path)


def create_store(mode: StoreMode, path: str) -> CompileCommandsStore:
    """Create an uninitialized store for the given mode."""
    if mode is StoreMode.STREAM:
        return StreamingCompileCommandsStore(path)
    return MergingCompileCommandsStore(path)
