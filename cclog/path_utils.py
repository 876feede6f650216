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
"""Path helpers that understand both Windows and POSIX style paths.

Build events originate from MSBuild, so compiler and project paths are usually
Windows paths (``C:\\Program Files\\...``). The logger may still run on any
host, so the path flavour is picked from the path text, not from ``os.name``.
"""

import os
import re
import ntpath
import posixpath
from typing import Optional

_DRIVE_PATH_RE = re.compile(r"^[A-Za-z]:")


def is_windows_path(path: str) -> bool:
    """Check if a path is written in Windows style.

    Args:
        path: Path text as it appeared in a build event

    Returns:
        True for drive-letter paths, UNC paths, and paths using backslashes
    """
    return bool(_DRIVE_PATH_RE.match(path)) or path.startswith("\\\\") or "\\" in path


def canonicalize_path(path: str, base_directory: Optional[str] = None) -> str:
    """Return the absolute form of a path with ``.`` and ``..`` segments resolved.

    Relative paths are anchored at base_directory (default: the current working
    directory). Windows semantics apply when either the path or the base is a
    Windows path, so a rooted path without a drive takes the drive of the base.
    Symlinks are not resolved.

    Args:
        path: Path to canonicalize
        base_directory: Directory relative paths are resolved against
    """
    if not base_directory:
        base_directory = os.getcwd()
    if is_windows_path(path) or is_windows_path(base_directory):
        return ntpath.normpath(ntpath.join(base_directory, path))
    return posixpath.normpath(posixpath.join(base_directory, path))


def parent_directory(path: str) -> str:
    """Return the directory containing a file, using the path's own flavour."""
    if is_windows_path(path):
        return ntpath.dirname(path)
    return posixpath.dirname(path)


def path_basename(path: str) -> str:
    """Return the last component of a path, splitting on both separators."""
    return ntpath.basename(path) if is_windows_path(path) else posixpath.basename(path)
