#!/usr/bin/env python3
"""Tests for cclog.path_utils"""

import os
import ntpath

import pytest

from cclog.path_utils import canonicalize_path, is_windows_path, parent_directory, path_basename


class TestIsWindowsPath:
    """Tests for path flavour detection."""

    @pytest.mark.parametrize("path", ["C:\\VC\\cl.exe", "c:/vc/cl.exe", "\\\\server\\share\\cl.exe", "bin\\cl.exe"])
    def test_windows_paths(self, path: str) -> None:
        """Drive letters, UNC paths and backslashes mean Windows."""
        assert is_windows_path(path)

    @pytest.mark.parametrize("path", ["/usr/bin/cl", "cl.exe", "bin/cl.exe"])
    def test_posix_paths(self, path: str) -> None:
        """Everything else is treated as POSIX."""
        assert not is_windows_path(path)


class TestPathHelpers:
    """Tests for canonicalize_path, parent_directory and path_basename."""

    def test_canonicalize_forward_slashes_on_windows_path(self) -> None:
        """Windows paths are normalized to backslashes."""
        assert canonicalize_path("C:/VC/bin/../cl.exe") == "C:\\VC\\cl.exe"

    def test_parent_directory_windows(self) -> None:
        """The project directory of a Windows project file."""
        assert parent_directory("C:\\src\\app\\app.vcxproj") == "C:\\src\\app"

    def test_parent_directory_posix(self) -> None:
        """The project directory of a POSIX project file."""
        assert parent_directory("/home/user/app/app.vcxproj") == "/home/user/app"

    def test_parent_directory_bare_name(self) -> None:
        """A bare file name has an empty directory."""
        assert parent_directory("app.vcxproj") == ""

    def test_basename(self) -> None:
        """Both separators are understood."""
        assert path_basename("C:\\VC\\bin\\cl.exe") == "cl.exe"
        assert path_basename("/opt/vc/cl") == "cl"

    def test_canonicalize_relative_windows_path(self) -> None:
        """Relative Windows paths are anchored at the base directory."""
        result = canonicalize_path("..\\VC\\bin\\cl.exe", "C:\\src\\app")
        assert result == "C:\\src\\VC\\bin\\cl.exe"
        assert ntpath.isabs(result)

    def test_canonicalize_rooted_windows_path_takes_drive(self) -> None:
        """A rooted path without a drive takes the drive of the base directory."""
        assert canonicalize_path("\\VC\\cl.exe", "D:\\src\\app") == "D:\\VC\\cl.exe"

    def test_canonicalize_absolute_path_ignores_base(self) -> None:
        """Absolute paths are not re-anchored."""
        assert canonicalize_path("C:\\VC\\cl.exe", "D:\\src") == "C:\\VC\\cl.exe"
        assert canonicalize_path("/opt/vc/cl", "/home/user") == "/opt/vc/cl"

    def test_canonicalize_relative_posix_path(self) -> None:
        """Relative POSIX paths are anchored at the base directory."""
        assert canonicalize_path("../bin/cl", "/home/user/app") == "/home/user/bin/cl"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX path semantics")
    def test_canonicalize_defaults_to_working_directory(self) -> None:
        """Without a base directory the current working directory is used."""
        assert canonicalize_path("cl") == os.path.join(os.getcwd(), "cl")
