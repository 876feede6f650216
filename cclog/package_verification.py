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
"""Package verification for compile commands logger dependencies.

Minimum versions are based on Ubuntu 24.04 LTS or actual code requirements,
whichever is higher.
"""

import sys
import logging
import argparse
from importlib.metadata import version, PackageNotFoundError
from typing import Dict, Optional, Tuple

from packaging.version import parse

from .color_utils import print_error, print_success
from .constants import EXIT_RUNTIME_ERROR, EXIT_SUCCESS

logger = logging.getLogger(__name__)

# Package version requirements (minimum versions)
PACKAGE_REQUIREMENTS: Dict[str, str] = {
    "colorama": "0.4.6",  # Ubuntu 24.04 LTS
    "packaging": "24.0",  # Ubuntu 24.04 LTS (required for this module itself)
}


def check_package_version(package_name: str, min_version: Optional[str] = None, raise_on_error: bool = True) -> Tuple[bool, bool, Optional[str]]:
    """Check if a package is installed and meets minimum version requirement.

    Args:
        package_name: PyPI package name (e.g., 'colorama')
        min_version: Minimum required version string. If None, uses
                    PACKAGE_REQUIREMENTS.
        raise_on_error: If True, raises ImportError on failure

    Returns:
        Tuple of (is_installed, meets_version, installed_version or None)

    Raises:
        ImportError: If raise_on_error=True and package is missing or too old
        ValueError: If no minimum version is known for the package
    """
    if min_version is None:
        min_version = PACKAGE_REQUIREMENTS.get(package_name)
        if min_version is None:
            raise ValueError(f"No version requirement specified for {package_name}")

    try:
        installed_version = version(package_name)
    except PackageNotFoundError as exc:
        if raise_on_error:
            raise ImportError(f"{package_name} is not installed. Install with: pip install '{package_name}>={min_version}'") from exc
        return False, False, None

    meets_version = parse(installed_version) >= parse(min_version)
    if not meets_version and raise_on_error:
        raise ImportError(
            f"{package_name} {installed_version} is too old. "
            f"Version >={min_version} is required. "
            f"Upgrade with: pip install --upgrade '{package_name}>={min_version}'"
        )
    return True, meets_version, installed_version


def verify_requirements() -> bool:
    """Log a warning for every runtime package that is missing or too old.

    Returns:
        True if all packages meet their minimum version
    """
    all_ok = True
    for package_name, min_version in PACKAGE_REQUIREMENTS.items():
        is_installed, meets_version, installed_version = check_package_version(package_name, min_version, raise_on_error=False)
        if not is_installed:
            logger.warning("%s is not installed (need >=%s)", package_name, min_version)
            all_ok = False
        elif not meets_version:
            logger.warning("%s %s is older than the required %s", package_name, installed_version, min_version)
            all_ok = False
    return all_ok


def check_all_packages() -> bool:
    """Check all runtime packages and print their status.

    Returns:
        True if all required packages are OK, False otherwise
    """
    all_ok = True
    for package_name, min_version in PACKAGE_REQUIREMENTS.items():
        is_installed, meets_version, installed_version = check_package_version(package_name, min_version, raise_on_error=False)
        if is_installed and meets_version:
            print_success(f"{package_name} {installed_version}")
        elif is_installed:
            print_error(f"{package_name} {installed_version} (need >={min_version})", prefix=False)
            all_ok = False
        else:
            print_error(f"{package_name} not installed", prefix=False)
            all_ok = False

    if not all_ok:
        requirements = " ".join(f"'{name}>={ver}'" for name, ver in PACKAGE_REQUIREMENTS.items())
        print(f"Install missing packages with: pip install {requirements}", file=sys.stderr)
    return all_ok


def main() -> int:
    """Main entry point for CLI usage."""
    parser = argparse.ArgumentParser(description="Verify compile commands logger package dependencies")
    parser.add_argument("--check-all", action="store_true", help="Check all known runtime packages")
    args = parser.parse_args()

    if args.check_all:
        return EXIT_SUCCESS if check_all_packages() else EXIT_RUNTIME_ERROR

    parser.print_help()
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
