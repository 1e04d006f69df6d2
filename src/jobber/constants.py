"""Stable names and patterns describing a Jenkins job directory on disk."""

from __future__ import annotations

import re
from typing import Final

# Job layout.
BUILDS_DIR: Final[str] = "builds"
CONFIG_XML: Final[str] = "config.xml"
NEXT_BUILD_NUMBER_FILE: Final[str] = "nextBuildNumber"
BUILD_XML: Final[str] = "build.xml"
DEFAULT_QUARANTINE_DIR: Final[str] = "outOfOrderBuilds"

# Convenience links Jenkins keeps next to the numbered builds.
LAST_LINK_NAMES: Final[tuple[str, ...]] = (
    "lastFailedBuild",
    "lastStableBuild",
    "lastSuccessfulBuild",
    "lastUnstableBuild",
    "lastUnsuccessfulBuild",
)
# Jenkins reads a "-1" target as "no such build yet".
DEFAULT_LAST_LINK_TARGET: Final[str] = "-1"

# Entry name patterns.
NUMBER_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]+$")
DATE_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^[0-9]{4}-[0-9]{2}-[0-9]{2}_[0-9]{2}-[0-9]{2}-[0-9]{2}$"
)
DATE_NAME_FORMAT: Final[str] = "%Y-%m-%d_%H-%M-%S"
BUILD_NUMBER_XPATH: Final[str] = "/*/number"

# Schema version for persisted config.
CONFIG_SCHEMA_VERSION: Final[int] = 1

__all__ = [
    "BUILDS_DIR",
    "BUILD_NUMBER_XPATH",
    "BUILD_XML",
    "CONFIG_SCHEMA_VERSION",
    "CONFIG_XML",
    "DATE_NAME_FORMAT",
    "DATE_NAME_PATTERN",
    "DEFAULT_LAST_LINK_TARGET",
    "DEFAULT_QUARANTINE_DIR",
    "LAST_LINK_NAMES",
    "NEXT_BUILD_NUMBER_FILE",
    "NUMBER_NAME_PATTERN",
]
