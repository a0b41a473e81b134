"""Resolution of the version tag reported by the service."""

from __future__ import annotations

import os
import subprocess
from functools import cache
from pathlib import Path
from typing import Mapping, Union

ENV_VAR = "GOVEE_CI_TAG"
TAG_FILE = ".tag"

_GIT_COMMAND = (
    "git",
    "-c",
    "core.abbrev=8",
    "show",
    "-s",
    "--format=%cd-%h",
    "--date=format:%Y.%m.%d",
)


def resolve_ci_tag(env: Mapping[str, str], tag_file: Union[str, Path]) -> str:
    """Work out the version tag.

    The ``GOVEE_CI_TAG`` variable wins; otherwise the contents of the tag
    file are used; otherwise the date and hash of the current git commit.
    A tag file that is not valid UTF-8 yields an empty tag.
    """
    if ENV_VAR in env:
        return env[ENV_VAR].strip()

    try:
        raw = Path(tag_file).read_bytes()
    except OSError:
        pass
    else:
        try:
            return raw.decode("utf-8").strip()
        except UnicodeDecodeError:
            return ""

    try:
        result = subprocess.run(_GIT_COMMAND, capture_output=True, check=False)
    except OSError:
        return ""
    return result.stdout.decode("utf-8", errors="replace").strip()


@cache
def govee_version() -> str:
    """The version tag of this service, resolved once."""
    return resolve_ci_tag(os.environ, Path(TAG_FILE))