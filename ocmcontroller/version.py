"""Release version information and a small command to print it."""

from __future__ import annotations

import re
import sys

RELEASE_VERSION = "v0.26.4"
"""The version number in semver format "vX.Y.Z", prefixed with "v"."""

RELEASE_CANDIDATE = "rc.1"
"""The release candidate ID in format "rc.X", appended to the release version."""

_SEMVER = re.compile(
    r"^v?(0|[1-9]\d*)(\.(0|[1-9]\d*))?(\.(0|[1-9]\d*))?"
    r"(-[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?"
    r"(\+[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?$"
)


def _require_semver(text: str) -> str:
    if not _SEMVER.match(text):
        raise ValueError(f"invalid semantic version: {text!r}")
    return text


def rc_version() -> str:
    """Return the release version with the release candidate appended."""
    return f"{RELEASE_VERSION}-{RELEASE_CANDIDATE}"


def main(argv: list[str] | None = None) -> int:
    """Print the release or release-candidate version, depending on the command."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("missing argument", file=sys.stderr)
        return 1

    _require_semver(RELEASE_VERSION)

    command = args[0]
    if command == "print-version":
        sys.stdout.write(RELEASE_VERSION)
    elif command == "print-rc-version":
        sys.stdout.write(rc_version())
    return 0


if __name__ == "__main__":
    sys.exit(main())