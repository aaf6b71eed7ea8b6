#!/usr/bin/env python3
"""Sync the version from pyproject.toml into src/b2client/_version.py.

With --print, only print the pyproject version.
"""
import re
import sys
import tomllib
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
VERSION_FILE = ROOT / "src" / "b2client" / "_version.py"


def main() -> None:
    with open(ROOT / "pyproject.toml", "rb") as f:
        new_version = tomllib.load(f)["project"]["version"]
    if "--print" in sys.argv[1:]:
        print(new_version)
        return
    content = VERSION_FILE.read_text()
    updated, count = re.subn(
        r'^(__version__\s*=\s*")[^"]*(")',
        rf"\g<1>{new_version}\g<2>",
        content,
        count=1,
        flags=re.MULTILINE,
    )
    if count == 0:
        print(f"ERROR: Could not find __version__ in {VERSION_FILE}", file=sys.stderr)
        sys.exit(1)
    VERSION_FILE.write_text(updated)
    print(f"Synced version {new_version} to {VERSION_FILE.relative_to(ROOT)}")


if __name__ == "__main__":
    main()
