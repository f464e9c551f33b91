"""Pytest configuration for the snowflake-governance project."""

import os
import sys
from pathlib import Path
from typing import List


# Put 'src' first on sys.path so tests import the working tree, not an
# installed copy or a same-named directory elsewhere on the path.
def _add_src_to_syspath() -> None:
    repo_root = Path(__file__).resolve().parent
    src_dir = repo_root / "src"
    if not src_dir.exists():
        return

    src_str = str(src_dir)
    cleaned: List[str] = []
    for p in sys.path:
        if not p:
            continue
        try:
            candidate = os.path.abspath(os.path.join(p, "snowflake_governance"))
        except OSError:
            continue
        if os.path.isdir(candidate) and os.path.abspath(candidate) != os.path.abspath(
            os.path.join(src_str, "snowflake_governance")
        ):
            continue
        cleaned.append(p)

    cleaned = [p for p in cleaned if p != src_str]
    cleaned.insert(0, src_str)
    sys.path[:] = cleaned


_add_src_to_syspath()
