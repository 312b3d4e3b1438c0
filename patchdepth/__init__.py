"""
patchdepth — MAJOR.MINOR.PATCH versions derived from commit history.

``MAJOR.MINOR`` lives in a tracked version file; ``PATCH`` is how many
commits, along the longest ancestry path, that file has kept its content.
Works on shallow clones by deepening history until the answer is known.
"""

from pathlib import Path
import tomllib
from importlib.metadata import version, PackageNotFoundError

def _resolve_version() -> str:
    """Version from a source checkout's pyproject.toml, else the installed metadata."""
    try:
        root = Path(__file__).resolve().parent.parent
        pyproject = root / "pyproject.toml"
        if pyproject.exists():
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
            proj = data.get("project", {})
            ver = proj.get("version")
            if isinstance(ver, str) and ver.strip():
                return ver.strip()
    except (OSError, tomllib.TOMLDecodeError):
        pass

    try:
        return version("patchdepth")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _resolve_version()
