"""Read and write KEY=VALUE lines in the generated .env file.

Values are written verbatim: no quoting, escaping or substitution, so tokens
containing ``/``, ``&``, ``|``, ``\\`` or ``$`` survive intact regardless of
length. Every write goes to a temporary file in the same directory which then
replaces the original, so an interrupted write never leaves a truncated file.
"""

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

_logging = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _active_pattern(key: str) -> re.Pattern:
    return re.compile(rf"^\s*{re.escape(key)}\s*=")


def _commented_pattern(key: str) -> re.Pattern:
    return re.compile(rf"^\s*#\s*{re.escape(key)}\s*=")


def _read_lines(path: Path) -> list[str]:
    if not path.exists():
        return []
    with open(path, "r", newline="") as f:
        return f.read().splitlines(keepends=True)


def _atomic_write(path: Path, content: str) -> None:
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, temp_name)
        else:
            os.chmod(temp_name, 0o600)
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise


def set_env_value(path: Path, key: str, value: str) -> None:
    """Ensure ``path`` holds exactly one active ``key=value`` line.

    Cases, checked in order:
      1. an active ``KEY=`` line exists: replaced in place, later active
         duplicates are dropped;
      2. a commented ``# KEY=`` line exists: uncommented and set in place;
      3. otherwise a new line is appended.

    Raises:
        ValueError: If the key is not a valid variable name or the value
            contains a line break
    """
    if not KEY_PATTERN.match(key):
        raise ValueError(f"Invalid environment key: {key!r}")
    if "\n" in value or "\r" in value:
        raise ValueError(f"Value for {key} must be a single line")

    lines = _read_lines(path)
    new_line = f"{key}={value}"
    active = _active_pattern(key)
    commented = _commented_pattern(key)

    def with_ending(original: str) -> str:
        if original.endswith("\r\n"):
            return new_line + "\r\n"
        if original.endswith("\n"):
            return new_line + "\n"
        return new_line

    active_indexes = [i for i, line in enumerate(lines) if active.match(line)]
    if active_indexes:
        first = active_indexes[0]
        lines[first] = with_ending(lines[first])
        for i in reversed(active_indexes[1:]):
            del lines[i]
        action = "replaced"
    else:
        commented_indexes = [i for i, line in enumerate(lines) if commented.match(line)]
        if commented_indexes:
            first = commented_indexes[0]
            lines[first] = with_ending(lines[first])
            action = "uncommented"
        else:
            if lines and not lines[-1].endswith("\n"):
                lines[-1] += "\n"
            lines.append(new_line + "\n")
            action = "appended"

    _atomic_write(path, "".join(lines))
    # Never log the value itself
    _logging.debug(f"{action} {key} in {path} ({len(value)} chars)")


def read_env_value(path: Path, key: str) -> str | None:
    """Return the value of the active ``key`` line, or None."""
    active = _active_pattern(key)
    for line in _read_lines(path):
        if active.match(line):
            return line.split("=", 1)[1].rstrip("\r\n")
    return None


def prepare_env_file(install_dir: Path) -> Path:
    """Create ``.env`` from ``.env.example`` (or empty) and return its path."""
    env_path = install_dir / ".env"
    example = install_dir / ".env.example"
    if example.exists():
        shutil.copyfile(example, env_path)
        os.chmod(env_path, 0o600)
        _logging.debug(f"Created {env_path} from {example}")
    elif not env_path.exists():
        _atomic_write(env_path, "")
        _logging.debug(f"Created empty {env_path}")
    return env_path


__all__ = [
    "set_env_value",
    "read_env_value",
    "prepare_env_file",
]
