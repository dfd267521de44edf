"""
Size-based log rotation.

Given a live file ``P`` and a retention limit ``N`` the cascade is:

    1. for i = N .. 2: ``P.{i-1}`` -> ``P.{i}`` when ``P.{i-1}`` exists
    2. ``P`` -> ``P.1`` when ``P`` exists
    3. delete every ``P.<k>`` with ``k > max(N, 1)``

Renames overwrite their target. Gaps in the numbered sequence are skipped,
never fatal. A retention of 0 still moves the live file to ``P.1``; that
backup survives until the next cycle overwrites it. Each failed step is
reported through ``on_error`` and the cascade carries on.
"""

import os
import re
from pathlib import Path
from typing import Callable, List, Optional, Union

from aitherlog.core.exceptions.custom_exceptions import RotationError

ErrorCallback = Callable[[RotationError], None]


def rotated_path(path: Path, index: int) -> Path:
    return path.with_name(f"{path.name}.{index}")


def existing_backups(path: Path) -> List[int]:
    """Numeric suffixes of the rotated siblings of ``path``, ascending."""
    pattern = re.compile(rf"^{re.escape(path.name)}\.(\d+)$")
    parent = path.parent if str(path.parent) else Path(".")
    if not parent.is_dir():
        return []
    suffixes = []
    for sibling in parent.iterdir():
        match = pattern.match(sibling.name)
        if match and int(match.group(1)) > 0:
            suffixes.append(int(match.group(1)))
    return sorted(suffixes)


def rotate_log_files(
    path: Union[str, Path],
    max_files: int,
    on_error: Optional[ErrorCallback] = None,
) -> List[RotationError]:
    """
    Run one rotation cycle for ``path``.

    Args:
        path: Live log file
        max_files: Number of numbered backups to retain
        on_error: Called with each step failure as it happens

    Returns:
        List[RotationError]: Failures encountered, empty on a clean cycle
    """
    path = Path(path)
    max_files = max(int(max_files), 0)
    errors: List[RotationError] = []

    def report(message: str, exc: OSError, **details) -> None:
        error = RotationError(
            message,
            error_code="ROTATION_STEP_FAILED",
            details={**details, "error": str(exc)},
        )
        errors.append(error)
        if on_error is not None:
            on_error(error)

    for index in range(max_files, 1, -1):
        older = rotated_path(path, index - 1)
        if older.exists():
            target = rotated_path(path, index)
            try:
                os.replace(older, target)
            except OSError as e:
                report("Failed to shift rotated log", e, source=str(older), target=str(target))

    if path.exists():
        target = rotated_path(path, 1)
        try:
            os.replace(path, target)
        except OSError as e:
            report("Failed to rotate live log", e, source=str(path), target=str(target))

    keep = max(max_files, 1)
    try:
        stale = [i for i in existing_backups(path) if i > keep]
    except OSError as e:
        report("Failed to list rotated logs", e, directory=str(path.parent))
        stale = []

    for index in stale:
        target = rotated_path(path, index)
        try:
            target.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            report("Failed to delete stale rotated log", e, path=str(target))

    return errors
