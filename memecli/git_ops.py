from __future__ import annotations

import locale
import logging
import subprocess
from pathlib import Path

from memecli.errors import MemeError

_log = logging.getLogger(__name__)


def decode_output(data: bytes | None) -> str:
    if not data:
        return ""
    for encoding in dict.fromkeys(["utf-8", (locale.getpreferredencoding(False) or "utf-8").lower()]):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def run_git(args: list[str], cwd: Path | None = None) -> str:
    command = ["git", *args]
    _log.debug("running %s", " ".join(command))
    try:
        result = subprocess.run(command, cwd=cwd, capture_output=True, check=False)
    except FileNotFoundError as exc:
        raise MemeError("git is not installed or not available in PATH") from exc
    if result.returncode != 0:
        stderr_text = decode_output(result.stderr).strip()
        stdout_text = decode_output(result.stdout).strip()
        raise MemeError(f"git {args[0]} failed: {stderr_text or stdout_text or result.returncode}")
    return decode_output(result.stdout)


def clone_repo(path: Path, url: str) -> None:
    run_git(["clone", url, str(path)])


def update_repo(path: Path) -> None:
    run_git(["pull", "--ff-only"], cwd=path)
