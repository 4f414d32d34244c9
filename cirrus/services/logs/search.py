"""Local search over fetched log text with an external tool (ripgrep)."""
from __future__ import annotations

import logging
import subprocess

from ...errors import SubprocessError

logger = logging.getLogger(__name__)

# ripgrep (and grep) exit with 1 when nothing matched.
NO_MATCH_EXIT = 1


def build_search_cmd(tool: str, pattern: str) -> list[str]:
    # -e keeps a pattern that starts with "-" from being read as an option.
    return [tool, "--color", "never", "-e", pattern]


def search_text(tool: str, pattern: str, text: str) -> str:
    """Run ``tool`` over ``text`` and return the matching lines.

    Returns an empty string when nothing matched.

    Raises:
        SubprocessError: if the tool cannot be started or fails.
    """
    cmd = build_search_cmd(tool, pattern)
    try:
        proc = subprocess.run(cmd, input=text, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise SubprocessError(f"could not run {tool}: {exc}") from exc

    if proc.returncode == 0:
        return proc.stdout
    if proc.returncode == NO_MATCH_EXIT:
        return ""

    stderr = (proc.stderr or "").strip()
    logger.warning("%s exited %s: %s", tool, proc.returncode, stderr)
    raise SubprocessError(
        f"{tool} exited with status {proc.returncode}: {stderr or 'no output'}",
        returncode=proc.returncode,
        stderr=stderr,
    )
