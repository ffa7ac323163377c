"""Sources of the diff that review results are filtered by."""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Sequence


class DiffCommandError(RuntimeError):
    """The diff command failed without producing any output."""


class DiffString:
    """A diff given as a fixed string."""

    def __init__(self, diff: str | bytes, strip: int) -> None:
        self._data = diff.encode("utf-8") if isinstance(diff, str) else bytes(diff)
        self.strip = strip

    def diff(self) -> bytes:
        return self._data


class DiffCmd:
    """A diff produced by running a command; the output is cached."""

    def __init__(self, cmd: Sequence[str], strip: int) -> None:
        self.cmd = list(cmd)
        self.strip = strip
        self._out: bytes | None = None
        self._lock = threading.Lock()

    def diff(self) -> bytes:
        """Run the command once and return its output on every call."""
        with self._lock:
            if self._out is not None:
                return self._out
            try:
                proc = subprocess.run(
                    self.cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False
                )
            except OSError as exc:
                raise DiffCommandError(f"cannot run diff command: {exc}") from exc
            # `git diff` exits with 1 when there are differences, so a
            # failure status only counts when nothing was printed.
            if proc.returncode != 0 and not proc.stdout:
                stderr = proc.stderr.decode("utf-8", errors="replace").strip()
                raise DiffCommandError(
                    f"diff command exited with status {proc.returncode}: {stderr}"
                )
            self._out = proc.stdout
            return self._out


class EmptyDiff:
    """A diff service that always yields an empty diff."""

    strip = 0

    def diff(self) -> bytes:
        return b""