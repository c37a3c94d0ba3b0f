import os
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from migrator.migration.exceptions import ConfigurationError


class ErrorLog:
    """Append-only ``<id>: <message>`` line sink shared by all workers.

    Each worker opens its own handle. The file is opened unbuffered in append
    mode and every line goes out in a single write, so lines from concurrent
    writers never interleave.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._file: BinaryIO | None = None

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> "ErrorLog":
        self._file = open(self._path, "ab", buffering=0)  # noqa: SIM115
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def write(self, line: str) -> None:
        """Append one line; a trailing newline is added."""
        if self._file is None:
            raise RuntimeError(f"Error log {self._path} is not open")
        data = line.rstrip("\n") + "\n"
        self._file.write(data.encode())

    def __enter__(self) -> "ErrorLog":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def open_error_log(path: str | os.PathLike[str]) -> ErrorLog:
    """Open the log at startup, turning an unusable path into a configuration error.

    Raises:
        ConfigurationError: if the file cannot be opened for appending.
    """
    try:
        return ErrorLog(path).open()
    except OSError as exc:
        raise ConfigurationError(f"Cannot open log file {path}: {exc}") from exc
