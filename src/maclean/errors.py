"""Run-scoped error accumulation for maclean."""

from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console

from maclean.display import err
from maclean.models import ErrorRecord


@dataclass
class ErrorAggregator:
    """Append-only error log for one cleanup run.

    Created at run start, handed to every step and to the guarded deleter,
    and read once at the end for the summary. With ``echo`` enabled each
    message is printed at the moment it is recorded.
    """

    echo: bool = False
    console: Optional[Console] = None
    _records: list[ErrorRecord] = field(default_factory=list)

    def record(self, message: str) -> ErrorRecord:
        entry = ErrorRecord(sequence=len(self._records) + 1, message=message)
        self._records.append(entry)
        if self.echo:
            err(message, self.console)
        return entry

    @property
    def count(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def messages(self) -> list[str]:
        return [r.message for r in self._records]
