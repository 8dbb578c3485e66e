"""Setup ledger: the append-only history of generation runs.

The ledger is a single JSON array of ``SetupRecord`` objects.  The most
recently appended record is the "last configuration" that
``add-remote-to-host`` resumes from.

``append`` is a read-modify-write of the whole file without locking; one
interactive user per workspace is assumed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from microfed.errors import LedgerCorrupt
from microfed.models import SetupRecord
from microfed.utils import load_json_list, print_warning, save_json


class SetupLedger:
    """JSON-file backed sequence of :class:`SetupRecord`.

    Args:
        path: Location of the ledger file.  It does not need to exist.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._corruption_reported = False

    def records(self, *, strict: bool = False) -> list[SetupRecord]:
        """Return every record, oldest first.

        A missing file yields an empty list.  A malformed file yields an
        empty list after printing a warning (once per ledger), or raises
        :class:`LedgerCorrupt` when *strict* is set.
        """
        try:
            raw = load_json_list(self.path)
            return [SetupRecord.model_validate(entry) for entry in raw]
        except (OSError, ValueError) as exc:
            # ValidationError and JSONDecodeError are both ValueErrors.
            error = LedgerCorrupt(f"Setup ledger {self.path} is unreadable: {_describe(exc)}")
            if strict:
                raise error from exc
            if not self._corruption_reported:
                print_warning(f"{error} Treating it as empty.")
                self._corruption_reported = True
            return []

    def last_record(self) -> Optional[SetupRecord]:
        """Return the most recently appended record, or ``None``."""
        records = self.records()
        return records[-1] if records else None

    async def append(self, record: SetupRecord) -> None:
        """Append *record* and write the whole sequence back."""
        records = self.records()
        records.append(record)
        await save_json([r.to_json_dict() for r in records], self.path)

    def __len__(self) -> int:
        return len(self.records())


def _describe(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return f"{exc.error_count()} invalid field(s) in a record"
    return str(exc)
