"""Append-only in-memory ledgers for charges and donation billing cycles"""

from typing import Generic, Iterator, List, TypeVar

from donation_gateway.domain.models import DonationTransaction, Transaction

EntryT = TypeVar("EntryT")


class AppendOnlyLedger(Generic[EntryT]):
    """Insertion-ordered log; entries are never mutated or removed"""

    def __init__(self) -> None:
        self._entries: List[EntryT] = []

    def append(self, entry: EntryT) -> EntryT:
        self._entries.append(entry)
        return entry

    def snapshot(self) -> List[EntryT]:
        """Copy of all entries in insertion order"""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EntryT]:
        return iter(self.snapshot())


class TransactionLedger(AppendOnlyLedger[Transaction]):
    """Every processed charge, accepted or blocked"""


class DonationLedger(AppendOnlyLedger[DonationTransaction]):
    """Every recurring billing attempt"""

    def newest_first(self) -> List[DonationTransaction]:
        return list(reversed(self._entries))
