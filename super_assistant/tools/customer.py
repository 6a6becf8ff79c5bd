"""
Mock member record store.

In production, this would read and write the fund's member administration
system. Here a single in-memory record stands in for the logged-in member;
all changes go through ``CustomerStore.update``.
"""

import logging
from typing import Optional

from super_assistant.schemas.customer_schema import BalanceSummary, CustomerRecord

logger = logging.getLogger(__name__)


def _default_record() -> CustomerRecord:
    return CustomerRecord(
        name="John Doe",
        email="john.doe@example.com",
        address="123 Main St, Sydney",
        member_id="SUPER123456",
        balance=BalanceSummary(amount=150000, last_updated="2024-03-20", growth_rate=5.2),
    )


class CustomerStore:
    """Single-writer holder of the member record."""

    def __init__(self, record: Optional[CustomerRecord] = None) -> None:
        self._record = record or _default_record()

    def get(self) -> CustomerRecord:
        """Return a copy of the current record."""
        return self._record.model_copy(deep=True)

    def update(self, email: Optional[str] = None, address: Optional[str] = None) -> CustomerRecord:
        """Merge the provided non-empty fields into the record and return a copy.

        Applying the same change twice leaves the record as it was after the
        first call.
        """
        changes = {}
        if email and email.strip():
            changes["email"] = email.strip()
        if address and address.strip():
            changes["address"] = address.strip()

        if changes:
            self._record = self._record.model_copy(update=changes)
            logger.info("Member record updated: %s", ", ".join(sorted(changes)))
        return self.get()

    def reset(self) -> None:
        """Restore the default demo record."""
        self._record = _default_record()


_store = CustomerStore()


def get_customer_store() -> CustomerStore:
    """Return the process-wide store."""
    return _store
