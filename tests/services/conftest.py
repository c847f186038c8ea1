"""Service-level fixtures: an in-memory DcStore and a wired lifecycle service."""

import pytest

from challan_kernel.domain.challan import SavedDc
from challan_kernel.domain.session import SessionContext
from challan_kernel.exceptions import DcNotFoundError
from challan_kernel.services.lifecycle_service import DcLifecycleService


class InMemoryDcStore:
    """DcStore keeping records in a dict, counting writes."""

    def __init__(self):
        self.records: dict[str, SavedDc] = {}
        self.writes = 0

    def list_all(self) -> list[SavedDc]:
        return list(self.records.values())

    def append(self, dc: SavedDc) -> None:
        self.writes += 1
        self.records[dc.id] = dc

    def update(self, dc: SavedDc) -> None:
        if dc.id not in self.records:
            raise DcNotFoundError(dc.id)
        self.writes += 1
        self.records[dc.id] = dc

    def delete(self, dc_id: str) -> None:
        if dc_id not in self.records:
            raise DcNotFoundError(dc_id)
        self.writes += 1
        del self.records[dc_id]


@pytest.fixture
def store():
    return InMemoryDcStore()


@pytest.fixture
def session():
    ctx = SessionContext()
    ctx.login("asha")
    return ctx


@pytest.fixture
def lifecycle(store, deterministic_clock, session):
    return DcLifecycleService(
        store, deterministic_clock, session=session, delete_password="srrortho",
    )
