"""
Module: challan_catalog.catalog_service
Responsibility: Holds the decoded catalog in memory and answers the
    lookups the DC builder needs: procedure types, fuzzy search over
    procedures, items and instruments, and instrument-to-procedure lookup.
Architecture position: Catalog > Service.  Reads rows through a
    ``CatalogSource``; decoding is delegated to ``challan_catalog.codec``.

Invariants enforced:
    - Procedures with a blank name never enter the catalog.
    - ``procedure_types`` always starts with the two pseudo-types
      ``"None"`` and ``"All"``, followed by real types in first-seen order.
    - Search indices are rebuilt whenever the procedure list changes.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from challan_catalog.adapters.base import CatalogSource
from challan_catalog.codec import parse_catalog
from challan_catalog.search import DEFAULT_THRESHOLD, SearchIndex
from challan_kernel.domain.catalog import Procedure
from challan_kernel.exceptions import ProcedureNotFoundError
from challan_kernel.logging_config import get_logger

logger = get_logger("catalog.service")

TYPE_NONE = "None"
TYPE_ALL = "All"


class CatalogService:
    """
    In-memory procedure catalog.

    Usage::

        catalog = CatalogService(HttpCsvFeed(url))
        catalog.load()
        hits = catalog.search_procedures("tibia", type="Trauma")
    """

    def __init__(self, source: CatalogSource, threshold: float = DEFAULT_THRESHOLD):
        self._source = source
        self._threshold = threshold
        self._procedures: list[Procedure] = []
        self._loaded = False
        self._rebuild_indices()

    # -----------------------------------------------------------------
    # Loading
    # -----------------------------------------------------------------

    def load(self) -> list[Procedure]:
        """Fetch and decode the whole catalog, replacing what is held."""
        return self.load_rows(self._source.fetch_rows())

    def load_rows(self, rows: Iterable[Sequence[str]]) -> list[Procedure]:
        self._procedures = parse_catalog(rows)
        self._loaded = True
        self._rebuild_indices()
        logger.info(
            "catalog_loaded",
            extra={
                "procedures": len(self._procedures),
                "types": len(self.procedure_types) - 2,
            },
        )
        return list(self._procedures)

    def refetch_procedure(self, name: str) -> Procedure | None:
        """Re-read the source and replace one procedure in place.

        Returns the fresh procedure, or None when it is no longer in the
        source (the held entry is then left untouched).
        """
        fresh = next(
            (p for p in parse_catalog(self._source.fetch_rows()) if p.name == name),
            None,
        )
        if fresh is None:
            logger.warning("procedure_refetch_missing", extra={"procedure": name})
            return None

        for idx, procedure in enumerate(self._procedures):
            if procedure.name == name:
                self._procedures[idx] = fresh
                break
        else:
            self._procedures.append(fresh)
        self._rebuild_indices()
        logger.info("procedure_refetched", extra={"procedure": name})
        return fresh

    def _rebuild_indices(self) -> None:
        self._procedure_index = SearchIndex(
            self._procedures, key=lambda p: p.name, threshold=self._threshold,
        )
        item_keys: dict[str, None] = {}
        for procedure in self._procedures:
            for item in procedure.items:
                item_keys[item.encoding] = None
                item_keys[item.name] = None
        self._item_index = SearchIndex(item_keys, threshold=self._threshold)
        self._instrument_index = SearchIndex(
            dict.fromkeys(i for p in self._procedures for i in p.instruments),
            threshold=self._threshold,
        )

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # -----------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------

    @property
    def procedures(self) -> list[Procedure]:
        self._ensure_loaded()
        return list(self._procedures)

    @property
    def procedure_types(self) -> list[str]:
        self._ensure_loaded()
        types = dict.fromkeys(p.type for p in self._procedures if p.type)
        return [TYPE_NONE, TYPE_ALL, *types]

    def get(self, name: str) -> Procedure:
        self._ensure_loaded()
        for procedure in self._procedures:
            if procedure.name == name:
                return procedure
        raise ProcedureNotFoundError(name)

    def procedure_for_instrument(self, instrument: str) -> Procedure | None:
        """First procedure (in catalog order) that lists the instrument."""
        self._ensure_loaded()
        for procedure in self._procedures:
            if instrument in procedure.instruments:
                return procedure
        return None

    # -----------------------------------------------------------------
    # Search
    # -----------------------------------------------------------------

    def search_procedures(self, query: str = "", type: str | None = None) -> list[Procedure]:
        """Procedures matching ``query`` and ``type``.

        ``type`` None (or ``"None"``) with no query selects nothing;
        ``"All"`` and ``"None"`` do not filter by type.
        """
        self._ensure_loaded()
        selected = type or TYPE_NONE
        text = (query or "").strip()
        if selected == TYPE_NONE and not text:
            return []

        results = self._procedure_index.query(text) if text else list(self._procedures)
        if selected not in (TYPE_ALL, TYPE_NONE):
            results = [p for p in results if p.type == selected]
        return results

    def search_items(self, query: str) -> list[str]:
        self._ensure_loaded()
        return self._item_index.query(query or "")

    def search_instruments(self, query: str) -> list[str]:
        self._ensure_loaded()
        return self._instrument_index.query(query or "")
