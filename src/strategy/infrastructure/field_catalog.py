"""Filter field catalog: static field definitions plus master-data backed option lists."""

import asyncio
import time
from collections.abc import Callable

from loguru import logger

from src.strategy.domain.catalog import FieldCatalog
from src.strategy.domain.exceptions import BackendError
from src.strategy.domain.models import FilterField, FilterOption, FilterType
from src.strategy.domain.protocols import MasterDataSource


def _numeric(field_id: str, name: str) -> FilterField:
    return FilterField(id=field_id, display_name=name, type=FilterType.NUMERIC)


def _text(field_id: str, name: str, category: str | None = None) -> FilterField:
    return FilterField(id=field_id, display_name=name, type=FilterType.TEXT, options_category=category)


def _date(field_id: str, name: str) -> FilterField:
    return FilterField(id=field_id, display_name=name, type=FilterType.DATE)


FIELD_DEFINITIONS: tuple[FilterField, ...] = (
    # Numeric fields
    _numeric("DPD", "Days Past Due (DPD)"),
    _numeric("OVERDUE_AMOUNT", "Overdue Amount"),
    _numeric("LOAN_AMOUNT", "Loan Amount"),
    _numeric("EMI_AMOUNT", "EMI Amount"),
    _numeric("PAID_EMI", "Paid EMI Count"),
    _numeric("PENDING_EMI", "Pending EMI Count"),
    _numeric("POS", "Principal Outstanding"),
    _numeric("TOS", "Total Outstanding"),
    _numeric("PENALTY_AMOUNT", "Penalty Amount"),
    _numeric("LATE_FEES", "Late Fees"),
    _numeric("OD_INTEREST", "Overdue Interest"),
    _numeric("BUREAU_SCORE", "Bureau Score"),
    # Text fields (enumerated ones carry their master-data category)
    _text("LANGUAGE", "Language", "LANGUAGE"),
    _text("STATE", "State", "STATE"),
    _text("CITY", "City", "CITY"),
    _text("PINCODE", "Pincode"),
    _text("STATUS", "Case Status", "CASE_STATUS"),
    _text("CHANNEL", "Communication Channel", "CHANNEL"),
    _text("SOURCE_TYPE", "Source Type"),
    _text("OWNERSHIP", "Ownership", "OWNERSHIP"),
    _text("PRODUCT", "Product", "PRODUCT"),
    _text("BUCKET", "DPD Bucket", "DPD"),
    # Date fields
    _date("DUE_DATE", "Due Date"),
    _date("DISB_DATE", "Disbursement Date"),
    _date("EMI_START_DATE", "EMI Start Date"),
    _date("MATURITY_DATE", "Maturity Date"),
    _date("LAST_PAYMENT_DATE", "Last Payment Date"),
    _date("NEXT_EMI_DATE", "Next EMI Date"),
)


class FieldCatalogLoader:
    """
    Loads the field catalog for an editing session.

    Option lists of enumerated fields are fetched concurrently and reused for
    ``ttl_seconds``; only active master-data entries are kept. A category that cannot
    be loaded leaves its field with an empty option list (value decoding becomes an
    identity) and is fetched again on the next load() until it succeeds.
    """

    def __init__(
        self,
        master_data: MasterDataSource,
        definitions: tuple[FilterField, ...] = FIELD_DEFINITIONS,
        ttl_seconds: float | None = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize loader.

        Args:
            master_data: Master-data lookup backing the enumerated fields
            definitions: Static field definitions
            ttl_seconds: How long a complete catalog is reused, None for no expiry
            clock: Monotonic clock (injectable for tests)
        """
        self.master_data = master_data
        self.definitions = definitions
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._fields: dict[str, FilterField] = {}
        self._failed: set[str] = set()
        self._catalog: FieldCatalog | None = None
        self._loaded_at = 0.0
        self._lock = asyncio.Lock()

    @property
    def degraded(self) -> list[str]:
        """Ids of enumerated fields whose options could not be loaded."""
        return sorted(self._failed)

    async def load(self) -> FieldCatalog:
        """Return the cached catalog, (re)loading expired or failed option lists."""
        if self._is_fresh():
            return self._catalog

        async with self._lock:
            if not self._is_fresh():
                await self._refresh()
            return self._catalog

    def invalidate(self) -> None:
        """Drop the cache; the next load() refetches every option list."""
        self._catalog = None
        self._fields.clear()
        self._failed.clear()

    def _expired(self) -> bool:
        return self.ttl_seconds is not None and self.clock() - self._loaded_at >= self.ttl_seconds

    def _is_fresh(self) -> bool:
        return self._catalog is not None and not self._failed and not self._expired()

    async def _refresh(self) -> None:
        full = self._catalog is None or self._expired()
        pending = self.definitions if full else [f for f in self.definitions if f.id in self._failed]

        results = await asyncio.gather(*(self._with_options(f) for f in pending))
        for field, loaded in results:
            self._fields[field.id] = field
            if loaded:
                self._failed.discard(field.id)
            else:
                self._failed.add(field.id)

        if full:
            self._loaded_at = self.clock()
        self._catalog = FieldCatalog([self._fields[f.id] for f in self.definitions])

        enumerated = sum(1 for f in self._catalog if f.options)
        if self._failed:
            logger.warning(
                f"📚 Field catalog loaded with {len(self._failed)} option lists missing: {', '.join(self.degraded)}"
            )
        else:
            logger.info(f"📚 Loaded field catalog: {len(self._catalog)} fields, {enumerated} with options")

    async def _with_options(self, field: FilterField) -> tuple[FilterField, bool]:
        if not field.is_enumerated:
            return field, True

        try:
            items = await self.master_data.get_by_type(field.options_category)
        except BackendError as e:
            logger.warning(f"Options for {field.id} ({field.options_category}) unavailable: {e.message}")
            return field, False

        options = tuple(FilterOption(code=item.code, value=item.value) for item in items if item.is_active)
        return field.model_copy(update={"options": options}), True
