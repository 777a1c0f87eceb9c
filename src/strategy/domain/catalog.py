"""Immutable filter field catalog shared by all condition edits of one rule form."""

from collections.abc import Iterable, Iterator

from src.strategy.domain.exceptions import UnknownFieldError
from src.strategy.domain.models import FilterField, FilterType


class FieldCatalog:
    """Read-only lookup of filter fields by id, in catalog order."""

    def __init__(self, fields: Iterable[FilterField]):
        self._fields: dict[str, FilterField] = {f.id: f for f in fields}

    def get(self, field_id: str) -> FilterField:
        """Get a field, raising UnknownFieldError if absent."""
        try:
            return self._fields[field_id]
        except KeyError:
            raise UnknownFieldError(field_id) from None

    def find(self, field_id: str) -> FilterField | None:
        return self._fields.get(field_id)

    def of_type(self, filter_type: FilterType) -> list[FilterField]:
        return [f for f in self._fields.values() if f.type == filter_type]

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def __iter__(self) -> Iterator[FilterField]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)
