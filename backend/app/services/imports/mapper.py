from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping


@dataclass(frozen=True)
class ColumnMapping:
    # logical field -> header literally present in the upload
    fields: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __contains__(self, logical_field: object) -> bool:
        return logical_field in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def resolve(self, logical_field: str) -> str:
        # Unmapped fields are looked up under their own name.
        return self.fields.get(logical_field) or logical_field

    def as_dict(self) -> dict[str, str]:
        return dict(self.fields)


EMPTY_MAPPING = ColumnMapping()


def auto_map_columns(headers: Iterable[str], logical_fields: Iterable[str]) -> ColumnMapping:
    # Case-insensitive substring match either way; first header wins, no scoring.
    header_list = [h for h in headers if h and h.strip()]
    lowered = [h.lower() for h in header_list]
    mapping: dict[str, str] = {}
    for logical in logical_fields:
        if not logical or logical in mapping:
            continue
        needle = logical.lower()
        for header, hay in zip(header_list, lowered):
            if needle in hay or hay in needle:
                mapping[logical] = header
                break
    return ColumnMapping(mapping)
