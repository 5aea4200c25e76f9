# store_monitor/store_directory.py
"""
Store master data: store_id -> (store_name, area_code).

Loaded once at startup from a CSV file whose header row is discarded and
whose rows are `area_code,store_name,store_id`. Read-only afterwards, so
lookups need no locking.
"""
import csv
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from .errors import StoreDirectoryError

FIELDS_PER_RECORD = 3


@dataclass(frozen=True)
class StoreRecord:
    store_name: str
    area_code: str


class StoreDirectory:
    def __init__(self, stores: Mapping[str, StoreRecord]):
        self._stores = MappingProxyType(dict(stores))

    def lookup(self, store_id: str) -> Optional[StoreRecord]:
        return self._stores.get(store_id)

    def __contains__(self, store_id) -> bool:
        return store_id in self._stores

    def __len__(self) -> int:
        return len(self._stores)


def load_store_directory(path) -> StoreDirectory:
    """Parse the store master CSV. Raises StoreDirectoryError on any problem."""
    stores: Dict[str, StoreRecord] = {}
    try:
        f = open(path, newline="", encoding="utf-8")
    except OSError as e:
        raise StoreDirectoryError(f"failed to open CSV file: {e}") from e

    with f:
        reader = csv.reader(f)
        try:
            header = next(reader, None)
            if header is None:
                raise StoreDirectoryError("failed to read CSV header: file is empty")
            if len(header) != FIELDS_PER_RECORD:
                raise StoreDirectoryError(
                    f"failed to read CSV header: line {reader.line_num} has "
                    f"{len(header)} fields, expected {FIELDS_PER_RECORD}"
                )
            for row in reader:
                if not row:
                    continue
                if len(row) != FIELDS_PER_RECORD:
                    raise StoreDirectoryError(
                        f"failed to read CSV record: line {reader.line_num} has "
                        f"{len(row)} fields, expected {FIELDS_PER_RECORD}"
                    )
                area_code, store_name, store_id = row
                stores[store_id] = StoreRecord(store_name=store_name, area_code=area_code)
        except csv.Error as e:
            raise StoreDirectoryError(f"failed to read CSV record: {e}") from e

    return StoreDirectory(stores)
