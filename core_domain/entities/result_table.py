import copy
from numbers import Number
from typing import Any, Dict, Iterator, List, Optional

LABEL_COLUMN = "label"


def _sum_values(existing: Any, incoming: Any) -> Any:
    if existing is None:
        return incoming
    if incoming is None:
        return existing
    if isinstance(existing, bool) or isinstance(incoming, bool):
        return incoming
    if isinstance(existing, Number) and isinstance(incoming, Number):
        return existing + incoming
    if isinstance(existing, dict) and isinstance(incoming, dict):
        merged = dict(existing)
        for key, value in incoming.items():
            merged[key] = _sum_values(merged.get(key), value)
        return merged
    # non numeric values cannot be aggregated, the incoming one wins
    return incoming


class ResultRow:
    """
    One row of a result table: ordered columns, dimension metadata and a label.
    """

    def __init__(self, columns: Optional[Dict[Any, Any]] = None, metadata: Optional[Dict[str, Any]] = None):
        self._columns: Dict[Any, Any] = dict(columns or {})
        self._metadata: Dict[str, Any] = dict(metadata or {})

    @property
    def label(self) -> Optional[str]:
        return self._columns.get(LABEL_COLUMN)

    def has_column(self, name: Any) -> bool:
        return name in self._columns

    def get_column(self, name: Any, default: Any = None) -> Any:
        return self._columns.get(name, default)

    def set_column(self, name: Any, value: Any) -> None:
        self._columns[name] = value

    def get_columns(self) -> Dict[Any, Any]:
        return dict(self._columns)

    def set_columns(self, columns: Dict[Any, Any]) -> None:
        self._columns = dict(columns)

    def get_metadata(self, name: str, default: Any = None) -> Any:
        return self._metadata.get(name, default)

    def set_metadata(self, name: str, value: Any) -> None:
        self._metadata[name] = value

    def get_all_metadata(self) -> Dict[str, Any]:
        return dict(self._metadata)

    def sum_row(self, other: "ResultRow") -> None:
        """Adds every column of `other` into this row. The label is left untouched."""
        for name, value in other._columns.items():
            if name == LABEL_COLUMN:
                if LABEL_COLUMN not in self._columns:
                    self._columns[LABEL_COLUMN] = value
                continue
            self._columns[name] = _sum_values(self._columns.get(name), value)
        for name, value in other._metadata.items():
            if self._metadata.get(name) is None:
                self._metadata[name] = value

    def clone(self) -> "ResultRow":
        return ResultRow(copy.deepcopy(self._columns), dict(self._metadata))

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "metadata": self.get_all_metadata(), "columns": self.get_columns()}

    def __eq__(self, other):
        if isinstance(other, ResultRow):
            return self._columns == other._columns and self._metadata == other._metadata
        return False

    def __repr__(self):
        return f"<ResultRow label={self.label!r} columns={self._columns!r}>"


class ResultTable:
    """Ordered rows indexed by label. Built per query and returned to the caller."""

    def __init__(self):
        self._rows: List[ResultRow] = []
        self._label_index: Dict[str, ResultRow] = {}

    def add_row(self, row: ResultRow) -> ResultRow:
        self._rows.append(row)
        if row.label is not None:
            self._label_index.setdefault(row.label, row)
        return row

    def get_row_from_label(self, label: Optional[str]) -> Optional[ResultRow]:
        if label is None:
            return None
        return self._label_index.get(label)

    def get_first_row(self) -> Optional[ResultRow]:
        return self._rows[0] if self._rows else None

    def get_rows(self) -> List[ResultRow]:
        return list(self._rows)

    def rebuild_label_index(self) -> None:
        """Must be called after labels of existing rows are changed in place."""
        self._label_index = {}
        for row in self._rows:
            if row.label is not None:
                self._label_index.setdefault(row.label, row)

    def to_records(self) -> List[Dict[str, Any]]:
        return [row.to_dict() for row in self._rows]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[ResultRow]:
        return iter(self._rows)

    def __repr__(self):
        return f"<ResultTable rows={len(self._rows)}>"
