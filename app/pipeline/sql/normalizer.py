"""
Result normalization

Maps driver-typed cells to the transport-neutral scalars
{str, int, float, bool, None}. Conversion is an explicit table keyed by the
Python type the driver hands back; unknown types fall back to str().
"""
import logging
import math
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel

from app.pipeline.sql.executor import RawResult

logger = logging.getLogger(__name__)

Cell = Optional[Union[bool, int, float, str]]

# Largest integer a JSON consumer using IEEE-754 doubles (browsers) reads exactly
MAX_SAFE_INTEGER = 2 ** 53 - 1


class TabularResult(BaseModel):
    columns: List[str]
    rows: List[List[Cell]]


def _int_cell(value: int) -> Cell:
    if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
        return int(value)
    return str(value)


def _float_cell(value: float) -> Cell:
    # NaN/Infinity have no JSON representation
    if math.isnan(value) or math.isinf(value):
        return str(value)
    return float(value)


def _decimal_cell(value: Decimal) -> Cell:
    if value.is_finite() and value == value.to_integral_value():
        return _int_cell(int(value))
    return str(value)


def _binary_cell(value: Union[bytes, bytearray, memoryview]) -> Cell:
    return "0x" + bytes(value).hex().upper()


def _iso_cell(value: Union[date, time]) -> Cell:
    return value.isoformat()


CONVERTERS: Dict[type, Callable[[Any], Cell]] = {
    type(None): lambda v: None,
    bool: bool,
    int: _int_cell,
    float: _float_cell,
    str: str,
    Decimal: _decimal_cell,
    datetime: _iso_cell,
    date: _iso_cell,
    time: _iso_cell,
    timedelta: lambda v: v.total_seconds(),
    bytes: _binary_cell,
    bytearray: _binary_cell,
    memoryview: _binary_cell,
    uuid.UUID: str,
}


def _fallback(value: Any) -> Cell:
    logger.debug(f"[normalizer] no converter for {type(value).__name__}, using str()")
    return str(value)


def converter_for(value_type: type) -> Callable[[Any], Cell]:
    """Exact type first, then the nearest registered base class"""
    conv = CONVERTERS.get(value_type)
    if conv is not None:
        return conv
    for base in value_type.__mro__[1:]:
        conv = CONVERTERS.get(base)
        if conv is not None:
            return conv
    return _fallback


def normalize_cell(value: Any) -> Cell:
    return converter_for(type(value))(value)


def normalize_result(raw: RawResult) -> TabularResult:
    """
    Build the canonical tabular shape.

    Every row has exactly len(columns) cells, padded with None or truncated.
    """
    width = len(raw.columns)
    rows: List[List[Cell]] = []
    for raw_row in raw.rows:
        row = [normalize_cell(v) for v in raw_row[:width]]
        if len(row) < width:
            row.extend([None] * (width - len(row)))
        rows.append(row)
    return TabularResult(columns=list(raw.columns), rows=rows)


def coerce_str(cell: Cell) -> str:
    """String projection used by catalog listings"""
    if cell is None:
        return ""
    return str(cell)
