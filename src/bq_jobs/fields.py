"""Map polars frames onto BigQuery load schemas and NDJSON payloads."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import polars as pl
from google.cloud import bigquery

_DATE_FORMAT = "%Y-%m-%d"
_TIME_FORMAT = "%H:%M:%S%.6f"
_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S%.6f"


def _field_type(dtype: pl.DataType) -> str | None:
    """Return the BigQuery type name for a scalar polars dtype."""
    if dtype.is_integer():
        return "INTEGER"
    if dtype.is_float():
        return "FLOAT"
    if dtype.is_decimal():
        return "NUMERIC"
    if isinstance(dtype, pl.Boolean):
        return "BOOLEAN"
    if isinstance(dtype, (pl.String, pl.Categorical, pl.Enum, pl.Null)):
        return "STRING"
    if isinstance(dtype, pl.Datetime):
        return "TIMESTAMP" if dtype.time_zone else "DATETIME"
    if isinstance(dtype, pl.Date):
        return "DATE"
    if isinstance(dtype, pl.Time):
        return "TIME"
    if isinstance(dtype, pl.Binary):
        return "BYTES"
    return None


def as_field(name: str, dtype: pl.DataType) -> bigquery.SchemaField:
    """Build a ``SchemaField`` for one column.

    Args:
        name: Column name.
        dtype: Polars dtype of the column.

    Returns:
        The matching ``SchemaField``.  ``List``/``Array`` columns become
        ``REPEATED`` fields of their inner type and ``Struct`` columns
        become ``RECORD`` fields.

    Raises:
        TypeError: If the dtype has no BigQuery counterpart.
    """
    mode = "NULLABLE"
    if isinstance(dtype, (pl.List, pl.Array)):
        mode = "REPEATED"
        dtype = dtype.inner
        if isinstance(dtype, (pl.List, pl.Array)):
            msg = f"Column '{name}': nested lists are not supported by BigQuery"
            raise TypeError(msg)

    if isinstance(dtype, pl.Struct):
        sub_fields = [as_field(f.name, f.dtype) for f in dtype.fields]
        return bigquery.SchemaField(name, "RECORD", mode=mode, fields=sub_fields)

    field_type = _field_type(dtype)
    if field_type is None:
        msg = f"Column '{name}' has unsupported type {dtype}"
        raise TypeError(msg)
    return bigquery.SchemaField(name, field_type, mode=mode)


def as_fields(df: pl.DataFrame) -> list[bigquery.SchemaField]:
    """Derive the load schema for every column of *df*."""
    return [as_field(name, dtype) for name, dtype in df.schema.items()]


def fields_to_json(
    fields: Iterable[bigquery.SchemaField | Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Serialise schema fields to their API representation."""
    out: list[dict[str, Any]] = []
    for field in fields:
        if isinstance(field, bigquery.SchemaField):
            out.append(field.to_api_repr())
        elif isinstance(field, Mapping):
            out.append(dict(field))
        else:
            msg = f"Expected SchemaField or mapping, got {type(field).__name__}"
            raise TypeError(msg)
    return out


def _wire_expr(expr: pl.Expr, dtype: pl.DataType) -> pl.Expr | None:
    """Rewrite *expr* into the JSON form BigQuery loads expect.

    Returns ``None`` when polars already writes the dtype as-is.
    """
    if isinstance(dtype, pl.Binary):
        return expr.bin.encode("base64")
    if dtype.is_decimal() or isinstance(dtype, (pl.Categorical, pl.Enum)):
        return expr.cast(pl.String)
    if isinstance(dtype, pl.Datetime):
        fmt = _DATETIME_FORMAT + "%:z" if dtype.time_zone else _DATETIME_FORMAT
        return expr.dt.strftime(fmt)
    if isinstance(dtype, pl.Date):
        return expr.dt.strftime(_DATE_FORMAT)
    if isinstance(dtype, pl.Time):
        return expr.dt.strftime(_TIME_FORMAT)
    if isinstance(dtype, pl.Array):
        inner = _wire_expr(pl.element(), dtype.inner)
        listed = expr.arr.to_list()
        return listed if inner is None else listed.list.eval(inner)
    if isinstance(dtype, pl.List):
        inner = _wire_expr(pl.element(), dtype.inner)
        return None if inner is None else expr.list.eval(inner)
    if isinstance(dtype, pl.Struct):
        rewritten = [
            (f.name, _wire_expr(expr.struct.field(f.name), f.dtype))
            for f in dtype.fields
        ]
        if all(sub is None for _, sub in rewritten):
            return None
        return pl.struct(
            [
                (expr.struct.field(name) if sub is None else sub).alias(name)
                for name, sub in rewritten
            ]
        )
    return None


def export_ndjson(df: pl.DataFrame) -> bytes:
    """Encode *df* as newline-delimited JSON, one object per row.

    Bytes are base64-encoded, decimals are sent as strings and temporal
    values use ISO 8601 text with microsecond precision, at any nesting
    depth.
    """
    rewrites = []
    for name, dtype in df.schema.items():
        wire = _wire_expr(pl.col(name), dtype)
        if wire is not None:
            rewrites.append(wire.alias(name))
    if rewrites:
        df = df.with_columns(rewrites)
    return df.write_ndjson().encode("utf-8")
