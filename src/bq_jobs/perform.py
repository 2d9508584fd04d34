"""Submit BigQuery jobs: extract, load (upload), query and copy.

Each ``perform_*`` function builds a ``jobs.insert`` body, merges in any
extra options (snake_case names are converted to camelCase), submits it,
and returns a ``JobRef``.  Waiting for the job to finish is up to the
caller.

API reference: https://cloud.google.com/bigquery/docs/reference/rest/v2/jobs
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import polars as pl
from google.cloud import bigquery

from bq_jobs.body import merge_body
from bq_jobs.config import load_default_config
from bq_jobs.fields import as_fields, export_ndjson, fields_to_json
from bq_jobs.references import JobRef, as_dataset, as_table
from bq_jobs.transport import Transport

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=UTF-8"
_JOB_FIELDS = {"fields": "jobReference"}


def _require_str(name: str, value: Any) -> None:
    if not isinstance(value, str):
        msg = f"{name} must be a string, got {type(value).__name__}"
        raise TypeError(msg)


def _transport(transport: Transport | None) -> Transport:
    if transport is not None:
        return transport
    return Transport.from_config(load_default_config())


def _submit(
    kind: str,
    billing: str,
    body: dict[str, Any],
    transport: Transport | None,
) -> JobRef:
    transport = _transport(transport)
    res = transport.post(transport.jobs_url(billing), body, params=_JOB_FIELDS)
    job = JobRef.from_api_repr(res["jobReference"])
    logger.info("Submitted %s job %s", kind, job)
    return job


def perform_extract(
    table: Any,
    destination_uris: str | Sequence[str],
    destination_format: str = bigquery.DestinationFormat.NEWLINE_DELIMITED_JSON,
    compression: str = bigquery.Compression.NONE,
    *,
    print_header: bool = True,
    billing: str | None = None,
    transport: Transport | None = None,
    **options: Any,
) -> JobRef:
    """Export a table to Google Cloud Storage.

    Args:
        table: Source table, anything accepted by ``as_table``.
        destination_uris: One or more fully-qualified ``gs://`` URIs.  A
            wildcard URI (``gs://bucket/file-*.json``) shards the export.
        destination_format: ``CSV``, ``NEWLINE_DELIMITED_JSON``,
            ``AVRO`` or ``PARQUET``.  Nested or repeated fields cannot be
            exported as CSV.
        compression: ``GZIP``, ``DEFLATE``, ``SNAPPY`` or ``NONE``.
        print_header: Whether to write a header row (CSV only).
        billing: Project to bill.  Defaults to the table's project.
        transport: HTTP transport; built from config when omitted.
        **options: Extra job-resource fields, merged at the root.

    Returns:
        Reference to the submitted job.

    Raises:
        TypeError: If *destination_uris* or *billing* has the wrong type.
    """
    source = as_table(table)
    if isinstance(destination_uris, str):
        uris = [destination_uris]
    elif isinstance(destination_uris, Iterable) and not isinstance(
        destination_uris, (bytes, Mapping)
    ):
        uris = list(destination_uris)
        for uri in uris:
            _require_str("destination_uris", uri)
    else:
        msg = (
            "destination_uris must be a string or a sequence of strings, "
            f"got {type(destination_uris).__name__}"
        )
        raise TypeError(msg)

    billing = source.project if billing is None else billing
    _require_str("billing", billing)

    body = {
        "configuration": {
            "extract": {
                "sourceTable": source.to_api_repr(),
                "destinationUris": uris,
                "destinationFormat": destination_format,
                "compression": compression,
                "printHeader": print_header,
            }
        }
    }
    return _submit("extract", billing, merge_body(body, **options), transport)


def perform_upload(
    table: Any,
    values: pl.DataFrame,
    create_disposition: str = bigquery.CreateDisposition.CREATE_IF_NEEDED,
    write_disposition: str = bigquery.WriteDisposition.WRITE_APPEND,
    *,
    fields: Iterable[bigquery.SchemaField | Mapping[str, Any]] | None = None,
    billing: str | None = None,
    transport: Transport | None = None,
    **options: Any,
) -> JobRef:
    """Load a polars frame into a table with a multipart upload.

    The load configuration and the rows (as newline-delimited JSON) are
    sent together as a ``multipart/related`` request.

    Args:
        table: Destination table, anything accepted by ``as_table``.
        values: Rows to load.
        create_disposition: ``CREATE_IF_NEEDED`` or ``CREATE_NEVER``.
        write_disposition: ``WRITE_TRUNCATE``, ``WRITE_APPEND`` or
            ``WRITE_EMPTY``.
        fields: Explicit schema.  Defaults to one derived from the
            column dtypes of *values*.
        billing: Project to bill.  Defaults to the table's project.
        transport: HTTP transport; built from config when omitted.
        **options: Extra job-resource fields, merged at the root.

    Returns:
        Reference to the submitted job.

    Raises:
        TypeError: If *values* is not a ``polars.DataFrame``, *billing*
            is not a string, or a column type has no BigQuery mapping.
    """
    destination = as_table(table)
    if not isinstance(values, pl.DataFrame):
        msg = f"values must be a polars DataFrame, got {type(values).__name__}"
        raise TypeError(msg)
    billing = destination.project if billing is None else billing
    _require_str("billing", billing)

    schema = fields_to_json(as_fields(values) if fields is None else fields)
    config = {
        "configuration": {
            "load": {
                "sourceFormat": bigquery.SourceFormat.NEWLINE_DELIMITED_JSON,
                "schema": {"fields": schema},
                "destinationTable": destination.to_api_repr(),
                "createDisposition": create_disposition,
                "writeDisposition": write_disposition,
            }
        }
    }
    config = merge_body(config, **options)
    logger.debug("Load configuration: %s", config)

    transport = _transport(transport)
    res = transport.upload(
        transport.jobs_url(billing, upload=True),
        config,
        export_ndjson(values),
        JSON_CONTENT_TYPE,
        params=_JOB_FIELDS,
    )
    job = JobRef.from_api_repr(res["jobReference"])
    logger.info(
        "Submitted load job %s (%d rows -> %s)", job, values.height, destination
    )
    return job


def perform_query(
    query: str,
    billing: str,
    *,
    destination_table: Any = None,
    default_dataset: Any = None,
    create_disposition: str = bigquery.CreateDisposition.CREATE_IF_NEEDED,
    write_disposition: str = bigquery.WriteDisposition.WRITE_EMPTY,
    use_legacy_sql: bool = False,
    priority: str = bigquery.QueryPriority.INTERACTIVE,
    transport: Transport | None = None,
    **options: Any,
) -> JobRef:
    """Run a SQL query as a job.

    Args:
        query: SQL query string.
        billing: Project to bill.
        destination_table: Table to store results in.  Without it,
            results go to an anonymous temporary table; large results
            (> 128 MB compressed) need an explicit destination.
        default_dataset: Dataset used to qualify unqualified table names.
        create_disposition: Only sent with a destination table.
        write_disposition: Only sent with a destination table.
        use_legacy_sql: Use legacy SQL instead of GoogleSQL.
        priority: ``INTERACTIVE`` or ``BATCH``.
        transport: HTTP transport; built from config when omitted.
        **options: Extra job-resource fields, merged at the root.

    Returns:
        Reference to the submitted job.

    Raises:
        TypeError: If *query* or *billing* is not a string.
    """
    _require_str("query", query)
    _require_str("billing", billing)

    config: dict[str, Any] = {
        "query": query,
        "useLegacySql": use_legacy_sql,
        "priority": priority,
    }

    if destination_table is not None:
        config["destinationTable"] = as_table(destination_table).to_api_repr()
        config["createDisposition"] = create_disposition
        config["writeDisposition"] = write_disposition
        # Legacy SQL refuses large results into a destination without this.
        if use_legacy_sql:
            config["allowLargeResults"] = True

    if default_dataset is not None:
        config["defaultDataset"] = as_dataset(default_dataset).to_api_repr()

    body = {"configuration": {"query": config}}
    return _submit("query", billing, merge_body(body, **options), transport)


def perform_copy(
    src: Any,
    dest: Any,
    create_disposition: str = bigquery.CreateDisposition.CREATE_IF_NEEDED,
    write_disposition: str = bigquery.WriteDisposition.WRITE_EMPTY,
    *,
    billing: str | None = None,
    transport: Transport | None = None,
    **options: Any,
) -> JobRef:
    """Copy one table to another.

    Args:
        src: Source table.
        dest: Destination table.
        create_disposition: ``CREATE_IF_NEEDED`` or ``CREATE_NEVER``.
        write_disposition: ``WRITE_TRUNCATE``, ``WRITE_APPEND`` or
            ``WRITE_EMPTY``.
        billing: Project to bill.  Defaults to the destination's project.
        transport: HTTP transport; built from config when omitted.
        **options: Extra job-resource fields, merged at the root.

    Returns:
        Reference to the submitted job.
    """
    source = as_table(src)
    destination = as_table(dest)
    billing = destination.project if billing is None else billing
    _require_str("billing", billing)

    body = {
        "configuration": {
            "copy": {
                "sourceTable": source.to_api_repr(),
                "destinationTable": destination.to_api_repr(),
                "createDisposition": create_disposition,
                "writeDisposition": write_disposition,
            }
        }
    }
    return _submit("copy", billing, merge_body(body, **options), transport)
