"""Table, dataset and job references used in job configurations.

Each reference serialises to the camelCase shape the BigQuery REST API
expects via ``to_api_repr()``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from google.cloud import bigquery


def _require_id(kind: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        msg = f"{kind} must be a non-empty string, got {value!r}"
        raise ValueError(msg)


@dataclass(frozen=True)
class DatasetRef:
    """Reference to a BigQuery dataset."""

    project: str
    dataset: str

    def __post_init__(self) -> None:
        _require_id("project", self.project)
        _require_id("dataset", self.dataset)

    def to_api_repr(self) -> dict[str, str]:
        return {"projectId": self.project, "datasetId": self.dataset}

    def __str__(self) -> str:
        return f"{self.project}.{self.dataset}"


@dataclass(frozen=True)
class TableRef:
    """Reference to a BigQuery table."""

    project: str
    dataset: str
    table: str

    def __post_init__(self) -> None:
        _require_id("project", self.project)
        _require_id("dataset", self.dataset)
        _require_id("table", self.table)

    def to_api_repr(self) -> dict[str, str]:
        return {
            "projectId": self.project,
            "datasetId": self.dataset,
            "tableId": self.table,
        }

    def __str__(self) -> str:
        return f"{self.project}.{self.dataset}.{self.table}"


@dataclass(frozen=True)
class JobRef:
    """Handle to a submitted job, as returned by ``jobs.insert``."""

    project: str
    job_id: str
    location: str | None = None

    def __post_init__(self) -> None:
        _require_id("project", self.project)
        _require_id("job_id", self.job_id)

    @classmethod
    def from_api_repr(cls, resource: Mapping[str, Any]) -> JobRef:
        """Build a ``JobRef`` from a ``jobReference`` resource.

        Args:
            resource: Mapping with ``projectId``, ``jobId`` and an
                optional ``location``.

        Raises:
            ValueError: If ``projectId`` or ``jobId`` is missing.
        """
        return cls(
            project=resource.get("projectId", ""),
            job_id=resource.get("jobId", ""),
            location=resource.get("location"),
        )

    def to_api_repr(self) -> dict[str, str]:
        resource = {"projectId": self.project, "jobId": self.job_id}
        if self.location:
            resource["location"] = self.location
        return resource

    def __str__(self) -> str:
        if self.location:
            return f"{self.project}.{self.job_id}.{self.location}"
        return f"{self.project}.{self.job_id}"


def _pick(mapping: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in mapping:
            return mapping[key]
    return None


def as_table(x: Any, default_project: str | None = None) -> TableRef:
    """Coerce *x* to a ``TableRef``.

    Args:
        x: A ``TableRef``, a ``bigquery.TableReference`` / ``Table`` /
            ``TableListItem``, a ``"project.dataset.table"`` string, or a
            mapping with ``projectId``/``datasetId``/``tableId`` (or the
            snake_case ``project``/``dataset``/``table``) keys.
        default_project: Project used when a string omits it.

    Returns:
        The coerced ``TableRef``.

    Raises:
        TypeError: If *x* is none of the accepted kinds.
        ValueError: If a string cannot be parsed or an id is empty.
    """
    if isinstance(x, TableRef):
        return x
    if isinstance(
        x, (bigquery.TableReference, bigquery.Table, bigquery.table.TableListItem)
    ):
        return TableRef(x.project, x.dataset_id, x.table_id)
    if isinstance(x, str):
        ref = bigquery.TableReference.from_string(x, default_project=default_project)
        return TableRef(ref.project, ref.dataset_id, ref.table_id)
    if isinstance(x, Mapping):
        return TableRef(
            project=_pick(x, "projectId", "project") or default_project,
            dataset=_pick(x, "datasetId", "dataset"),
            table=_pick(x, "tableId", "table"),
        )
    msg = f"Cannot coerce {type(x).__name__} to a table reference"
    raise TypeError(msg)


def as_dataset(x: Any, default_project: str | None = None) -> DatasetRef:
    """Coerce *x* to a ``DatasetRef``.

    Accepts the same kinds of input as :func:`as_table`, at dataset level.
    A ``TableRef`` is narrowed to its dataset.
    """
    if isinstance(x, DatasetRef):
        return x
    if isinstance(x, TableRef):
        return DatasetRef(x.project, x.dataset)
    if isinstance(
        x,
        (bigquery.DatasetReference, bigquery.Dataset, bigquery.dataset.DatasetListItem),
    ):
        return DatasetRef(x.project, x.dataset_id)
    if isinstance(x, str):
        ref = bigquery.DatasetReference.from_string(
            x, default_project=default_project
        )
        return DatasetRef(ref.project, ref.dataset_id)
    if isinstance(x, Mapping):
        return DatasetRef(
            project=_pick(x, "projectId", "project") or default_project,
            dataset=_pick(x, "datasetId", "dataset"),
        )
    msg = f"Cannot coerce {type(x).__name__} to a dataset reference"
    raise TypeError(msg)


def as_job(x: Any) -> JobRef:
    """Coerce a ``JobRef`` or a ``jobReference`` mapping to a ``JobRef``."""
    if isinstance(x, JobRef):
        return x
    if isinstance(x, Mapping):
        return JobRef.from_api_repr(x)
    msg = f"Cannot coerce {type(x).__name__} to a job reference"
    raise TypeError(msg)
