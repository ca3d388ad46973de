"""Flat-file listing, metadata and transfer result models."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import Field

from polymux.models.base import PolymuxModel

BYTES_PER_MB = 1_048_576.0


def _strip_etag(etag: Any) -> str | None:
    if etag is None:
        return None
    return str(etag).replace('"', "")


def _na(value: Any) -> str:
    return "N/A" if value is None else str(value)


class FileInfo(PolymuxModel):
    key: str
    asset_class: str
    data_type: str
    date: str
    size: int = Field(ge=0)
    last_modified: dt.datetime | None = None
    etag: str | None = None
    record_count: int | None = None

    @property
    def size_mb(self) -> float:
        return self.size / BYTES_PER_MB

    @property
    def compression(self) -> str:
        return "gzip" if self.key.endswith(".gz") else "none"

    @property
    def is_compressed(self) -> bool:
        return self.compression == "gzip"

    @property
    def suggested_filename(self) -> str:
        suffix = ".gz" if self.is_compressed else ""
        return f"{self.asset_class}_{self.data_type}_{self.date}.csv{suffix}"

    @classmethod
    def from_s3_object(cls, s3_object: dict[str, Any]) -> "FileInfo":
        """Build from a `list_objects_v2` entry; key layout is asset/type/YYYY/MM/DD/file."""
        key = str(s3_object.get("Key") or s3_object.get("key") or "")
        parts = key.split("/")
        padded = parts + [""] * (5 - len(parts))
        return cls.build(
            {
                "key": key,
                "asset_class": padded[0],
                "data_type": padded[1],
                "date": f"{padded[2]}-{padded[3]}-{padded[4]}",
                "size": s3_object.get("Size", s3_object.get("size", 0)),
                "last_modified": s3_object.get("LastModified", s3_object.get("last_modified")),
                "etag": _strip_etag(s3_object.get("ETag", s3_object.get("etag"))),
            }
        )


class FileMetadata(PolymuxModel):
    file_info: FileInfo
    record_count: int | None = None
    ticker_count: int | None = None
    first_timestamp: dt.datetime | None = None
    last_timestamp: dt.datetime | None = None
    quality_score: int | None = None
    top_tickers: list[str] | None = None
    processed_at: dt.datetime | None = None
    completeness: float | None = None
    checksum: str | None = None
    schema_version: str | None = None

    @property
    def key(self) -> str:
        return self.file_info.key

    @property
    def asset_class(self) -> str:
        return self.file_info.asset_class

    @property
    def data_type(self) -> str:
        return self.file_info.data_type

    @property
    def date(self) -> str:
        return self.file_info.date

    @property
    def size(self) -> int:
        return self.file_info.size

    @property
    def size_mb(self) -> float:
        return self.file_info.size_mb

    @property
    def last_modified(self) -> dt.datetime | None:
        return self.file_info.last_modified

    @property
    def etag(self) -> str | None:
        return self.file_info.etag

    @property
    def compression(self) -> str:
        return self.file_info.compression

    @property
    def is_compressed(self) -> bool:
        return self.file_info.is_compressed

    @property
    def suggested_filename(self) -> str:
        return self.file_info.suggested_filename

    @property
    def content_type(self) -> str:
        return "text/csv"

    @property
    def records_per_mb(self) -> float | None:
        if self.record_count is None or self.file_info.size <= 0:
            return None
        return self.record_count / self.file_info.size_mb

    @property
    def time_span_hours(self) -> float | None:
        if self.first_timestamp is None or self.last_timestamp is None:
            return None
        return (self.last_timestamp - self.first_timestamp).total_seconds() / 3600.0

    @property
    def is_high_quality(self) -> bool:
        if self.quality_score is None or self.completeness is None:
            return False
        return self.quality_score >= 90 and self.completeness >= 95.0

    @property
    def detailed_report(self) -> str:
        records = f"{self.record_count:,}" if self.record_count is not None else "N/A"
        density = round(self.records_per_mb) if self.records_per_mb is not None else None
        completeness = round(self.completeness, 1) if self.completeness is not None else None
        span = round(self.time_span_hours, 1) if self.time_span_hours is not None else None
        lines = [
            "File Metadata Report",
            "===================",
            f"File: {self.key}",
            f"Asset Class: {self.asset_class.upper()}",
            f"Data Type: {self.data_type.upper()}",
            f"Date: {self.date}",
            "",
            "File Details:",
            f"  Size: {round(self.size_mb, 2)} MB ({self.size:,} bytes)",
            f"  Compression: {self.compression.upper()}",
            f"  Last Modified: {_na(self.last_modified)}",
            "",
            "Data Details:",
            f"  Records: {records}",
            f"  Tickers: {_na(self.ticker_count)}",
            f"  Density: {_na(density)} records/MB",
            "",
            "Quality Metrics:",
            f"  Quality Score: {_na(self.quality_score)}/100",
            f"  Completeness: {_na(completeness)}%",
            f"  Status: {'HIGH QUALITY' if self.is_high_quality else 'STANDARD'}",
            "",
            "Time Coverage:",
            f"  First: {_na(self.first_timestamp)}",
            f"  Last: {_na(self.last_timestamp)}",
            f"  Span: {_na(span)} hours",
        ]
        return "\n".join(lines) + "\n"


class DownloadResult(PolymuxModel):
    key: str
    local_path: str
    size: int
    duration: float = 0.0
    resumed_from: int = 0
    success: bool = True


class DownloadFailure(PolymuxModel):
    key: str
    error: str
    retry_count: int = 0


class BulkDownloadResult(PolymuxModel):
    total_files: int
    successful_files: int
    failed_files: int
    total_bytes: int
    duration_seconds: float
    successful_downloads: tuple[DownloadResult, ...] = ()
    failed_downloads: tuple[DownloadFailure, ...] = ()
    destination_directory: str
    started_at: dt.datetime
    completed_at: dt.datetime

    @property
    def success_rate(self) -> float:
        if self.total_files == 0:
            return 0.0
        return self.successful_files / self.total_files * 100.0

    @property
    def total_size_mb(self) -> float:
        return self.total_bytes / BYTES_PER_MB

    @property
    def average_speed_mbps(self) -> float:
        if self.duration_seconds == 0:
            return 0.0
        return self.total_size_mb / self.duration_seconds

    @property
    def is_success(self) -> bool:
        return self.failed_files == 0

    @property
    def is_partial_failure(self) -> bool:
        return self.failed_files > 0 and self.successful_files > 0

    @property
    def is_complete_failure(self) -> bool:
        return self.successful_files == 0 and self.failed_files > 0

    @property
    def summary(self) -> str:
        if self.is_success:
            status = "SUCCESS"
        elif self.is_partial_failure:
            status = "PARTIAL"
        else:
            status = "FAILED"
        lines = [
            f"Bulk Download Summary [{status}]",
            "================================",
            f"Total Files: {self.total_files}",
            f"Successful: {self.successful_files} ({round(self.success_rate, 1)}%)",
            f"Failed: {self.failed_files}",
            "",
            "Data Transfer:",
            f"  Total Size: {round(self.total_size_mb, 2)} MB",
            f"  Duration: {round(self.duration_seconds, 2)} seconds",
            f"  Average Speed: {round(self.average_speed_mbps, 2)} MB/s",
            "",
            f"Destination: {self.destination_directory}",
            f"Started: {self.started_at.isoformat()}",
            f"Completed: {self.completed_at.isoformat()}",
        ]
        return "\n".join(lines) + "\n"
