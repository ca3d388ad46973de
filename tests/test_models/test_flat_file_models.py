from __future__ import annotations

import datetime as dt

from polymux.models import BulkDownloadResult, DownloadFailure, DownloadResult, FileInfo, FileMetadata

KEY = "stocks/trades/2024/03/15/2024-03-15.csv.gz"
STARTED = dt.datetime(2024, 3, 16, 12, 0, tzinfo=dt.UTC)


def _file_info(size: int = 2_097_152) -> FileInfo:
    return FileInfo.from_s3_object(
        {"Key": KEY, "Size": size, "LastModified": dt.datetime(2024, 3, 16, tzinfo=dt.UTC), "ETag": '"abc123"'}
    )


def test_file_info_parses_key_layout() -> None:
    info = _file_info()

    assert info.asset_class == "stocks"
    assert info.data_type == "trades"
    assert info.date == "2024-03-15"
    assert info.etag == "abc123"
    assert info.size_mb == 2.0
    assert info.compression == "gzip"
    assert info.is_compressed is True
    assert info.suggested_filename == "stocks_trades_2024-03-15.csv.gz"


def test_uncompressed_file_info() -> None:
    info = FileInfo.from_s3_object({"Key": "options/quotes/2024/03/15/2024-03-15.csv", "Size": 10})

    assert info.compression == "none"
    assert info.suggested_filename == "options_quotes_2024-03-15.csv"
    assert info.etag is None


def test_file_metadata_quality_and_density() -> None:
    metadata = FileMetadata(
        file_info=_file_info(),
        record_count=1000,
        quality_score=95,
        completeness=99.5,
        first_timestamp=dt.datetime(2024, 3, 15, 8, tzinfo=dt.UTC),
        last_timestamp=dt.datetime(2024, 3, 15, 20, tzinfo=dt.UTC),
    )

    assert metadata.key == KEY
    assert metadata.records_per_mb == 500.0
    assert metadata.time_span_hours == 12.0
    assert metadata.is_high_quality is True
    assert metadata.content_type == "text/csv"
    assert "Records: 1,000" in metadata.detailed_report
    assert "Status: HIGH QUALITY" in metadata.detailed_report


def test_file_metadata_without_metrics_is_standard_quality() -> None:
    metadata = FileMetadata(file_info=_file_info())

    assert metadata.records_per_mb is None
    assert metadata.time_span_hours is None
    assert metadata.is_high_quality is False
    assert "Records: N/A" in metadata.detailed_report


def _bulk(successes: int, failures: int) -> BulkDownloadResult:
    return BulkDownloadResult(
        total_files=successes + failures,
        successful_files=successes,
        failed_files=failures,
        total_bytes=successes * 1_048_576,
        duration_seconds=2.0,
        successful_downloads=tuple(
            DownloadResult(key=f"k{i}", local_path=f"/tmp/k{i}", size=1_048_576) for i in range(successes)
        ),
        failed_downloads=tuple(DownloadFailure(key=f"f{i}", error="boom", retry_count=3) for i in range(failures)),
        destination_directory="/tmp/out",
        started_at=STARTED,
        completed_at=STARTED + dt.timedelta(seconds=2),
    )


def test_bulk_result_rates_and_status() -> None:
    partial = _bulk(3, 1)

    assert partial.success_rate == 75.0
    assert partial.total_size_mb == 3.0
    assert partial.average_speed_mbps == 1.5
    assert partial.is_partial_failure is True
    assert partial.is_success is False
    assert partial.is_complete_failure is False
    assert "Bulk Download Summary [PARTIAL]" in partial.summary


def test_bulk_result_complete_failure_and_empty_run() -> None:
    failed = _bulk(0, 2)
    empty = _bulk(0, 0)

    assert failed.is_complete_failure is True
    assert failed.success_rate == 0.0
    assert empty.is_success is True
    assert empty.is_complete_failure is False
    assert empty.success_rate == 0.0
