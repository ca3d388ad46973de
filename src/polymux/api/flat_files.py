"""Flat-file access to the Polygon S3 bucket: listing, metadata, resumable and bulk downloads."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
import datetime as dt
import logging
from pathlib import Path
import time
from typing import Any, Callable

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError, ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError

from polymux.api.base import DATE_PATTERN
from polymux.config import Config
from polymux.exceptions import (
    AuthenticationError,
    FlatFileNotFoundError,
    FlatFilesError,
    IntegrityError,
    NetworkError,
)
from polymux.models.flat_files import BulkDownloadResult, DownloadFailure, DownloadResult, FileInfo, FileMetadata

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "flatfiles"
DEFAULT_REGION = "us-east-1"
SUPPORTED_ASSET_CLASSES = ("stocks", "options", "crypto", "forex", "indices")
SUPPORTED_DATA_TYPES = ("trades", "quotes", "aggregates_minute", "aggregates_day")
MAX_RETRY_ATTEMPTS = 3
DEFAULT_LIST_LIMIT = 1000

AUTH_ERROR_CODES = {"AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch", "403", "Forbidden"}
NOT_FOUND_ERROR_CODES = {"NoSuchKey", "NotFound", "404"}
CONNECTION_ERRORS = (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)

AUTH_RESOLUTION_STEPS = [
    "Set POLYMUX_S3_ACCESS_KEY_ID and POLYMUX_S3_SECRET_ACCESS_KEY from the Polygon dashboard.",
    "Confirm the subscription includes flat-file access.",
    "Regenerate the S3 keys if they were rotated.",
]

DownloadProgress = Callable[[int, int], None]
BulkProgress = Callable[[dict[str, Any]], None]


def _format_date(value: Any) -> str:
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    if isinstance(value, str):
        if not DATE_PATTERN.match(value):
            raise ValueError(f"Date must be in YYYY-MM-DD format, got {value!r}")
        return value
    raise TypeError("Date must be a YYYY-MM-DD string or a date")


def _as_date(value: Any) -> dt.date:
    return dt.date.fromisoformat(_format_date(value))


def _date_from_key(key: str) -> str | None:
    parts = key.split("/")
    if len(parts) < 5:
        return None
    candidate = "-".join(parts[2:5])
    try:
        return dt.date.fromisoformat(candidate).isoformat()
    except ValueError:
        return None


def _nearby_trading_days(requested: str) -> tuple[str, list[str]]:
    day = dt.date.fromisoformat(requested)
    if day.weekday() >= 5:
        friday = day - dt.timedelta(days=day.weekday() - 4)
        monday = day + dt.timedelta(days=7 - day.weekday())
        return "Markets are closed on weekends", [friday.isoformat(), monday.isoformat()]

    alternatives: list[str] = []
    cursor = day
    while len(alternatives) < 3:
        cursor -= dt.timedelta(days=1)
        if cursor.weekday() < 5:
            alternatives.append(cursor.isoformat())
    return "No file has been published for this date", alternatives


def _expand_date_range(date_range: Any) -> list[dt.date]:
    if isinstance(date_range, (tuple, list)):
        if len(date_range) != 2:
            raise ValueError("date_range must be a date or a (start, end) pair")
        start, end = (_as_date(item) for item in date_range)
        if end < start:
            raise ValueError("date_range end must not precede start")
        return [start + dt.timedelta(days=offset) for offset in range((end - start).days + 1)]
    return [_as_date(date_range)]


def _validate_bulk_criteria(criteria: Any, destination_dir: Any) -> None:
    if not isinstance(criteria, dict):
        raise TypeError("Criteria must be a dict")
    if not destination_dir or not str(destination_dir).strip():
        raise ValueError("Destination directory cannot be blank")
    if "file_keys" in criteria:
        if not isinstance(criteria["file_keys"], (list, tuple)):
            raise TypeError("file_keys must be a list")
        return
    for required in ("asset_class", "data_type", "date_range"):
        if not criteria.get(required):
            raise ValueError(f"{required} is required")


class FlatFiles:
    """Flat-file handler.

    Shares the client's config for S3 credentials. An ``s3_client`` may be
    injected; otherwise a boto3 client is created on first use.
    """

    def __init__(self, config: Config, *, s3_client: Any | None = None) -> None:
        self._config = config
        self._s3_client = s3_client

    @property
    def s3_client(self) -> Any:
        if self._s3_client is None:
            session = boto3.Session(
                aws_access_key_id=self._config.s3_access_key_id,
                aws_secret_access_key=self._config.s3_secret_access_key,
            )
            self._s3_client = session.client(
                "s3",
                endpoint_url=self._config.s3_endpoint,
                region_name=DEFAULT_REGION,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._s3_client

    def _ensure_s3_configured(self) -> None:
        if not self._config.s3_access_key_id:
            raise AuthenticationError(
                "S3 access key ID not configured. Set s3_access_key_id in configuration.",
                error_code="MISSING_ACCESS_KEY_ID",
                resolution_steps=AUTH_RESOLUTION_STEPS,
            )
        if not self._config.s3_secret_access_key:
            raise AuthenticationError(
                "S3 secret access key not configured. Set s3_secret_access_key in configuration.",
                error_code="MISSING_SECRET_ACCESS_KEY",
                resolution_steps=AUTH_RESOLUTION_STEPS,
            )

    def _map_client_error(self, exc: ClientError, *, key: str | None, operation: str) -> FlatFilesError:
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        logger.info("flat_files_error operation=%s key=%s code=%s status=%s", operation, key, code, status)

        if code in AUTH_ERROR_CODES or status == 403:
            return AuthenticationError(
                f"{operation} was denied: {error.get('Message') or code}",
                error_code=code or None,
                resolution_steps=AUTH_RESOLUTION_STEPS,
            )
        if code in NOT_FOUND_ERROR_CODES or status == 404:
            requested = _date_from_key(key or "")
            reason, alternatives = _nearby_trading_days(requested) if requested else (None, [])
            return FlatFileNotFoundError(
                f"File not found: {key}",
                requested_date=requested,
                reason=reason,
                alternative_dates=alternatives,
            )
        return FlatFilesError(
            f"{operation} failed: {error.get('Message') or code or exc}",
            details={"key": key, "error_code": code, "status_code": status},
        )

    def _network_error(self, exc: Exception, *, key: str | None, operation: str) -> NetworkError:
        logger.warning("flat_files_network_error operation=%s key=%s error=%s", operation, key, exc)
        return NetworkError(f"{operation} could not reach the flat-file endpoint: {exc}", details={"key": key})

    def list_files(
        self,
        asset_class: str,
        data_type: str,
        date: str | dt.date,
        *,
        prefix: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[FileInfo]:
        if not isinstance(asset_class, str):
            raise TypeError("Asset class must be a string")
        if not isinstance(data_type, str):
            raise TypeError("Data type must be a string")
        if asset_class not in SUPPORTED_ASSET_CLASSES:
            raise ValueError(
                f"Unsupported asset class: {asset_class}. Supported: {', '.join(SUPPORTED_ASSET_CLASSES)}"
            )
        if data_type not in SUPPORTED_DATA_TYPES:
            raise ValueError(f"Unsupported data type: {data_type}. Supported: {', '.join(SUPPORTED_DATA_TYPES)}")
        year, month, day = _format_date(date).split("-")
        self._ensure_s3_configured()

        key_prefix = f"{asset_class}/{data_type}/{year}/{month}/{day}/"
        if prefix:
            key_prefix = f"{prefix.rstrip('/')}/{key_prefix}"

        try:
            response = self.s3_client.list_objects_v2(Bucket=DEFAULT_BUCKET, Prefix=key_prefix, MaxKeys=limit)
        except ClientError as exc:
            raise self._map_client_error(exc, key=key_prefix, operation="list_files") from exc
        except CONNECTION_ERRORS as exc:
            raise self._network_error(exc, key=key_prefix, operation="list_files") from exc

        files = [FileInfo.from_s3_object(item) for item in response.get("Contents", [])]
        logger.debug("flat_files_listed prefix=%s count=%s", key_prefix, len(files))
        return files

    def _head(self, key: str, *, operation: str) -> dict[str, Any]:
        try:
            return self.s3_client.head_object(Bucket=DEFAULT_BUCKET, Key=key)
        except ClientError as exc:
            raise self._map_client_error(exc, key=key, operation=operation) from exc
        except CONNECTION_ERRORS as exc:
            raise self._network_error(exc, key=key, operation=operation) from exc

    def get_file_metadata(self, key: str) -> FileMetadata:
        if not isinstance(key, str) or not key.strip():
            raise ValueError("File key cannot be blank")
        self._ensure_s3_configured()

        head = self._head(key, operation="get_file_metadata")
        file_info = FileInfo.from_s3_object(
            {
                "Key": key,
                "Size": head.get("ContentLength", 0),
                "LastModified": head.get("LastModified"),
                "ETag": head.get("ETag"),
            }
        )
        return FileMetadata.build(
            {
                "file_info": file_info,
                "processed_at": head.get("LastModified"),
                "checksum": file_info.etag,
            }
        )

    def download_file(
        self,
        key: str,
        local_path: str | Path,
        *,
        resume: bool = True,
        verify_checksum: bool = True,
        progress_callback: DownloadProgress | None = None,
    ) -> DownloadResult:
        """Download one object, appending to a partial local file when ``resume`` is set.

        A local file already matching the remote size is left untouched. With
        ``verify_checksum`` the final size must match the remote object or the
        file is removed and ``IntegrityError`` raised.
        """
        if not isinstance(key, str) or not key.strip():
            raise ValueError("File key cannot be blank")
        if not local_path or not str(local_path).strip():
            raise ValueError("Local path cannot be blank")
        self._ensure_s3_configured()

        path = Path(local_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        started = time.monotonic()

        total_size = int(self._head(key, operation="download_file").get("ContentLength", 0))
        resume_position = 0
        if resume and path.exists():
            existing = path.stat().st_size
            if existing == total_size:
                logger.debug("flat_file_already_complete key=%s path=%s", key, path)
                return DownloadResult(key=key, local_path=str(path), size=total_size, duration=0.0)
            if existing < total_size:
                resume_position = existing

        request: dict[str, Any] = {"Bucket": DEFAULT_BUCKET, "Key": key}
        if resume_position > 0:
            request["Range"] = f"bytes={resume_position}-"

        try:
            response = self.s3_client.get_object(**request)
            written = resume_position
            with path.open("ab" if resume_position > 0 else "wb") as handle:
                for chunk in response["Body"].iter_chunks():
                    handle.write(chunk)
                    written += len(chunk)
                    if progress_callback is not None:
                        progress_callback(written, total_size)
        except ClientError as exc:
            self._discard_partial(path, resume_position)
            raise self._map_client_error(exc, key=key, operation="download_file") from exc
        except CONNECTION_ERRORS as exc:
            self._discard_partial(path, resume_position)
            raise self._network_error(exc, key=key, operation="download_file") from exc

        if verify_checksum:
            downloaded = path.stat().st_size
            if downloaded != total_size:
                path.unlink(missing_ok=True)
                raise IntegrityError(
                    f"File integrity check failed: expected {total_size} bytes, got {downloaded}",
                    details={"key": key, "expected_size": total_size, "actual_size": downloaded},
                )

        duration = time.monotonic() - started
        logger.info(
            "flat_file_downloaded key=%s bytes=%s resumed_from=%s duration=%.2f",
            key,
            total_size,
            resume_position,
            duration,
        )
        return DownloadResult(
            key=key,
            local_path=str(path),
            size=total_size,
            duration=duration,
            resumed_from=resume_position,
        )

    @staticmethod
    def _discard_partial(path: Path, resume_position: int) -> None:
        # A resumed file keeps its previously downloaded prefix.
        if resume_position == 0:
            path.unlink(missing_ok=True)

    def _discover_files(self, criteria: dict[str, Any]) -> list[FileInfo]:
        if "file_keys" in criteria:
            return [self.get_file_metadata(key).file_info for key in criteria["file_keys"]]

        files: list[FileInfo] = []
        for day in _expand_date_range(criteria["date_range"]):
            try:
                files.extend(self.list_files(criteria["asset_class"], criteria["data_type"], day))
            except FlatFileNotFoundError:
                logger.debug("flat_files_missing_day date=%s", day)
        return files

    def _download_with_retries(self, file_info: FileInfo, destination: Path) -> DownloadResult | DownloadFailure:
        local_path = destination / file_info.suggested_filename
        retry_count = 0
        while True:
            try:
                return self.download_file(file_info.key, local_path, resume=True, verify_checksum=True)
            except AuthenticationError as exc:
                return DownloadFailure(key=file_info.key, error=str(exc), retry_count=retry_count)
            except (FlatFilesError, OSError) as exc:
                if retry_count >= MAX_RETRY_ATTEMPTS:
                    return DownloadFailure(key=file_info.key, error=str(exc), retry_count=retry_count)
                retry_count += 1
                logger.warning(
                    "flat_file_retry key=%s attempt=%s error=%s", file_info.key, retry_count, exc
                )
                time.sleep(2**retry_count)

    def bulk_download(
        self,
        criteria: dict[str, Any],
        destination_dir: str | Path,
        *,
        max_concurrent: int = 4,
        continue_on_error: bool = True,
        progress_callback: BulkProgress | None = None,
    ) -> BulkDownloadResult:
        """Download every file selected by ``criteria`` into ``destination_dir``.

        ``criteria`` holds either ``file_keys`` or ``asset_class``,
        ``data_type`` and ``date_range`` (a date or a ``(start, end)`` pair).
        Failed files are retried with exponential backoff and then recorded
        in the result; with ``continue_on_error=False`` the first failure is
        raised as ``FlatFilesError`` instead.
        """
        _validate_bulk_criteria(criteria, destination_dir)
        if isinstance(max_concurrent, bool) or not isinstance(max_concurrent, int) or max_concurrent <= 0:
            raise ValueError("max_concurrent must be a positive integer")
        self._ensure_s3_configured()

        destination = Path(destination_dir)
        destination.mkdir(parents=True, exist_ok=True)
        started_at = dt.datetime.now(dt.timezone.utc)
        started = time.monotonic()

        files = self._discover_files(criteria)
        successes: list[DownloadResult] = []
        failures: list[DownloadFailure] = []

        if files:
            with ThreadPoolExecutor(max_workers=max_concurrent) as executor:
                futures = {executor.submit(self._download_with_retries, info, destination): info for info in files}
                for future in as_completed(futures):
                    outcome = future.result()
                    if isinstance(outcome, DownloadFailure):
                        failures.append(outcome)
                        if not continue_on_error:
                            for pending in futures:
                                pending.cancel()
                            raise FlatFilesError(
                                f"Bulk download stopped: {outcome.key} failed: {outcome.error}",
                                details={"key": outcome.key, "retry_count": outcome.retry_count},
                            )
                    else:
                        successes.append(outcome)
                    if progress_callback is not None:
                        progress_callback(
                            {
                                "completed": len(successes) + len(failures),
                                "total": len(files),
                                "current_file": futures[future].key,
                            }
                        )

        result = BulkDownloadResult(
            total_files=len(files),
            successful_files=len(successes),
            failed_files=len(failures),
            total_bytes=sum(item.size for item in successes),
            duration_seconds=time.monotonic() - started,
            successful_downloads=tuple(successes),
            failed_downloads=tuple(failures),
            destination_directory=str(destination),
            started_at=started_at,
            completed_at=dt.datetime.now(dt.timezone.utc),
        )
        logger.info(
            "flat_files_bulk_download total=%s succeeded=%s failed=%s",
            result.total_files,
            result.successful_files,
            result.failed_files,
        )
        return result
