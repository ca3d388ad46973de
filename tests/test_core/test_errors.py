from __future__ import annotations

from polymux.exceptions import (
    ApiError,
    AuthenticationError,
    ErrorCode,
    FlatFileNotFoundError,
    FlatFilesError,
    IntegrityError,
    InvalidCredentialsError,
    NetworkError,
    NoPreviousDataFoundError,
    PolymuxError,
    ValidationError,
)


def test_api_error_payload_carries_status() -> None:
    err = ApiError("options.contracts failed: boom", status=500, details={"path": "/v3/x"})

    assert err.status == 500
    assert err.to_error_payload() == {
        "code": "API_ERROR",
        "message": "options.contracts failed: boom",
        "details": {"path": "/v3/x", "status_code": 500},
    }


def test_invalid_credentials_is_an_api_error_with_suggestion() -> None:
    err = InvalidCredentialsError("denied", status=401)

    assert isinstance(err, ApiError)
    assert err.code is ErrorCode.INVALID_CREDENTIALS
    assert "POLYMUX_API_KEY" in err.to_error_payload()["suggestion"]


def test_no_previous_data_is_not_an_api_error() -> None:
    err = NoPreviousDataFoundError("nothing", ticker="O:X")

    assert isinstance(err, PolymuxError)
    assert not isinstance(err, ApiError)
    assert err.details == {"ticker": "O:X"}


def test_validation_error_code() -> None:
    assert ValidationError("bad").code is ErrorCode.VALIDATION_FAILED


def test_flat_file_errors_share_a_base() -> None:
    for err in (
        AuthenticationError("denied"),
        FlatFileNotFoundError("missing"),
        NetworkError("offline"),
        IntegrityError("short read"),
    ):
        assert isinstance(err, FlatFilesError)
        assert isinstance(err, PolymuxError)


def test_authentication_error_exposes_resolution_steps() -> None:
    err = AuthenticationError("denied", error_code="AccessDenied", resolution_steps=["Rotate keys", "Retry"])

    assert err.error_code == "AccessDenied"
    assert err.resolution_steps == ["Rotate keys", "Retry"]
    assert err.suggestion == "Rotate keys"
    assert err.code is ErrorCode.S3_AUTH_FAILED


def test_file_not_found_defaults_alternatives_to_empty_list() -> None:
    err = FlatFileNotFoundError("missing", requested_date="2024-01-06", reason="weekend")

    assert err.alternative_dates == []
    assert err.data_availability_through is None
    assert err.details["requested_date"] == "2024-01-06"
