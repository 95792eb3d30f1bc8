"""Tests for Retry-After parsing, error description and kind inference."""

import socket

import httpx
import pytest

from ratemirror.core.errors import CacheLoadPhase, ErrorKind
from ratemirror.core.errors.parsers import describe_error, infer_failure, parse_retry_after

# Wed, 15 Nov 2023 00:00:00 GMT
_NOW_MS = 1_700_006_400_000


def _status_error(status: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.coingecko.com/api/v3/simple/price")
    response = httpx.Response(status, headers=headers, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestParseRetryAfter:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("120", 120),
            (" 45 ", 45),
            (30, 30),
            (1.2, 2),
            (0, 0),
            (None, None),
            ("", None),
            ("soon", None),
            (-5, None),
            (float("inf"), None),
            (True, None),
        ],
    )
    def test_values(self, value, expected) -> None:
        assert parse_retry_after(value, now=_NOW_MS) == expected

    def test_http_date_in_future(self) -> None:
        assert parse_retry_after("Wed, 15 Nov 2023 00:01:30 GMT", now=_NOW_MS) == 90

    def test_http_date_in_past_is_zero(self) -> None:
        assert parse_retry_after("Tue, 14 Nov 2023 23:00:00 GMT", now=_NOW_MS) == 0

    @pytest.mark.parametrize(
        "value",
        ["²", "١٢٠", "9" * 5000],
        ids=["superscript-digit", "arabic-indic-digits", "over-int-conversion-limit"],
    )
    def test_unusable_digit_strings_are_rejected(self, value: str) -> None:
        assert parse_retry_after(value, now=_NOW_MS) is None

    def test_large_ascii_delta_is_parsed(self) -> None:
        assert parse_retry_after("9" * 400, now=_NOW_MS) == int("9" * 400)

    def test_large_int_is_accepted(self) -> None:
        assert parse_retry_after(10**400) == 10**400


class TestDescribeError:
    def test_exception_text(self) -> None:
        assert describe_error(ValueError("bad value")) == "bad value"

    def test_message_attribute_preferred(self) -> None:
        class ApiFailure(Exception):
            message = "HTTP 503: Service Unavailable"

        assert describe_error(ApiFailure("ignored")) == "HTTP 503: Service Unavailable"

    def test_non_exception_object(self) -> None:
        assert describe_error(404) == "404"

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing(self, value) -> None:
        assert describe_error(value) == "No error details available"


class TestInferFailure:
    def test_http_status_error(self) -> None:
        inferred = infer_failure(_status_error(429, {"Retry-After": "17"}))
        assert inferred.kind is ErrorKind.API_GENERIC
        assert inferred.context.status_code == 429
        assert inferred.context.retry_after_seconds == 17

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            ConnectionRefusedError(),
            TimeoutError(),
            socket.gaierror("Name or service not known"),
        ],
        ids=["connect", "read-timeout", "conn-refused", "timeout", "dns"],
    )
    def test_network_exceptions(self, error) -> None:
        assert infer_failure(error, has_cache=True).kind is ErrorKind.NETWORK

    @pytest.mark.parametrize(
        "message, kind",
        [
            ("Authentication failed. Please check your API key.", ErrorKind.AUTHENTICATION),
            ("Invalid API key supplied", ErrorKind.AUTHENTICATION),
            ("Rate limit exceeded. Please try again later.", ErrorKind.RATE_LIMIT),
            ("Too many requests", ErrorKind.RATE_LIMIT),
            ("Network error: Unable to connect to CoinGecko API", ErrorKind.NETWORK),
            ("Request timed out", ErrorKind.NETWORK),
            ("Something odd happened", ErrorKind.API_GENERIC),
        ],
    )
    def test_message_patterns(self, message: str, kind: ErrorKind) -> None:
        assert infer_failure(RuntimeError(message)).kind is kind

    def test_status_embedded_in_message(self) -> None:
        inferred = infer_failure(RuntimeError("HTTP 503: Service Unavailable"))
        assert inferred.kind is ErrorKind.API_GENERIC
        assert inferred.context.status_code == 503

    def test_phase_turns_generic_into_cache_load(self) -> None:
        inferred = infer_failure(RuntimeError("parse failure"), phase=CacheLoadPhase.STARTUP)
        assert inferred.kind is ErrorKind.CACHE_LOAD
        assert inferred.context.phase is CacheLoadPhase.STARTUP

    def test_phase_does_not_mask_specific_kinds(self) -> None:
        inferred = infer_failure(httpx.ConnectError("refused"), phase="refresh")
        assert inferred.kind is ErrorKind.NETWORK

    def test_context_carries_cache_and_key(self) -> None:
        inferred = infer_failure(RuntimeError("x"), has_cache=True, api_key="CG-12345678")
        assert inferred.context.has_cache is True
        assert inferred.context.api_key == "CG-12345678"
