"""Cost Explorer API client built on SigV4 signing and httpx."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from awscosts.errors import (
    BadRequest,
    ConfigurationError,
    DecodeError,
    FetchCancelled,
    PermissionDenied,
    TransientFailure,
)
from awscosts.models import CostReport, Credentials, DateRange, ServiceCost
from awscosts.periods import trend_ranges
from awscosts.signer import SignableRequest, sign_request

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
SERVICE_NAME = "ce"
METRIC = "UnblendedCost"
GRANULARITY = "MONTHLY"
_TARGET_PREFIX = "AWSInsightsIndexService"
_CONTENT_TYPE = "application/x-amz-json-1.1"
_DEFAULT_CURRENCY = "USD"
_TOTAL_TOLERANCE = Decimal("0.01")
# Amounts below this are rounding residue, treated as zero
_ZERO_THRESHOLD = Decimal("0.001")
# Cost Explorer answers 400 with this type when a window has no billable data
_NO_DATA_ERRORS = ("DataUnavailableException",)
_ACCESS_DENIED_ERRORS = ("AccessDeniedException", "UnauthorizedOperation")
_THROTTLING_ERRORS = ("LimitExceededException", "ThrottlingException")


def build_request_body(
    period: DateRange,
    group_by: str = "SERVICE",
    next_page_token: str | None = None,
) -> dict[str, Any]:
    """Build the GetCostAndUsage request payload."""
    body: dict[str, Any] = {
        "TimePeriod": period.as_time_period(),
        "Granularity": GRANULARITY,
        "Metrics": [METRIC],
    }
    if group_by:
        body["GroupBy"] = [{"Type": "DIMENSION", "Key": group_by}]
    if next_page_token:
        body["NextPageToken"] = next_page_token
    return body


def _parse_amount(metric: dict[str, Any]) -> Decimal:
    amount = Decimal(str(metric["Amount"]))
    if not amount.is_finite():
        raise DecodeError(f"Non-finite cost amount: {metric['Amount']!r}")
    return amount


def parse_report(
    pages: list[dict[str, Any]],
    period: DateRange,
    keep_zero_amounts: bool = True,
) -> CostReport:
    """Parse GetCostAndUsage response pages into a CostReport.

    Groups are summed per service across all ``ResultsByTime`` entries and
    pages, preserving first-seen order. The report total is the sum of the
    retained service amounts.

    Raises:
        DecodeError: a page does not have the documented response shape.
    """
    amounts: dict[str, Decimal] = {}
    currency: str | None = None
    declared: Decimal | None = None

    try:
        for page in pages:
            results = page.get("ResultsByTime", [])
            if not isinstance(results, list):
                raise DecodeError("ResultsByTime is not a list")
            for result in results:
                total_metric = (result.get("Total") or {}).get(METRIC)
                if total_metric:
                    declared = (declared or Decimal("0")) + _parse_amount(total_metric)
                for group in result.get("Groups") or []:
                    keys = group.get("Keys") or []
                    metric = (group.get("Metrics") or {}).get(METRIC)
                    if metric is None:
                        continue
                    name = str(keys[0]) if keys else "Unknown"
                    amounts[name] = amounts.get(name, Decimal("0")) + _parse_amount(
                        metric
                    )
                    if currency is None and metric.get("Unit"):
                        currency = str(metric["Unit"])
    except DecodeError:
        raise
    except (AttributeError, TypeError, KeyError, InvalidOperation) as e:
        raise DecodeError(f"Unexpected GetCostAndUsage response shape: {e!r}") from e

    unit = currency or _DEFAULT_CURRENCY
    services = tuple(
        ServiceCost(service_name=name, amount=amount, unit=unit)
        for name, amount in amounts.items()
        if keep_zero_amounts or abs(amount) >= _ZERO_THRESHOLD
    )
    dropped = len(amounts) - len(services)
    if dropped:
        logger.debug("Dropped %d zero-amount services for %s", dropped, period.label)

    total = sum((s.amount for s in services), Decimal("0"))
    if declared is not None and abs(declared - total) > _TOTAL_TOLERANCE:
        logger.warning(
            "Declared total %s differs from service sum %s for %s",
            declared,
            total,
            period.label,
        )
    return CostReport(period=period, services=services, total=total, currency=unit)


def _error_type(response: httpx.Response) -> tuple[str, str]:
    """Extract (error type, message) from a JSON-protocol error response."""
    error_type = response.headers.get("x-amzn-ErrorType", "")
    message = ""
    try:
        body = json.loads(response.content or b"{}")
    except ValueError:
        body = {}
    if isinstance(body, dict):
        error_type = str(body.get("__type") or error_type)
        message = body.get("message") or body.get("Message") or ""
    # "com.amazonaws...#AccessDeniedException" or "AccessDeniedException:http://..."
    error_type = error_type.split("#")[-1].split(":")[0]
    return error_type, message or response.reason_phrase


def classify_response(action: str, response: httpx.Response) -> dict[str, Any] | None:
    """Map an HTTP response to a decoded payload or a classified error.

    Returns None when Cost Explorer reports that the window has no billable
    data, which the caller turns into an empty report.
    """
    status = response.status_code
    if status == 200:
        try:
            payload = json.loads(response.content)
        except ValueError as e:
            raise DecodeError(f"{action} returned malformed JSON: {e}") from e
        if not isinstance(payload, dict):
            raise DecodeError(f"{action} returned {type(payload).__name__}, expected object")
        return payload

    error_type, message = _error_type(response)
    detail = f"{action} failed with HTTP {status}"
    if error_type:
        detail += f" {error_type}"
    if message:
        detail += f": {message}"

    if status == 403 or error_type in _ACCESS_DENIED_ERRORS:
        raise PermissionDenied(detail)
    if status == 400:
        if error_type in _NO_DATA_ERRORS:
            logger.info("%s: no billable data (%s)", action, message)
            return None
        if error_type in _THROTTLING_ERRORS:
            raise TransientFailure(detail)
        raise BadRequest(
            detail,
            "check that Cost Explorer is enabled for this account",
        )
    if status == 429 or status >= 500:
        raise TransientFailure(detail)
    raise BadRequest(detail)


class CostExplorerClient:
    """Signed JSON-protocol client for the Cost Explorer GetCostAndUsage API.

    The client only classifies failures; retry policy belongs to the caller.
    """

    def __init__(
        self,
        credentials: Credentials,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
        keep_zero_amounts: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not credentials.access_key_id or not credentials.secret_access_key:
            raise ConfigurationError(
                "AWS access key id and secret access key are required",
                "run 'aws configure' or set AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY",
            )
        self.region = credentials.region or DEFAULT_REGION
        self._credentials = credentials
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.keep_zero_amounts = keep_zero_amounts

    @property
    def host(self) -> str:
        return f"{SERVICE_NAME}.{self.region}.amazonaws.com"

    @property
    def endpoint(self) -> str:
        return f"https://{self.host}/"

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> CostExplorerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _execute(self, action: str, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Sign and send one request; each call gets a fresh timestamp."""
        body = json.dumps(payload).encode("utf-8")
        headers = {
            "Content-Type": _CONTENT_TYPE,
            "X-Amz-Target": f"{_TARGET_PREFIX}.{action}",
        }
        signed = sign_request(
            SignableRequest(method="POST", host=self.host, headers=headers, body=body),
            self._credentials,
            self.region,
            SERVICE_NAME,
            self._clock(),
        )
        logger.debug("Executing Cost Explorer API request: %s", action)
        try:
            response = self._http.post(
                self.endpoint, content=body, headers={**headers, **signed}
            )
        except httpx.TransportError as e:
            raise TransientFailure(f"{action} request failed: {e}") from e
        return classify_response(action, response)

    def fetch_report(self, period: DateRange, group_by: str = "SERVICE") -> CostReport:
        """Query GetCostAndUsage for one period, following pagination."""
        pages: list[dict[str, Any]] = []
        token: str | None = None
        while True:
            payload = self._execute(
                "GetCostAndUsage", build_request_body(period, group_by, token)
            )
            if payload is None:
                return CostReport.empty(period)
            pages.append(payload)
            token = payload.get("NextPageToken")
            if not token:
                break

        report = parse_report(pages, period, self.keep_zero_amounts)
        logger.info(
            "Period %s: %d services, total %s %s",
            period.label,
            len(report.services),
            report.total,
            report.currency,
        )
        return report

    def fetch_trend(
        self,
        months: int = 6,
        today: date | None = None,
        fetch: Callable[[DateRange], CostReport] | None = None,
        cancel: threading.Event | None = None,
    ) -> list[CostReport]:
        """Fetch one report per month, oldest first, one request at a time.

        ``fetch`` replaces :meth:`fetch_report` so callers can layer a retry
        policy per month. ``cancel`` is checked before every request.

        Raises:
            FetchCancelled: ``cancel`` was set; fetched months are discarded.
        """
        today = today or self._clock().date()
        fetch = fetch or self.fetch_report
        reports: list[CostReport] = []
        for period in trend_ranges(today, months):
            if cancel is not None and cancel.is_set():
                logger.info("Trend fetch cancelled before %s", period.label)
                raise FetchCancelled(f"cancelled before {period.label}")
            reports.append(fetch(period))
        return reports
