"""Shared test fixtures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import pytest

from awscosts.models import CostReport, Credentials, DateRange, ServiceCost

FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set fake AWS credentials so nothing ever hits real AWS."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        access_key_id="AKIDEXAMPLE",
        secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        session_token=None,
        region="us-east-1",
    )


def make_group(service: str, cost: float | str, unit: str = "USD") -> dict[str, Any]:
    return {
        "Keys": [service],
        "Metrics": {"UnblendedCost": {"Amount": str(cost), "Unit": unit}},
    }


def make_response(groups: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
    return {
        "GroupDefinitions": [{"Type": "DIMENSION", "Key": "SERVICE"}],
        "ResultsByTime": [
            {
                "TimePeriod": {"Start": "2026-10-01", "End": "2026-10-19"},
                "Total": {},
                "Groups": groups,
                "Estimated": True,
            }
        ],
        **extra,
    }


def make_report(
    amounts: dict[str, str],
    start: date = date(2026, 10, 1),
    end: date = date(2026, 11, 1),
) -> CostReport:
    services = tuple(ServiceCost(name, Decimal(a)) for name, a in amounts.items())
    return CostReport(
        period=DateRange(start, end),
        services=services,
        total=sum((s.amount for s in services), Decimal("0")),
    )
