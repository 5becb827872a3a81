"""AWS Signature Version 4 request signing.

Pure computation: given a request description, credentials and a timestamp,
produce the headers that authenticate the request. No network access happens
here, so every step is unit-testable on its own.

The four steps are:

1. canonical request (method, URI, query, headers, payload digest)
2. string to sign (algorithm, timestamp, credential scope, request digest)
3. signing key (HMAC chain seeded with ``"AWS4" + secret``)
4. signature (HMAC of the string to sign, hex encoded)
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import quote

from awscosts.errors import SigningError
from awscosts.models import Credentials

logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
REQUEST_TYPE = "aws4_request"
_AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
_DATE_STAMP_FORMAT = "%Y%m%d"


@dataclass(frozen=True)
class SignableRequest:
    """Canonical description of an outgoing HTTP request."""

    method: str
    host: str
    path: str = "/"
    query_params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def _uri_encode(value: str, safe: str = "") -> str:
    # RFC 3986 unreserved characters are never escaped
    return quote(value, safe="-_.~" + safe)


def canonical_uri(path: str) -> str:
    """Percent-encode the path, leaving ``/`` separators intact."""
    return _uri_encode(path or "/", safe="/")


def canonical_query_string(params: Mapping[str, str]) -> str:
    """Encode and sort query parameters by key byte order."""
    pairs = sorted((_uri_encode(str(k)), _uri_encode(str(v))) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in pairs)


def canonical_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """Return (canonical header block, signed header list).

    Names are lower-cased and sorted, values trimmed with inner whitespace
    runs collapsed to a single space.
    """
    normalized: dict[str, str] = {}
    for name, value in headers.items():
        normalized[name.strip().lower()] = " ".join(str(value).split())
    names = sorted(normalized)
    block = "".join(f"{name}:{normalized[name]}\n" for name in names)
    return block, ";".join(names)


def canonical_request(
    request: SignableRequest,
    headers: Mapping[str, str],
) -> tuple[str, str]:
    """Build the canonical request; returns (canonical request, signed headers)."""
    header_block, signed_headers = canonical_headers(headers)
    parts = [
        request.method.upper(),
        canonical_uri(request.path),
        canonical_query_string(request.query_params),
        header_block,
        signed_headers,
        _sha256_hex(request.body),
    ]
    return "\n".join(parts), signed_headers


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/{REQUEST_TYPE}"


def string_to_sign(amz_date: str, scope: str, canonical: str) -> str:
    return "\n".join(
        [ALGORITHM, amz_date, scope, _sha256_hex(canonical.encode("utf-8"))]
    )


def derive_signing_key(
    secret_key: str, date_stamp: str, region: str, service: str
) -> bytes:
    """Fold date, region, service and request type into the secret, in that order."""
    k_date = _hmac(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, REQUEST_TYPE)


def _format_timestamp(timestamp: datetime) -> tuple[str, str]:
    """Return (amz_date, date_stamp) for a timezone-aware timestamp."""
    if not isinstance(timestamp, datetime):
        raise SigningError(f"Timestamp must be a datetime, got {type(timestamp).__name__}")
    if timestamp.tzinfo is None or timestamp.utcoffset() is None:
        raise SigningError("Timestamp must be timezone-aware")
    try:
        utc = timestamp.astimezone(timezone.utc)
    except OverflowError as e:
        raise SigningError(f"Timestamp {timestamp!r} is out of range") from e
    if not 1000 <= utc.year <= 9999:
        raise SigningError(f"Timestamp year {utc.year} cannot be formatted as YYYY")
    return utc.strftime(_AMZ_DATE_FORMAT), utc.strftime(_DATE_STAMP_FORMAT)


def sign_request(
    request: SignableRequest,
    credentials: Credentials,
    region: str,
    service: str,
    timestamp: datetime,
) -> dict[str, str]:
    """Compute the authentication headers for ``request``.

    Returns ``Authorization`` and ``X-Amz-Date``, plus
    ``X-Amz-Security-Token`` when the credentials carry a session token.
    The request's own headers are signed along with ``host``.

    Raises:
        SigningError: empty credentials, region or service, or a timestamp
            that cannot be rendered in the ``YYYYMMDDTHHMMSSZ`` format.
    """
    if not credentials.access_key_id or not credentials.secret_access_key:
        raise SigningError("Access key id and secret access key must be non-empty")
    if not region or not service:
        raise SigningError("Region and service name must be non-empty")
    if not request.host:
        raise SigningError("Request host must be non-empty")

    amz_date, date_stamp = _format_timestamp(timestamp)

    added: dict[str, str] = {"X-Amz-Date": amz_date}
    if credentials.session_token:
        added["X-Amz-Security-Token"] = credentials.session_token

    to_sign: dict[str, str] = {
        name: value
        for name, value in request.headers.items()
        if name.lower() not in ("authorization", "x-amz-date", "x-amz-security-token")
    }
    if not any(name.lower() == "host" for name in to_sign):
        to_sign["host"] = request.host
    to_sign.update(added)

    canonical, signed_headers = canonical_request(request, to_sign)
    scope = credential_scope(date_stamp, region, service)
    key = derive_signing_key(credentials.secret_access_key, date_stamp, region, service)
    signature = hmac.new(
        key, string_to_sign(amz_date, scope, canonical).encode("utf-8"), hashlib.sha256
    ).hexdigest()
    logger.debug("Signed %s %s (scope=%s)", request.method, request.host, scope)

    return {
        "Authorization": (
            f"{ALGORITHM} Credential={credentials.access_key_id}/{scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        ),
        **added,
    }
