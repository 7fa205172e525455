"""Offline verification of presigned GET URLs.

Recomputes the SigV4 signature of a URL produced by ``presign_get_url()`` (or
any SigV4 query-string signer using ``host`` as the only signed header) and
checks its expiry. Useful for self-tests and for callers that hand out URLs
and want to confirm them before doing so.
"""

import hmac
import logging
import re
import urllib.parse
from datetime import datetime, timedelta, timezone

import s3presign.metrics as _metrics
from s3presign.errors import (
    ExpiredPresignedUrl,
    MalformedPresignedUrl,
    PresignError,
    SignatureDoesNotMatch,
)
from s3presign.sigv4 import (
    ALGORITHM,
    MAX_PRESIGNED_EXPIRES,
    SCOPE_TERMINATOR,
    SERVICE_NAME,
    SIGNATURE_PARAM,
    SIGNED_HEADERS,
    TIMESTAMP_FORMAT,
    build_canonical_query_string,
    build_canonical_request,
    build_string_to_sign,
    compute_signature,
    credential_scope,
    derive_signing_key,
)

logger = logging.getLogger(__name__)

REQUIRED_PARAMS = (
    "X-Amz-Algorithm",
    "X-Amz-Credential",
    "X-Amz-Date",
    "X-Amz-Expires",
    "X-Amz-SignedHeaders",
    SIGNATURE_PARAM,
)

# Tolerance for X-Amz-Date lying ahead of the verifier's clock.
MAX_CLOCK_SKEW = timedelta(seconds=900)

# Lowercase hex, as produced by compute_signature()
SIGNATURE_RE = re.compile(r"[0-9a-f]{64}")


def verify_presigned_url(
    url: str,
    secret_access_key: str,
    now: datetime | None = None,
    expected_access_key_id: str | None = None,
) -> dict[str, str]:
    """Verify the signature and expiry of a presigned GET URL.

    Args:
        url: The full presigned URL.
        secret_access_key: Secret matching the URL's access key.
        now: Instant to check expiry against. Defaults to the system clock.
        expected_access_key_id: If given, the credential must name this key.

    Returns:
        A dict with 'access_key', 'region', 'object_key' and 'expires_at'.

    Raises:
        MalformedPresignedUrl: On missing or invalid SigV4 parameters.
        ExpiredPresignedUrl: If the URL is past its expiry.
        SignatureDoesNotMatch: On signature mismatch.
    """
    try:
        result = _verify(url, secret_access_key, now, expected_access_key_id)
    except PresignError as exc:
        if _metrics.verifications_total is not None:
            _metrics.verifications_total.labels(outcome=exc.code).inc()
        raise
    if _metrics.verifications_total is not None:
        _metrics.verifications_total.labels(outcome="valid").inc()
    return result


def _canonical_host(parts: urllib.parse.SplitResult) -> str:
    """The host header a client sends for this URL, without userinfo."""
    try:
        port = parts.port
    except ValueError:
        raise MalformedPresignedUrl("Invalid port in presigned URL.")
    if port is None:
        return parts.hostname
    return f"{parts.hostname}:{port}"


def _verify(
    url: str,
    secret_access_key: str,
    now: datetime | None,
    expected_access_key_id: str | None,
) -> dict[str, str]:
    parts = urllib.parse.urlsplit(url)
    if parts.scheme != "https" or not parts.hostname:
        raise MalformedPresignedUrl("Presigned URL must be an absolute https URL.")

    params: dict[str, str] = {}
    for name, value in urllib.parse.parse_qsl(parts.query, keep_blank_values=True):
        if name in params:
            raise MalformedPresignedUrl(f"Duplicate query parameter: {name}")
        params[name] = value

    for param in REQUIRED_PARAMS:
        if param not in params:
            raise MalformedPresignedUrl()

    if params["X-Amz-Algorithm"] != ALGORITHM:
        raise MalformedPresignedUrl(f"Unsupported algorithm: {params['X-Amz-Algorithm']}")

    if params["X-Amz-SignedHeaders"] != SIGNED_HEADERS:
        raise MalformedPresignedUrl("Only the host header may be signed.")

    credential_parts = params["X-Amz-Credential"].split("/")
    if len(credential_parts) != 5:
        raise MalformedPresignedUrl("Invalid Credential format.")

    access_key, credential_date, region, service, terminator = credential_parts
    if terminator != SCOPE_TERMINATOR:
        raise MalformedPresignedUrl(f"Invalid credential scope terminator: {terminator}")
    if service != SERVICE_NAME:
        raise MalformedPresignedUrl(f"Invalid credential service: {service}")
    if expected_access_key_id is not None and access_key != expected_access_key_id:
        raise SignatureDoesNotMatch("Credential names a different access key.")

    amz_date = params["X-Amz-Date"]
    if amz_date[:8] != credential_date:
        raise MalformedPresignedUrl(
            f"Date in Credential scope ({credential_date}) does not match "
            f"X-Amz-Date ({amz_date[:8]})."
        )

    try:
        expires_seconds = int(params["X-Amz-Expires"])
    except ValueError:
        raise MalformedPresignedUrl("Invalid X-Amz-Expires value.")

    if expires_seconds < 1 or expires_seconds > MAX_PRESIGNED_EXPIRES:
        raise MalformedPresignedUrl(
            f"X-Amz-Expires must be between 1 and {MAX_PRESIGNED_EXPIRES} seconds."
        )

    try:
        request_time = datetime.strptime(amz_date, TIMESTAMP_FORMAT).replace(
            tzinfo=timezone.utc
        )
    except ValueError:
        raise MalformedPresignedUrl("Invalid X-Amz-Date format.")

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if request_time > now + MAX_CLOCK_SKEW:
        raise MalformedPresignedUrl("Request is not yet valid.")

    expires_at = request_time + timedelta(seconds=expires_seconds)
    if now > expires_at:
        raise ExpiredPresignedUrl()

    scope = credential_scope(credential_date, region)
    canonical_request = build_canonical_request(
        parts.path.removeprefix("/"),
        _canonical_host(parts),
        build_canonical_query_string(params),
    )
    string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
    signing_key = derive_signing_key(secret_access_key, credential_date, region)
    expected_signature = compute_signature(signing_key, string_to_sign)

    provided_signature = params[SIGNATURE_PARAM]
    if not SIGNATURE_RE.fullmatch(provided_signature) or not hmac.compare_digest(
        expected_signature, provided_signature
    ):
        logger.debug("Presigned signature mismatch for %s", parts.path)
        raise SignatureDoesNotMatch()

    return {
        "access_key": access_key,
        "region": region,
        "object_key": parts.path.removeprefix("/"),
        "expires_at": expires_at.strftime(TIMESTAMP_FORMAT),
    }
