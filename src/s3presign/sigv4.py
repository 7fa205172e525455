"""AWS Signature Version 4 primitives for query-string (presigned URL) auth.

Everything here is a pure function of its arguments: canonical request
construction, the HMAC-SHA256 signing-key chain, the string to sign and the
final signature.

References:
    - https://docs.aws.amazon.com/AmazonS3/latest/API/sigv4-query-string-auth.html
    - https://docs.aws.amazon.com/IAM/latest/UserGuide/reference_sigv-create-signed-request.html
"""

import hashlib
import hmac
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from s3presign.errors import CryptoError

# Constants
ALGORITHM = "AWS4-HMAC-SHA256"
KEY_PREFIX = "AWS4"
SCOPE_TERMINATOR = "aws4_request"
SERVICE_NAME = "s3"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS = "host"
METHOD = "GET"
MAX_PRESIGNED_EXPIRES = 604800  # 7 days in seconds
TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"
SIGNATURE_PARAM = "X-Amz-Signature"


@dataclass(frozen=True)
class SigningTimestamp:
    """Both SigV4 time representations, taken from a single instant.

    Attributes:
        instant: The UTC instant the request is signed at.
        amz_date: Full timestamp (YYYYMMDDTHHMMSSZ).
        date: Date-only form (YYYYMMDD), the first 8 characters of amz_date.
    """

    instant: datetime
    amz_date: str
    date: str

    @classmethod
    def from_datetime(cls, value: datetime) -> "SigningTimestamp":
        """Build a timestamp from one datetime. Naive values are taken as UTC."""
        if value.tzinfo is None:
            instant = value.replace(tzinfo=timezone.utc)
        else:
            instant = value.astimezone(timezone.utc)
        instant = instant.replace(microsecond=0)
        amz_date = instant.strftime(TIMESTAMP_FORMAT)
        return cls(instant=instant, amz_date=amz_date, date=amz_date[:8])

    @classmethod
    def now(cls) -> "SigningTimestamp":
        """Read the system clock once."""
        return cls.from_datetime(datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Hash helpers
# ---------------------------------------------------------------------------


def _to_bytes(value: str) -> bytes:
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise CryptoError(f"Cannot encode signing input: {exc}") from exc


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    """HMAC-SHA256 returning raw digest bytes.

    Raises:
        CryptoError: If the key is empty or the primitive rejects the input.
    """
    if not key:
        raise CryptoError("HMAC key must not be empty.")
    try:
        return hmac.new(key, _to_bytes(msg), hashlib.sha256).digest()
    except (TypeError, ValueError) as exc:
        raise CryptoError(f"HMAC-SHA256 failed: {exc}") from exc


def sha256_hex(msg: str) -> str:
    """Lowercase hex SHA-256 of a UTF-8 string."""
    try:
        return hashlib.sha256(_to_bytes(msg)).hexdigest()
    except (TypeError, ValueError) as exc:
        raise CryptoError(f"SHA-256 failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Scope and host
# ---------------------------------------------------------------------------


def credential_scope(date: str, region: str, service: str = SERVICE_NAME) -> str:
    """Return the credential scope ``{date}/{region}/{service}/aws4_request``."""
    return f"{date}/{region}/{service}/{SCOPE_TERMINATOR}"


def s3_host(bucket_name: str, region: str) -> str:
    """Virtual-hosted-style S3 endpoint for a bucket."""
    return f"{bucket_name}.s3.{region}.amazonaws.com"


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------


def _uri_encode(s: str) -> str:
    """S3-compatible URI encoding.

    Characters A-Z, a-z, 0-9, '-', '_', '.', '~' are not encoded.
    All other characters are percent-encoded with uppercase hex.
    Spaces become %20 (not +) and '/' becomes %2F.

    Args:
        s: The string to encode.

    Returns:
        The URI-encoded string.
    """
    try:
        return urllib.parse.quote(s, safe="-_.~")
    except UnicodeEncodeError as exc:
        raise CryptoError(f"Cannot encode query component: {exc}") from exc


def build_presign_query_params(
    access_key_id: str, scope: str, amz_date: str, expiration_seconds: int
) -> dict[str, str]:
    """Build the five base SigV4 query parameters (without the signature)."""
    return {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": f"{access_key_id}/{scope}",
        "X-Amz-Date": amz_date,
        "X-Amz-Expires": str(expiration_seconds),
        "X-Amz-SignedHeaders": SIGNED_HEADERS,
    }


def build_canonical_query_string(params: Mapping[str, str]) -> str:
    """Build the canonical query string.

    Parameters are sorted by name (byte-order), then by value, and each
    name and value is URI-encoded. X-Amz-Signature is never part of the
    signed query and is skipped.

    Args:
        params: Decoded query parameter names and values.

    Returns:
        The canonical query string.
    """
    pairs = sorted((name, value) for name, value in params.items() if name != SIGNATURE_PARAM)
    return "&".join(f"{_uri_encode(name)}={_uri_encode(value)}" for name, value in pairs)


def build_canonical_request(object_key: str, host: str, canonical_query: str) -> str:
    """Build the canonical request for a presigned GET.

    The seven lines are: method, path, canonical query, the host header
    line, the blank line that ends the header block, the signed headers list
    and the payload hash placeholder. The object key is used as given; it
    must already be URL-safe.

    Args:
        object_key: Object key without a leading slash.
        host: Value of the host header.
        canonical_query: Output of build_canonical_query_string().

    Returns:
        The canonical request string.
    """
    parts = [
        METHOD,
        f"/{object_key}",
        canonical_query,
        f"host:{host}",
        "",
        SIGNED_HEADERS,
        UNSIGNED_PAYLOAD,
    ]
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# String to sign and signature
# ---------------------------------------------------------------------------


def build_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    """Build the string to sign.

    Args:
        amz_date: Timestamp (YYYYMMDDTHHMMSSZ).
        scope: Credential scope (YYYYMMDD/region/s3/aws4_request).
        canonical_request: The assembled canonical request string.

    Returns:
        The string to sign.
    """
    return f"{ALGORITHM}\n{amz_date}\n{scope}\n{sha256_hex(canonical_request)}"


def signing_key_chain(
    secret_key: str, date: str, region: str, service: str = SERVICE_NAME
) -> tuple[bytes, bytes, bytes, bytes]:
    """Run the SigV4 HMAC-SHA256 key derivation chain.

    Each step feeds the raw digest of the previous one in as the key.

    Args:
        secret_key: The secret access key.
        date: Date string (YYYYMMDD).
        region: AWS region.
        service: AWS service name.

    Returns:
        (k_date, k_region, k_service, k_signing), 32 bytes each.
    """
    k_date = _hmac_sha256(_to_bytes(KEY_PREFIX + secret_key), date)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    k_signing = _hmac_sha256(k_service, SCOPE_TERMINATOR)
    return k_date, k_region, k_service, k_signing


def derive_signing_key(
    secret_key: str, date: str, region: str, service: str = SERVICE_NAME
) -> bytes:
    """Derive the 32-byte SigV4 signing key."""
    return signing_key_chain(secret_key, date, region, service)[-1]


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Compute the final HMAC-SHA256 signature as 64 lowercase hex chars."""
    return _hmac_sha256(signing_key, string_to_sign).hex()
