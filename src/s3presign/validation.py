"""Input validation helpers for s3presign.

These functions enforce the object key, bucket, region and expiry rules
*before* any signing work happens. Each raises ``ValidationError`` on
invalid input.
"""

import re

from s3presign.errors import ValidationError
from s3presign.sigv4 import MAX_PRESIGNED_EXPIRES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Object keys are restricted to a URL-safe allow-list so the path can be
# placed in the canonical request and the URL without re-encoding.
_OBJECT_KEY_RE = re.compile(r"^[a-zA-Z0-9/_.\-]{1,300}$")
_MAX_KEY_CHARS = 300

# S3 bucket naming rules:
#   - 3-63 characters
#   - lowercase letters, digits, hyphens, and periods
#   - must start and end with a letter or digit
#   - must not be formatted as an IP address
#   - must not start with "xn--" (internationalized domain prefix)
#   - must not end with "-s3alias" or "--ol-s3"
#   - no consecutive periods ("..") allowed

_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]$")
_IP_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")

# e.g. us-east-1, ap-northeast-2, us-gov-west-1
_REGION_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_object_key(key: str) -> None:
    """Validate an object key against the path-traversal/charset policy.

    Args:
        key: The object key string.

    Raises:
        ValidationError: If the key is empty, too long, contains characters
            outside ``[A-Za-z0-9/_.-]``, contains ``..``, or starts or ends
            with ``/``.
    """
    if not isinstance(key, str) or not key:
        raise ValidationError("Object key is required.", field="object_key")

    if len(key) > _MAX_KEY_CHARS:
        raise ValidationError(
            f"Object key must be at most {_MAX_KEY_CHARS} characters.", field="object_key"
        )

    if not _OBJECT_KEY_RE.fullmatch(key):
        raise ValidationError("Object key contains invalid characters.", field="object_key")

    if ".." in key:
        raise ValidationError("Object key must not contain '..'.", field="object_key")

    if key.startswith("/") or key.endswith("/"):
        raise ValidationError(
            "Object key must not start or end with '/'.", field="object_key"
        )


def validate_bucket_name(name: str) -> None:
    """Validate an S3 bucket name against AWS naming rules.

    Args:
        name: The candidate bucket name.

    Raises:
        ValidationError: If the name violates any S3 bucket naming rule.
    """
    if not isinstance(name, str) or len(name) < 3 or len(name) > 63:
        raise ValidationError(f"Invalid bucket name: {name!r}", field="bucket_name")

    if not _BUCKET_RE.fullmatch(name):
        raise ValidationError(f"Invalid bucket name: {name!r}", field="bucket_name")

    if _IP_RE.fullmatch(name):
        raise ValidationError(f"Invalid bucket name: {name!r}", field="bucket_name")

    if name.startswith("xn--"):
        raise ValidationError(f"Invalid bucket name: {name!r}", field="bucket_name")

    if name.endswith("-s3alias") or name.endswith("--ol-s3"):
        raise ValidationError(f"Invalid bucket name: {name!r}", field="bucket_name")

    if ".." in name:
        raise ValidationError(f"Invalid bucket name: {name!r}", field="bucket_name")


def validate_region(region: str) -> None:
    """Validate a region name, which ends up in the endpoint host name.

    Raises:
        ValidationError: If the region is empty or not a host-safe label.
    """
    if not isinstance(region, str) or not _REGION_RE.fullmatch(region):
        raise ValidationError(f"Invalid region: {region!r}", field="region")


def validate_expiration(value: int) -> int:
    """Validate a presigned URL lifetime in seconds.

    Args:
        value: The requested lifetime.

    Returns:
        The value, unchanged.

    Raises:
        ValidationError: If the value is not an integer in [1, 604800].
    """
    # bool is an int subclass; True must not mean "1 second"
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Expiration must be an integer between 1 and {MAX_PRESIGNED_EXPIRES} seconds.",
            field="expiration_seconds",
        )

    if value < 1 or value > MAX_PRESIGNED_EXPIRES:
        raise ValidationError(
            f"Expiration must be between 1 and {MAX_PRESIGNED_EXPIRES} seconds.",
            field="expiration_seconds",
        )

    return value
