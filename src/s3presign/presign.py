"""Presigned GET URL generation.

``presign_get_url()`` is the signing pipeline: validate, read the clock once,
build the canonical request, derive the signing key, sign and assemble the
URL. ``PresignedUrlSigner`` binds it to a loaded configuration and adds
logging and metrics.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import s3presign.metrics as _metrics
from s3presign.config import AWSConfig, DEFAULT_EXPIRATION_SECONDS, PresignConfig
from s3presign.errors import ConfigurationError, PresignError
from s3presign.sigv4 import (
    SIGNATURE_PARAM,
    SigningTimestamp,
    build_canonical_query_string,
    build_canonical_request,
    build_presign_query_params,
    build_string_to_sign,
    compute_signature,
    credential_scope,
    derive_signing_key,
    s3_host,
)
from s3presign.validation import (
    validate_bucket_name,
    validate_expiration,
    validate_object_key,
    validate_region,
)
from s3presign.verify import verify_presigned_url

logger = logging.getLogger(__name__)

FALLBACK_FILENAME = "download"


@dataclass(frozen=True)
class SigningRequest:
    """Everything needed to presign one GET.

    Attributes:
        bucket_name: Target bucket.
        object_key: Object key, without a leading slash.
        access_key_id: AWS access key ID.
        secret_access_key: AWS secret access key (excluded from repr).
        region: AWS region of the bucket.
        expiration_seconds: URL lifetime, 1..604800.
    """

    bucket_name: str
    object_key: str
    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str
    expiration_seconds: int = DEFAULT_EXPIRATION_SECONDS


@dataclass(frozen=True)
class PresignedUrl:
    """A signed URL and the details a caller hands back to its client.

    Attributes:
        url: Absolute HTTPS URL granting GET on one object.
        filename: Suggested download filename.
        amz_date: Signing timestamp (YYYYMMDDTHHMMSSZ).
        expires_at: UTC instant after which the URL is rejected.
    """

    url: str
    filename: str
    amz_date: str
    expires_at: datetime


def suggested_filename(object_key: str) -> str:
    """Return the final path segment of an object key."""
    return object_key.rsplit("/", 1)[-1] or FALLBACK_FILENAME


def _check_required(request: SigningRequest) -> None:
    missing = [
        name
        for name in ("access_key_id", "secret_access_key", "region", "bucket_name")
        if not getattr(request, name)
    ]
    if missing:
        raise ConfigurationError(missing)


def presign_get_url(request: SigningRequest, now: datetime | None = None) -> PresignedUrl:
    """Build a SigV4 query-string presigned URL for an object GET.

    Args:
        request: The signing inputs.
        now: Signing instant. Defaults to one read of the system clock.

    Returns:
        The signed URL with its filename and expiry.

    Raises:
        ConfigurationError: If credentials, region, or bucket are missing.
        ValidationError: If the key, bucket, region, or expiry is invalid.
        CryptoError: If a hash primitive fails.
    """
    _check_required(request)
    validate_region(request.region)
    validate_bucket_name(request.bucket_name)
    validate_object_key(request.object_key)
    validate_expiration(request.expiration_seconds)

    timestamp = SigningTimestamp.now() if now is None else SigningTimestamp.from_datetime(now)

    scope = credential_scope(timestamp.date, request.region)
    host = s3_host(request.bucket_name, request.region)

    params = build_presign_query_params(
        request.access_key_id, scope, timestamp.amz_date, request.expiration_seconds
    )
    canonical_query = build_canonical_query_string(params)
    canonical_request = build_canonical_request(request.object_key, host, canonical_query)
    string_to_sign = build_string_to_sign(timestamp.amz_date, scope, canonical_request)

    signing_key = derive_signing_key(request.secret_access_key, timestamp.date, request.region)
    signature = compute_signature(signing_key, string_to_sign)

    url = (
        f"https://{host}/{request.object_key}"
        f"?{canonical_query}&{SIGNATURE_PARAM}={signature}"
    )
    return PresignedUrl(
        url=url,
        filename=suggested_filename(request.object_key),
        amz_date=timestamp.amz_date,
        expires_at=timestamp.instant + timedelta(seconds=request.expiration_seconds),
    )


class PresignedUrlSigner:
    """Issues presigned GET URLs for one configured bucket.

    The signer is built once at start-up from configuration and is safe to
    share between threads; it holds no mutable state.

    Attributes:
        aws: The AWS credentials and bucket location.
        default_expiration: Lifetime used when a call does not give one.
    """

    def __init__(
        self,
        config: PresignConfig | AWSConfig,
        default_expiration: int | None = None,
    ) -> None:
        """Initialize the signer.

        Args:
            config: Full config or just its AWS section.
            default_expiration: Overrides the configured default lifetime.

        Raises:
            ConfigurationError: If any credential or location field is missing.
            ValidationError: If the default lifetime is out of range.
        """
        if isinstance(config, PresignConfig):
            aws = config.aws
            configured_expiration = config.presign.expiration_seconds
        else:
            aws = config
            configured_expiration = DEFAULT_EXPIRATION_SECONDS

        aws.require_complete()
        self.aws = aws
        self.default_expiration = validate_expiration(
            configured_expiration if default_expiration is None else default_expiration
        )

    def __repr__(self) -> str:
        return (
            f"PresignedUrlSigner(bucket={self.aws.bucket_name!r}, "
            f"region={self.aws.region!r})"
        )

    def presign(
        self,
        object_key: str,
        expiration_seconds: int | None = None,
        now: datetime | None = None,
    ) -> PresignedUrl:
        """Presign a GET for ``object_key`` in the configured bucket.

        The caller is responsible for having authorized the download.

        Args:
            object_key: Key of the object to share.
            expiration_seconds: Lifetime; defaults to the signer's default.
            now: Signing instant; defaults to the system clock.

        Returns:
            The signed URL with its filename and expiry.
        """
        expires = self.default_expiration if expiration_seconds is None else expiration_seconds
        request = SigningRequest(
            bucket_name=self.aws.bucket_name,
            object_key=object_key,
            access_key_id=self.aws.access_key_id,
            secret_access_key=self.aws.secret_access_key.get_secret_value(),
            region=self.aws.region,
            expiration_seconds=expires,
        )
        try:
            result = presign_get_url(request, now=now)
        except PresignError as exc:
            logger.warning(
                "Presign rejected for key %r: %s",
                object_key,
                exc.message,
                extra={"object_key": object_key, "error_code": exc.code},
            )
            if _metrics.failures_total is not None:
                _metrics.failures_total.labels(code=exc.code).inc()
            raise

        logger.info(
            "Issued presigned URL for %s/%s (expires in %ds)",
            self.aws.bucket_name,
            object_key,
            expires,
            extra={
                "bucket": self.aws.bucket_name,
                "object_key": object_key,
                "region": self.aws.region,
                "expires": expires,
            },
        )
        if _metrics.urls_issued_total is not None:
            _metrics.urls_issued_total.labels(region=self.aws.region).inc()
        return result

    def verify(self, url: str, now: datetime | None = None) -> dict[str, str]:
        """Check that ``url`` was signed with this signer's credentials.

        See ``s3presign.verify.verify_presigned_url``.
        """
        return verify_presigned_url(
            url,
            self.aws.secret_access_key.get_secret_value(),
            now=now,
            expected_access_key_id=self.aws.access_key_id,
        )
