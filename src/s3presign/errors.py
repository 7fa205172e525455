"""Error definitions for s3presign."""


class PresignError(Exception):
    """Base error carrying a stable error code.

    Attributes:
        code: Stable error kind string (e.g. "ConfigurationError").
        message: Human-readable error description.
        extra_fields: Additional key-value context (never secrets).
    """

    code = "PresignError"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        extra_fields: dict[str, str] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Error description.
            code: Overrides the class-level error code.
            extra_fields: Optional extra context.
        """
        super().__init__(message)
        if code is not None:
            self.code = code
        self.message = message
        self.extra_fields = extra_fields or {}


class ConfigurationError(PresignError):
    """Credentials, region, or bucket are missing from configuration."""

    code = "ConfigurationError"

    def __init__(self, missing: list[str] | None = None, message: str = "") -> None:
        self.missing = list(missing or [])
        if not message:
            message = "Missing AWS configuration: " + ", ".join(self.missing)
        super().__init__(message, extra_fields={"Missing": ",".join(self.missing)})


class ValidationError(PresignError):
    """An input failed the object key, bucket, region, or expiry policy."""

    code = "ValidationError"

    def __init__(self, message: str = "Invalid input", field: str = "") -> None:
        self.field = field
        super().__init__(message, extra_fields={"Field": field} if field else {})


class CryptoError(PresignError):
    """A hash or HMAC primitive was unavailable or rejected its input."""

    code = "CryptoError"

    def __init__(self, message: str = "Cryptographic operation failed") -> None:
        super().__init__(message)


# -- Verification errors -------------------------------------------------------


class MalformedPresignedUrl(PresignError):
    """The URL lacks or has invalid SigV4 query parameters."""

    code = "MalformedPresignedUrl"

    def __init__(
        self,
        message: str = "Query-string authentication requires the X-Amz-Algorithm, X-Amz-Credential, X-Amz-Signature, X-Amz-Date, X-Amz-SignedHeaders, and X-Amz-Expires parameters.",
    ) -> None:
        super().__init__(message)


class SignatureDoesNotMatch(PresignError):
    """The recomputed signature does not match the one in the URL."""

    code = "SignatureDoesNotMatch"

    def __init__(
        self,
        message: str = "The request signature we calculated does not match the signature you provided.",
    ) -> None:
        super().__init__(message)


class ExpiredPresignedUrl(PresignError):
    """The presigned URL has expired."""

    code = "ExpiredPresignedUrl"

    def __init__(self, message: str = "Request has expired.") -> None:
        super().__init__(message)
