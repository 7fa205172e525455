"""s3presign - AWS SigV4 presigned GET URLs for S3 objects."""

from s3presign.errors import (
    ConfigurationError,
    CryptoError,
    ExpiredPresignedUrl,
    MalformedPresignedUrl,
    PresignError,
    SignatureDoesNotMatch,
    ValidationError,
)
from s3presign.presign import (
    PresignedUrl,
    PresignedUrlSigner,
    SigningRequest,
    presign_get_url,
    suggested_filename,
)
from s3presign.verify import verify_presigned_url

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "CryptoError",
    "ExpiredPresignedUrl",
    "MalformedPresignedUrl",
    "PresignError",
    "PresignedUrl",
    "PresignedUrlSigner",
    "SignatureDoesNotMatch",
    "SigningRequest",
    "ValidationError",
    "presign_get_url",
    "suggested_filename",
    "verify_presigned_url",
]
