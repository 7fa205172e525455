"""Tests for input validation functions."""

import pytest

from s3presign.errors import ValidationError
from s3presign.validation import (
    validate_bucket_name,
    validate_expiration,
    validate_object_key,
    validate_region,
)


class TestValidateObjectKey:
    """Tests for validate_object_key()."""

    # -- Valid keys -----------------------------------------------------------

    def test_valid_nested_key(self):
        validate_object_key("image_contents/a.png")

    def test_valid_personal_photo_path(self):
        validate_object_key("personal_photos/1234-abcd/photo.jpg")

    def test_valid_single_dot_segments(self):
        """Single dots are fine; only '..' is a traversal."""
        validate_object_key("a.b/c.d.e")

    def test_valid_max_length(self):
        validate_object_key("a" * 300)

    # -- Invalid keys ---------------------------------------------------------

    def test_empty(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_object_key("")
        assert exc_info.value.field == "object_key"

    def test_too_long(self):
        with pytest.raises(ValidationError):
            validate_object_key("a" * 301)

    @pytest.mark.parametrize("key", ["../x", "a/../b", "a/..", "a..b"])
    def test_parent_reference(self, key):
        with pytest.raises(ValidationError):
            validate_object_key(key)

    def test_leading_slash(self):
        with pytest.raises(ValidationError):
            validate_object_key("/a.png")

    def test_trailing_slash(self):
        with pytest.raises(ValidationError):
            validate_object_key("folder/")

    @pytest.mark.parametrize(
        "key", ["a b", "a%2Fb", "a?b", "a#b", "a\\b", "파일.png", "a.png\n", "a+b"]
    )
    def test_disallowed_characters(self, key):
        with pytest.raises(ValidationError):
            validate_object_key(key)

    def test_non_string(self):
        with pytest.raises(ValidationError):
            validate_object_key(None)


class TestValidateBucketName:
    """Tests for validate_bucket_name()."""

    def test_valid_simple(self):
        validate_bucket_name("mf-bucket")

    def test_valid_three_chars(self):
        validate_bucket_name("bkt")

    def test_valid_with_dots(self):
        validate_bucket_name("my.bucket.name")

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "ab",
            "a" * 64,
            "MyBucket",
            "-bucket",
            "bucket-",
            "192.168.1.1",
            "xn--bucket",
            "mybucket-s3alias",
            "mybucket--ol-s3",
            "my..bucket",
            "my_bucket",
        ],
    )
    def test_invalid(self, name):
        with pytest.raises(ValidationError):
            validate_bucket_name(name)


class TestValidateRegion:
    """Tests for validate_region()."""

    @pytest.mark.parametrize("region", ["us-east-1", "ap-northeast-2", "us-gov-west-1"])
    def test_valid(self, region):
        validate_region(region)

    @pytest.mark.parametrize("region", ["", "US-EAST-1", "us east 1", "us-east-1.evil.com", "-x"])
    def test_invalid(self, region):
        with pytest.raises(ValidationError):
            validate_region(region)


class TestValidateExpiration:
    """Tests for validate_expiration()."""

    @pytest.mark.parametrize("value", [1, 300, 604800])
    def test_valid(self, value):
        assert validate_expiration(value) == value

    @pytest.mark.parametrize("value", [0, -5, 604801])
    def test_out_of_range(self, value):
        with pytest.raises(ValidationError):
            validate_expiration(value)

    @pytest.mark.parametrize("value", [True, 1.5, "300", None])
    def test_not_an_integer(self, value):
        with pytest.raises(ValidationError):
            validate_expiration(value)
