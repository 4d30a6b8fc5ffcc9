"""
File reference schema.

Contains the Pydantic model identifying a remote object, as received on
POST /sync and as built from S3 event notifications.
"""

from pathlib import Path
from typing import Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from core.security.paths import resolve_under, validate_object_key


class FileRef(BaseModel):
    """Identifies one object in object storage.

    Immutable. Derived values are computed on demand and depend only on
    region, bucket and key.

    Attributes:
        region: Storage region, e.g. "us-east-1"
        bucket: Bucket name
        key: Slash-delimited object key relative to the bucket

    Example:
        >>> ref = FileRef(region="us-east-1", bucket="videos-prod", key="a/b.mp4")
        >>> ref.source_url
        'https://s3-us-east-1.amazonaws.com/videos-prod/a/b.mp4'
    """

    model_config = ConfigDict(frozen=True)

    # Capitalised names are accepted from senders using exported field names
    region: str = Field(
        ...,
        description="Storage region",
        min_length=1,
        validation_alias=AliasChoices("region", "Region"),
    )
    bucket: str = Field(
        ...,
        description="Bucket name",
        min_length=1,
        validation_alias=AliasChoices("bucket", "Bucket"),
    )
    key: str = Field(
        ...,
        description="Object key, relative and slash-delimited",
        min_length=1,
        validation_alias=AliasChoices("key", "Key"),
    )

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Reject keys that could escape the base directory."""
        is_valid, error = validate_object_key(v)
        if not is_valid:
            raise ValueError(error)
        return v

    @field_validator("bucket", "region")
    @classmethod
    def validate_no_slash(cls, v: str) -> str:
        if "/" in v:
            raise ValueError("must not contain '/'")
        return v

    @property
    def source_url(self) -> str:
        """Public object-store URL for the object."""
        return f"https://s3-{self.region}.amazonaws.com/{self.bucket}/{self.key}"

    @property
    def public_url(self) -> str:
        """Bucket-hosted URL used as the image cache's source."""
        return f"https://{self.bucket}/{self.key}"

    def source_url_at(self, endpoint: str) -> str:
        """Object URL on an alternative S3-compatible endpoint."""
        return f"{endpoint.rstrip('/')}/{self.bucket}/{self.key}"

    def local_path(self, base_dir: Union[str, Path]) -> Path:
        """Where the object is materialized under base_dir.

        Raises:
            PathTraversalError: If the key resolves outside base_dir
        """
        return resolve_under(base_dir, self.key)

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key} ({self.region})"
