"""
Object metadata for bucket deployments

Value types for the system-defined headers applied to every deployed object
(cache-control, expires, encryption, storage class) and the two mapping
functions that flatten user and system metadata into the string maps sent
to the deployment handler.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import aws_cdk as cdk
import inflection

from config.constants import SYSTEM_METADATA_KEYS


@dataclass(frozen=True)
class CacheControl:
    """
    Used for the HTTP cache-control header, which influences downstream caches.

    Build values through the class methods; `from_string` is the escape hatch
    for directives outside the fixed vocabulary.
    """

    value: str

    @classmethod
    def must_revalidate(cls) -> "CacheControl":
        return cls("must-revalidate")

    @classmethod
    def no_cache(cls) -> "CacheControl":
        return cls("no-cache")

    @classmethod
    def no_transform(cls) -> "CacheControl":
        return cls("no-transform")

    @classmethod
    def set_public(cls) -> "CacheControl":
        return cls("public")

    @classmethod
    def set_private(cls) -> "CacheControl":
        return cls("private")

    @classmethod
    def proxy_revalidate(cls) -> "CacheControl":
        return cls("proxy-revalidate")

    @classmethod
    def max_age(cls, t: cdk.Duration) -> "CacheControl":
        """Sets 'max-age=<duration-in-seconds>'"""
        return cls(f"max-age={_to_seconds(t)}")

    @classmethod
    def s_max_age(cls, t: cdk.Duration) -> "CacheControl":
        """Sets 's-maxage=<duration-in-seconds>'"""
        return cls(f"s-maxage={_to_seconds(t)}")

    @classmethod
    def from_string(cls, s: str) -> "CacheControl":
        return cls(s)


class ServerSideEncryption(str, Enum):
    """Server-side encryption applied to each deployed object"""

    AES_256 = "AES256"
    AWS_KMS = "aws:kms"

    def render(self) -> str:
        return self.value


class StorageClass(str, Enum):
    """Storage class used for storing each deployed object"""

    STANDARD = "STANDARD"
    REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"
    STANDARD_IA = "STANDARD_IA"
    ONEZONE_IA = "ONEZONE_IA"
    INTELLIGENT_TIERING = "INTELLIGENT_TIERING"
    GLACIER = "GLACIER"
    DEEP_ARCHIVE = "DEEP_ARCHIVE"

    def render(self) -> str:
        return self.value


@dataclass(frozen=True)
class Expires:
    """
    Used for the HTTP expires header. Does NOT influence deletion of the object.

    Deprecated: pass an `aws_cdk.Expiration` instead.
    """

    value: str

    @classmethod
    def at_date(cls, d: datetime) -> "Expires":
        return cls(http_date(d))

    @classmethod
    def at_timestamp(cls, t: int) -> "Expires":
        """Expire at the given unix timestamp, in milliseconds"""
        return cls.at_date(datetime.fromtimestamp(t / 1000, tz=timezone.utc))

    @classmethod
    def after(cls, t: cdk.Duration) -> "Expires":
        """Expire once the duration has passed since synthesis time"""
        return cls.at_date(
            datetime.now(timezone.utc) + timedelta(milliseconds=t.to_milliseconds())
        )

    @classmethod
    def from_string(cls, s: str) -> "Expires":
        return cls(s)


def http_date(d: datetime) -> str:
    """Render a datetime as an RFC 7231 HTTP-date, e.g. 'Tue, 01 Jan 2030 00:00:00 GMT'"""
    if d.tzinfo is None:
        d = d.replace(tzinfo=timezone.utc)
    return format_datetime(d.astimezone(timezone.utc), usegmt=True)


def to_kebab_case(value: Any) -> str:
    """
    Convert an enum member or a PascalCase/camelCase/UPPER_SNAKE string to
    kebab-case ('PublicRead' -> 'public-read', PUBLIC_READ -> 'public-read').
    """
    if isinstance(value, Enum):
        value = value.value
    return inflection.dasherize(inflection.underscore(str(value)))


def map_user_metadata(metadata: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
    """Lower-case every user metadata key; values pass through unchanged"""
    if metadata is None:
        return None
    return {key.lower(): value for key, value in metadata.items()}


def map_system_metadata(props: Any) -> Optional[Dict[str, str]]:
    """
    Flatten the system-defined metadata fields of a deployment into the header
    map understood by the handler.

    Args:
        props: any object exposing the metadata attributes of
            BucketDeploymentProps (missing attributes count as unset)

    Returns:
        Dict of header name -> value, or None when no field is set
    """
    res: Dict[str, str] = {}

    for field, key in SYSTEM_METADATA_KEYS.items():
        value = getattr(props, field, None)
        # An empty cache-control list is still a set field
        if value is None or (not value and field != "cache_control"):
            continue
        res[key] = _render_system_value(field, value)

    return res or None


def _render_system_value(field: str, value: Any) -> str:
    if field == "cache_control":
        return ", ".join(c.value for c in value)
    if field == "expires":
        if isinstance(value, Expires):
            return value.value
        # aws_cdk.Expiration
        return http_date(value.date)
    if field == "access_control":
        return to_kebab_case(value)
    if isinstance(value, (ServerSideEncryption, StorageClass)):
        return value.render()
    return value


def _to_seconds(t: cdk.Duration) -> int:
    seconds = t.to_seconds()
    return int(seconds) if float(seconds).is_integer() else seconds
