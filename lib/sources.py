"""
Content sources for bucket deployments

A source is bound to the handler's execution role before use and yields the
bucket and zip object key the handler downloads and unpacks.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from aws_cdk import aws_iam as iam
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_s3_assets as s3_assets
from constructs import Construct

from lib.validation import BucketDeploymentError


@dataclass(frozen=True)
class SourceConfig:
    """Bound reference to a zip archive in S3"""

    bucket: s3.IBucket
    zip_object_key: str


class ISource(Protocol):
    def bind(self, scope: Construct, *, handler_role: iam.IRole) -> SourceConfig:
        ...


class _BucketSource:
    def __init__(self, bucket: s3.IBucket, zip_object_key: str) -> None:
        self.bucket = bucket
        self.zip_object_key = zip_object_key

    def bind(self, scope: Construct, *, handler_role: iam.IRole) -> SourceConfig:
        self.bucket.grant_read(handler_role)
        return SourceConfig(bucket=self.bucket, zip_object_key=self.zip_object_key)


class _AssetSource:
    def __init__(self, path: str, **asset_options: Any) -> None:
        self.path = path
        self.asset_options = asset_options

    def bind(self, scope: Construct, *, handler_role: iam.IRole) -> SourceConfig:
        index = 1
        while scope.node.try_find_child(f"Asset{index}") is not None:
            index += 1
        asset = s3_assets.Asset(
            scope,
            f"Asset{index}",
            path=self.path,
            **self.asset_options,
        )
        if not asset.is_zip_archive:
            raise BucketDeploymentError(
                "Asset path must be either a .zip file or a directory"
            )
        asset.grant_read(handler_role)
        return SourceConfig(bucket=asset.bucket, zip_object_key=asset.s3_object_key)


class Source:
    """
    Factory for deployment sources

    Usage:
        Source.bucket(bucket, "path/to/website.zip")
        Source.asset("./website-dist")
    """

    @staticmethod
    def bucket(bucket: s3.IBucket, zip_object_key: str) -> ISource:
        """A zip archive already stored in an S3 bucket"""
        return _BucketSource(bucket, zip_object_key)

    @staticmethod
    def asset(path: str, **asset_options: Any) -> ISource:
        """
        A local .zip file or directory, uploaded as a CDK asset.

        Directories are zipped during synthesis. Extra keyword arguments are
        passed to aws_s3_assets.Asset (e.g. exclude=[...]).
        """
        return _AssetSource(path, **asset_options)
