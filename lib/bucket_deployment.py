"""
BucketDeployment - populate an S3 bucket from zip archives

This construct creates:
- A shared deployment handler Lambda (one per stack and memory limit)
- Read/write access for the handler on the destination bucket
- CloudFront invalidation permissions when a distribution is supplied
- A Custom::CDKBucketDeployment resource describing the sync to run
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import aws_cdk as cdk
from aws_cdk import (
    Annotations,
    CustomResource,
    Duration,
    aws_cloudfront as cloudfront,
    aws_ec2 as ec2,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_s3 as s3,
)
from aws_cdk.lambda_layer_awscli import AwsCliLayer
from constructs import Construct

from config.constants import (
    CUSTOM_RESOURCE_TYPE,
    DEFAULT_HANDLER_CODE_PATH,
    HANDLER_ENTRYPOINT,
    HANDLER_TIMEOUT_MINUTES,
    INVALIDATION_ACTIONS,
)
from lib.handler_registry import HandlerRegistry, render_singleton_uuid
from lib.metadata import (
    CacheControl,
    Expires,
    ServerSideEncryption,
    StorageClass,
    map_system_metadata,
    map_user_metadata,
)
from lib.sources import ISource, SourceConfig
from lib.validation import HandlerProvisioningError, check_props


@dataclass(frozen=True)
class BucketDeploymentProps:
    """
    Options for BucketDeployment.

    Only `sources` and `destination_bucket` are required. `prune` is sent as
    True when unset; `retain_on_delete` left unset means the handler retains
    deployed files on delete.
    """

    sources: Sequence[ISource]
    destination_bucket: s3.IBucket
    destination_key_prefix: Optional[str] = None
    exclude: Optional[List[str]] = None
    include: Optional[List[str]] = None
    prune: Optional[bool] = None
    retain_on_delete: Optional[bool] = None
    distribution: Optional[cloudfront.IDistribution] = None
    distribution_paths: Optional[List[str]] = None
    memory_limit: Optional[int] = None
    role: Optional[iam.IRole] = None
    vpc: Optional[ec2.IVpc] = None
    vpc_subnets: Optional[ec2.SubnetSelection] = None
    # Object metadata
    metadata: Optional[Mapping[str, str]] = None
    cache_control: Optional[List[CacheControl]] = None
    content_disposition: Optional[str] = None
    content_encoding: Optional[str] = None
    content_language: Optional[str] = None
    content_type: Optional[str] = None
    expires: Optional[Union[cdk.Expiration, Expires]] = None
    server_side_encryption: Optional[ServerSideEncryption] = None
    storage_class: Optional[StorageClass] = None
    website_redirect_location: Optional[str] = None
    server_side_encryption_aws_kms_key_id: Optional[str] = None
    server_side_encryption_customer_algorithm: Optional[str] = None
    access_control: Optional[Union[s3.BucketAccessControl, str]] = None
    # Handler provisioning
    handler_code: Optional[lambda_.Code] = None
    handler_registry: Optional[HandlerRegistry] = None


def render_properties(
    props: BucketDeploymentProps, sources: Sequence[SourceConfig]
) -> Dict[str, Any]:
    """
    Build the property map of the custom resource.

    Absent optional values are left out of the map; source buckets and keys
    are emitted as two parallel lists in source order.
    """
    properties = {
        "SourceBucketNames": [source.bucket.bucket_name for source in sources],
        "SourceObjectKeys": [source.zip_object_key for source in sources],
        "DestinationBucketName": props.destination_bucket.bucket_name,
        "DestinationBucketKeyPrefix": props.destination_key_prefix,
        "RetainOnDelete": props.retain_on_delete,
        "Prune": True if props.prune is None else props.prune,
        "Exclude": props.exclude,
        "Include": props.include,
        "UserMetadata": map_user_metadata(props.metadata),
        "SystemMetadata": map_system_metadata(props),
        "DistributionId": (
            props.distribution.distribution_id if props.distribution else None
        ),
        "DistributionPaths": props.distribution_paths,
    }
    return {key: value for key, value in properties.items() if value is not None}


class BucketDeployment(Construct):
    """
    Populates an S3 bucket with the contents of zip files from other S3
    buckets or from local disk.
    """

    def __init__(
        self, scope: Construct, construct_id: str, *, props: BucketDeploymentProps
    ) -> None:
        super().__init__(scope, construct_id)

        check_props(props)
        self.props = props

        # Shared handler Lambda
        self.handler = self._resolve_handler()

        handler_role = self.handler.role
        if handler_role is None:
            raise HandlerProvisioningError(
                "Deployment handler should have been created with an execution role"
            )
        self.handler_role = handler_role

        # Bind sources to the handler role
        self.sources = [
            source.bind(self, handler_role=handler_role) for source in props.sources
        ]

        self._configure_permissions()

        if props.retain_on_delete is False:
            Annotations.of(self).add_warning(
                "retain_on_delete is false: deployed files are deleted when this "
                "deployment is removed or its destination changes"
            )

        self.properties = render_properties(props, self.sources)
        self.custom_resource = CustomResource(
            self,
            "CustomResource",
            service_token=self.handler.function_arn,
            resource_type=CUSTOM_RESOURCE_TYPE,
            properties=self.properties,
        )

    @property
    def deployed_bucket(self) -> s3.IBucket:
        return self.props.destination_bucket

    def _resolve_handler(self) -> lambda_.Function:
        """Find or create the handler for this deployment's memory limit"""
        uuid = render_singleton_uuid(self.props.memory_limit)
        registry = self.props.handler_registry
        if registry is None:
            registry = HandlerRegistry()
        return registry.get_or_create(self, uuid, self._create_handler)

    def _create_handler(self, scope: Construct, construct_id: str) -> lambda_.Function:
        """Create the deployment handler Lambda in the stack scope"""
        code = self.props.handler_code or lambda_.Code.from_asset(
            DEFAULT_HANDLER_CODE_PATH
        )
        return lambda_.Function(
            scope,
            construct_id,
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler=HANDLER_ENTRYPOINT,
            code=code,
            layers=[AwsCliLayer(scope, f"{construct_id}AwsCliLayer")],
            timeout=Duration.minutes(HANDLER_TIMEOUT_MINUTES),
            role=self.props.role,
            memory_size=self.props.memory_limit,
            vpc=self.props.vpc,
            vpc_subnets=self.props.vpc_subnets,
        )

    def _configure_permissions(self) -> None:
        """Grant the handler access to the destination and, optionally, CloudFront"""
        self.props.destination_bucket.grant_read_write(self.handler)

        # Invalidation paths are only known at deploy time
        if self.props.distribution is not None:
            self.handler.add_to_role_policy(
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=INVALIDATION_ACTIONS,
                    resources=["*"],
                )
            )
