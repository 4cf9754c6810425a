"""
Static Site Stack - website bucket served through CloudFront

This stack creates:
- Private S3 bucket for the site content
- CloudFront distribution with origin access control
- BucketDeployment syncing the local site directory and invalidating the cache
"""

import json
import os

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    CfnOutput,
    aws_s3 as s3,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_lambda as lambda_,
)
from constructs import Construct

from config.constants import (
    DEFAULT_HANDLER_CODE_PATH,
    DEFAULT_INDEX_DOCUMENT,
    DEFAULT_SITE_PATH,
)
from lib.bucket_deployment import BucketDeployment, BucketDeploymentProps
from lib.metadata import CacheControl
from lib.sources import Source


class StaticSiteStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: dict = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Load configuration
        config = config or self._load_config()
        site_cfg = config["site"]
        deployment_cfg = config["deployment"]

        site_path = site_cfg.get("path", DEFAULT_SITE_PATH)
        if not os.path.exists(site_path):
            raise FileNotFoundError(f"Site content not found: {site_path}")

        # The deployment handler bundle is supplied by the deployer
        handler_code_path = deployment_cfg.get("handler_code_path", DEFAULT_HANDLER_CODE_PATH)
        if not os.path.isdir(handler_code_path):
            raise FileNotFoundError(
                f"Deployment handler code not found: {handler_code_path}"
            )

        self.site_bucket = s3.Bucket(
            self,
            "SiteBucket",
            bucket_name=site_cfg.get("bucket_name"),
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
            removal_policy=RemovalPolicy.RETAIN,
        )

        self.distribution = self._create_distribution(site_cfg)

        self.deployment = BucketDeployment(
            self,
            "DeploySite",
            props=BucketDeploymentProps(
                sources=[Source.asset(site_path)],
                destination_bucket=self.site_bucket,
                destination_key_prefix=deployment_cfg.get("key_prefix"),
                prune=deployment_cfg.get("prune", True),
                retain_on_delete=deployment_cfg.get("retain_on_delete", True),
                memory_limit=deployment_cfg.get("memory_limit"),
                distribution=self.distribution,
                distribution_paths=deployment_cfg.get("distribution_paths", ["/*"]),
                cache_control=[
                    CacheControl.set_public(),
                    CacheControl.max_age(
                        Duration.seconds(deployment_cfg.get("max_age_seconds", 300))
                    ),
                ],
                handler_code=lambda_.Code.from_asset(handler_code_path),
            ),
        )

        # Outputs
        CfnOutput(
            self,
            "SiteBucketName",
            value=self.site_bucket.bucket_name,
            description="Bucket holding the deployed site",
        )
        CfnOutput(
            self,
            "DistributionDomainName",
            value=self.distribution.distribution_domain_name,
            description="CloudFront domain serving the site",
        )

    def _load_config(self) -> dict:
        """Load configuration from context or use defaults"""
        env = self.node.try_get_context("environment") or "dev"
        config_path = f"config/{env}.json"

        try:
            with open(config_path, "r") as f:
                return json.load(f)
        except FileNotFoundError:
            # Return default config
            return {
                "site": {
                    "path": DEFAULT_SITE_PATH,
                    "index_document": DEFAULT_INDEX_DOCUMENT,
                },
                "deployment": {
                    "prune": True,
                    "retain_on_delete": True,
                    "distribution_paths": ["/*"],
                    "max_age_seconds": 300,
                    "handler_code_path": DEFAULT_HANDLER_CODE_PATH,
                },
            }

    def _create_distribution(self, site_cfg: dict) -> cloudfront.Distribution:
        """Create CloudFront distribution in front of the site bucket"""
        return cloudfront.Distribution(
            self,
            "SiteDistribution",
            default_root_object=site_cfg.get("index_document", DEFAULT_INDEX_DOCUMENT),
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3BucketOrigin.with_origin_access_control(
                    self.site_bucket
                ),
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
            ),
        )
