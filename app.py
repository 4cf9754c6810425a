#!/usr/bin/env python3
"""
S3 Bucket Deployment CDK Application

Deploys a static site bucket behind CloudFront and populates it with the
local site directory through the BucketDeployment construct.
"""

import aws_cdk as cdk
from lib.static_site_stack import StaticSiteStack

app = cdk.App()

# Get environment configuration
env = cdk.Environment(
    account=app.node.try_get_context("account"),
    region=app.node.try_get_context("region") or "us-east-1"
)

environment = app.node.try_get_context("environment") or "dev"
print(f"Synthesizing static site for environment: {environment}")

StaticSiteStack(
    app,
    "StaticSiteStack",
    env=env,
    description="Static site bucket populated by BucketDeployment"
)

app.synth()
