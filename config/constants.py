"""
Shared constants for the S3 bucket deployment construct
"""

# Base identity of the shared deployment handler (one per stack)
HANDLER_BASE_UUID = "8693BB64-9689-44B6-9AAF-B0CC9EB8756C"

# Custom resource type understood by the deployment handler
CUSTOM_RESOURCE_TYPE = "Custom::CDKBucketDeployment"

# Handler settings
HANDLER_ENTRYPOINT = "index.handler"
HANDLER_TIMEOUT_MINUTES = 15
DEFAULT_HANDLER_CODE_PATH = "lambda/bucket_deployment"

# CloudFront permissions granted when a distribution is supplied
INVALIDATION_ACTIONS = [
    "cloudfront:GetInvalidation",
    "cloudfront:CreateInvalidation",
]

# System metadata header names, in the order they are rendered
SYSTEM_METADATA_KEYS = {
    "cache_control": "cache-control",
    "expires": "expires",
    "content_disposition": "content-disposition",
    "content_encoding": "content-encoding",
    "content_language": "content-language",
    "content_type": "content-type",
    "server_side_encryption": "sse",
    "storage_class": "storage-class",
    "website_redirect_location": "website-redirect",
    "server_side_encryption_aws_kms_key_id": "sse-kms-key-id",
    "server_side_encryption_customer_algorithm": "sse-c-copy-source",
    "access_control": "acl",
}

# Static site defaults
DEFAULT_SITE_PATH = "site"
DEFAULT_INDEX_DOCUMENT = "index.html"
