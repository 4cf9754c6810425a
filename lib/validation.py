"""
Input validation for bucket deployments

Validation is a pure function returning the first failing rule as a tagged
issue; BucketDeployment raises it as DeploymentValidationError.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from aws_cdk import Token


MEMORY_LIMIT_TOKEN_MESSAGE = (
    'Can\'t use tokens when specifying "memory_limit" since we use it '
    "to identify the singleton custom resource handler"
)


class ValidationErrorCode(Enum):
    DISTRIBUTION_REQUIRED = "DistributionRequired"
    PATH_NOT_ABSOLUTE = "PathNotAbsolute"
    MEMORY_LIMIT_UNRESOLVED = "MemoryLimitUnresolved"


@dataclass(frozen=True)
class ValidationIssue:
    code: ValidationErrorCode
    message: str


class BucketDeploymentError(Exception):
    """Base class for errors raised while defining a bucket deployment"""


class DeploymentValidationError(BucketDeploymentError, ValueError):
    """Raised when the deployment options violate a cross-field constraint"""

    def __init__(self, issue: ValidationIssue):
        super().__init__(issue.message)
        self.issue = issue

    @property
    def code(self) -> ValidationErrorCode:
        return self.issue.code


class HandlerProvisioningError(BucketDeploymentError):
    """Raised when the deployment handler was provisioned without an execution role"""


def validate_props(props: Any) -> Optional[ValidationIssue]:
    """
    Check the cross-field constraints of a deployment, in order.

    Args:
        props: BucketDeploymentProps (or any object with the same attributes)

    Returns:
        The first ValidationIssue found, or None when the options are valid
    """
    distribution_paths = getattr(props, "distribution_paths", None)
    if distribution_paths is not None:
        if getattr(props, "distribution", None) is None:
            return ValidationIssue(
                ValidationErrorCode.DISTRIBUTION_REQUIRED,
                "Distribution must be specified if distribution paths are specified",
            )
        # Paths can only be checked once the list and each element are known
        if not Token.is_unresolved(distribution_paths):
            for path in distribution_paths:
                if Token.is_unresolved(path) or path.startswith("/"):
                    continue
                return ValidationIssue(
                    ValidationErrorCode.PATH_NOT_ABSOLUTE,
                    f'Distribution paths must start with "/" (got "{path}")',
                )

    memory_limit = getattr(props, "memory_limit", None)
    if memory_limit and Token.is_unresolved(memory_limit):
        return ValidationIssue(
            ValidationErrorCode.MEMORY_LIMIT_UNRESOLVED,
            MEMORY_LIMIT_TOKEN_MESSAGE,
        )

    return None


def check_props(props: Any) -> None:
    """Raise DeploymentValidationError for the first failing rule, if any"""
    issue = validate_props(props)
    if issue is not None:
        raise DeploymentValidationError(issue)
