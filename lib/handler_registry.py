"""
Shared deployment handler resolution

Every BucketDeployment in a stack shares one handler function, except that
each distinct memory limit gets a handler of its own. The handler is keyed by
a deterministic UUID string and looked up in an explicit registry, then in the
stack's construct tree, before a new one is created.
"""

from typing import Callable, Dict, Optional, Union

from aws_cdk import Stack, Token
from aws_cdk import aws_lambda as lambda_
from constructs import Construct

from config.constants import HANDLER_BASE_UUID
from lib.validation import (
    MEMORY_LIMIT_TOKEN_MESSAGE,
    DeploymentValidationError,
    ValidationErrorCode,
    ValidationIssue,
)

HandlerFactory = Callable[[Construct, str], lambda_.Function]


def render_singleton_uuid(memory_limit: Optional[Union[int, float]] = None) -> str:
    """
    Identity of the shared handler for a given memory limit.

    >>> render_singleton_uuid(256)
    '8693BB64-9689-44B6-9AAF-B0CC9EB8756C-256MiB'
    """
    uuid = HANDLER_BASE_UUID

    # A custom memory limit needs its own handler, otherwise only one
    # configuration could exist per stack
    if memory_limit:
        if Token.is_unresolved(memory_limit):
            raise DeploymentValidationError(
                ValidationIssue(
                    ValidationErrorCode.MEMORY_LIMIT_UNRESOLVED, MEMORY_LIMIT_TOKEN_MESSAGE
                )
            )
        if float(memory_limit).is_integer():
            memory_limit = int(memory_limit)
        uuid += f"-{memory_limit}MiB"

    return uuid


def handler_construct_id(uuid: str) -> str:
    """Construct id of the handler function inside its stack"""
    return "CustomResourceHandler" + uuid.replace("-", "")


class HandlerRegistry:
    """
    Caller-owned cache of deployment handlers, keyed by stack path and UUID.

    Share one registry between deployments to make the reuse explicit; a
    deployment created without a registry still finds handlers that an earlier
    deployment placed in the stack.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, lambda_.Function] = {}

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, key: str) -> bool:
        return key in self._handlers

    @staticmethod
    def key_for(scope: Construct, uuid: str) -> str:
        return f"{Stack.of(scope).node.path}/{uuid}"

    def get_or_create(
        self, scope: Construct, uuid: str, factory: HandlerFactory
    ) -> lambda_.Function:
        """
        Return the handler for `uuid` in the stack containing `scope`.

        The first caller for a key creates the handler through `factory`
        (called with the stack and the handler construct id); later callers
        get the same instance back.
        """
        key = self.key_for(scope, uuid)
        handler = self._handlers.get(key)
        if handler is not None:
            return handler

        stack = Stack.of(scope)
        construct_id = handler_construct_id(uuid)
        existing = stack.node.try_find_child(construct_id)
        handler = existing if existing is not None else factory(stack, construct_id)

        self._handlers[key] = handler
        return handler
