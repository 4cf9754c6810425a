"""
Unit tests for shared handler resolution
"""

import pytest
from unittest.mock import Mock

import aws_cdk as cdk
from aws_cdk import aws_lambda as lambda_, aws_s3 as s3

from lib.handler_registry import (
    HandlerRegistry,
    handler_construct_id,
    render_singleton_uuid,
)
from lib.validation import DeploymentValidationError

BASE_UUID = "8693BB64-9689-44B6-9AAF-B0CC9EB8756C"


def _function(scope, construct_id):
    return lambda_.Function(
        scope,
        construct_id,
        runtime=lambda_.Runtime.PYTHON_3_11,
        handler="index.handler",
        code=lambda_.Code.from_inline("def handler(event, context):\n    return None\n"),
    )


class TestRenderSingletonUuid:
    """Tests for render_singleton_uuid"""

    def test_default(self):
        """Test the base UUID is used without a memory limit"""
        assert render_singleton_uuid() == BASE_UUID
        assert render_singleton_uuid(None) == BASE_UUID

    def test_memory_suffix(self):
        """Test memory suffix"""
        assert render_singleton_uuid(256) == f"{BASE_UUID}-256MiB"

    def test_integral_float(self):
        """Test integral floats render without a decimal point"""
        assert render_singleton_uuid(1024.0) == f"{BASE_UUID}-1024MiB"

    def test_deterministic(self):
        """Test the UUID is a pure function of the memory limit"""
        assert render_singleton_uuid(512) == render_singleton_uuid(512)
        assert render_singleton_uuid(512) != render_singleton_uuid(1024)

    def test_token_rejected(self):
        """Test an unresolved memory limit is rejected"""
        stack = cdk.Stack(cdk.App(), "TestStack")
        memory = cdk.CfnParameter(stack, "Memory", type="Number").value_as_number

        with pytest.raises(DeploymentValidationError):
            render_singleton_uuid(memory)


class TestHandlerConstructId:

    def test_strips_dashes(self):
        """Test the construct id drops dashes from the UUID"""
        assert handler_construct_id(f"{BASE_UUID}-256MiB") == (
            "CustomResourceHandler8693BB64968944B69AAFB0CC9EB8756C256MiB"
        )


class TestHandlerRegistry:
    """Tests for HandlerRegistry"""

    def test_first_writer_wins(self):
        """Test first writer wins"""
        stack = cdk.Stack(cdk.App(), "TestStack")
        registry = HandlerRegistry()
        factory = Mock(side_effect=_function)

        first = registry.get_or_create(stack, BASE_UUID, factory)
        second = registry.get_or_create(stack, BASE_UUID, factory)

        assert first is second
        assert factory.call_count == 1
        assert len(registry) == 1

    def test_distinct_uuids_get_distinct_handlers(self):
        """Test distinct uuids get distinct handlers"""
        stack = cdk.Stack(cdk.App(), "TestStack")
        registry = HandlerRegistry()

        default = registry.get_or_create(stack, BASE_UUID, _function)
        sized = registry.get_or_create(stack, f"{BASE_UUID}-256MiB", _function)

        assert default is not sized
        assert len(registry) == 2

    def test_handler_created_in_stack_scope(self):
        """Test the factory receives the stack and the derived construct id"""
        stack = cdk.Stack(cdk.App(), "TestStack")
        scope = s3.Bucket(stack, "Bucket")
        factory = Mock(side_effect=_function)

        HandlerRegistry().get_or_create(scope, BASE_UUID, factory)

        factory.assert_called_once_with(stack, handler_construct_id(BASE_UUID))

    def test_reuses_handler_from_construct_tree(self):
        """Test separate registries share the handler already in the stack"""
        stack = cdk.Stack(cdk.App(), "TestStack")

        first = HandlerRegistry().get_or_create(stack, BASE_UUID, _function)
        factory = Mock(side_effect=_function)
        second = HandlerRegistry().get_or_create(stack, BASE_UUID, factory)

        assert first is second
        factory.assert_not_called()

    def test_keys_are_per_stack(self):
        """Test keys are per stack"""
        app = cdk.App()
        stack_a = cdk.Stack(app, "StackA")
        stack_b = cdk.Stack(app, "StackB")
        registry = HandlerRegistry()

        a = registry.get_or_create(stack_a, BASE_UUID, _function)
        b = registry.get_or_create(stack_b, BASE_UUID, _function)

        assert a is not b
        assert HandlerRegistry.key_for(stack_a, BASE_UUID) in registry
        assert HandlerRegistry.key_for(stack_b, BASE_UUID) in registry
