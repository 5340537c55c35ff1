"""Tests for routespec.binding.actions — registry lookup and action resolution."""

import pytest

from routespec.binding.actions import (
    ActionContext,
    ActionResolver,
    BoundMethodCall,
    ControllerRegistry,
    Pipeline,
    action_ref,
)
from routespec.errors import (
    ConfigurationError,
    ControllerNotFound,
    InvalidActionReference,
    MethodNotFound,
)


class Greeter:
    greeting = "not callable"

    def __call__(self, ctx):
        return ("invoke", ctx)

    def hello(self, ctx=None, extra=None):
        return ("hello", ctx, extra)


class Users:
    def list(self, ctx):
        return ctx


@pytest.fixture
def registry() -> ControllerRegistry:
    return ControllerRegistry({"greeter": Greeter(), "admin": {"users": Users()}})


class TestActionRef:
    def test_without_options(self) -> None:
        assert action_ref("posts", "create") == {"action": "posts@create"}

    def test_with_options(self) -> None:
        assert action_ref("posts", "create", {"a": 1}) == {
            "action": "posts@create",
            "options": {"a": 1},
        }

    def test_empty_options_are_dropped(self) -> None:
        assert action_ref("posts", "create", {}) == {"action": "posts@create"}


class TestControllerRegistry:
    def test_lookup(self, registry: ControllerRegistry) -> None:
        assert isinstance(registry.lookup("greeter"), Greeter)

    def test_dotted_lookup(self, registry: ControllerRegistry) -> None:
        assert isinstance(registry.lookup("admin.users"), Users)

    @pytest.mark.parametrize("name", ["missing", "admin.missing", "greeter.hello", "admin..users"])
    def test_missing(self, registry: ControllerRegistry, name: str) -> None:
        with pytest.raises(ControllerNotFound, match=f"controller {name} not found"):
            registry.lookup(name)

    def test_contains(self, registry: ControllerRegistry) -> None:
        assert "admin.users" in registry
        assert "nope" not in registry
        assert 42 not in registry

    def test_coerce(self, registry: ControllerRegistry) -> None:
        assert ControllerRegistry.coerce(registry) is registry
        assert "x" in ControllerRegistry.coerce({"x": object()})
        assert "x" not in ControllerRegistry.coerce(None)


class TestActionResolver:
    def test_controller_and_method(self, registry: ControllerRegistry) -> None:
        call = ActionResolver(registry).resolve("greeter@hello")
        assert isinstance(call, BoundMethodCall)
        assert call.controller_name == "greeter"
        assert call.method_name == "hello"
        assert isinstance(call.controller, Greeter)
        assert str(call) == "greeter@hello"

    def test_single_action_controller(self, registry: ControllerRegistry) -> None:
        call = ActionResolver(registry).resolve("greeter")
        assert call.method_name == "__call__"
        assert call.bind("ctx").invoke() == ("invoke", "ctx")

    def test_dotted_controller(self, registry: ControllerRegistry) -> None:
        call = ActionResolver(registry).resolve("admin.users@list")
        assert call.bind(7).invoke() == 7

    @pytest.mark.parametrize("ref", ["a@b@c", "@hello", "greeter@", ""])
    def test_invalid_format(self, registry: ControllerRegistry, ref: str) -> None:
        with pytest.raises(InvalidActionReference, match="invalid action format"):
            ActionResolver(registry).resolve(ref)

    def test_unknown_controller(self, registry: ControllerRegistry) -> None:
        with pytest.raises(ControllerNotFound, match="controller ghost not found"):
            ActionResolver(registry).resolve("ghost@hello")

    def test_unknown_method(self, registry: ControllerRegistry) -> None:
        with pytest.raises(MethodNotFound, match="controller greeter does not define method bye"):
            ActionResolver(registry).resolve("greeter@bye")

    def test_non_callable_attribute(self, registry: ControllerRegistry) -> None:
        with pytest.raises(MethodNotFound):
            ActionResolver(registry).resolve("greeter@greeting")

    def test_non_string_reference(self, registry: ControllerRegistry) -> None:
        with pytest.raises(ConfigurationError, match="must be a string"):
            ActionResolver(registry).resolve(["greeter"])  # type: ignore[arg-type]

    def test_errors_are_configuration_errors(self) -> None:
        for cls in (InvalidActionReference, ControllerNotFound, MethodNotFound):
            assert issubclass(cls, ConfigurationError)


class TestBoundMethodCall:
    def test_bind_accumulates_arguments(self, registry: ControllerRegistry) -> None:
        call = ActionResolver(registry).resolve("greeter@hello")
        bound = call.bind("ctx").bind("extra")
        assert bound.invoke() == ("hello", "ctx", "extra")
        # The original is unchanged
        assert call.invoke() == ("hello", None, None)

    def test_action_context(self) -> None:
        ctx = ActionContext("/users")
        assert ctx.path == "/users"
        assert ctx.options is None


class TestPipeline:
    def test_from_mapping(self) -> None:
        def execute(request):
            return "done"

        pipeline = Pipeline.from_mapping({"execute": execute, "validate": {}}, "get /")
        assert pipeline.execute is execute
        assert pipeline.validate == {}
        assert pipeline.sanitize is None

    def test_from_mapping_requires_execute(self) -> None:
        msg = r"must define an 'execute' property \[get /\]"
        with pytest.raises(ConfigurationError, match=msg):
            Pipeline.from_mapping({"validate": lambda r: None}, "get /")
