"""Tests for routespec.binding.builder — specification interpretation."""

import logging
from typing import Any

import pytest

from routespec.binding.actions import ActionContext, Pipeline
from routespec.binding.builder import RouterBuilder
from routespec.controllers import ResourceController
from routespec.errors import ConfigurationError, ControllerNotFound, MethodNotFound
from routespec.routing.router import Router
from routespec.validation import required


class RecordingRouter(Router):
    """Router that records registration calls in order."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[Any, ...]] = []

    def route(self, method: str, path: str, handlers: Any) -> None:
        self.calls.append(("route", method, path, list(handlers)))
        super().route(method, path, handlers)

    def use(self, path_or_handlers: Any, handlers: Any = None) -> None:
        self.calls.append(("use", path_or_handlers, handlers))
        super().use(path_or_handlers, handlers)

    def param(self, name: str, handler: Any) -> None:
        self.calls.append(("param", name, handler))
        super().param(name, handler)


async def before_unit(request, next):
    return await next(request)


async def after_unit(request, next):
    return await next(request)


async def action_unit(request, next):
    return "action"


async def load_id(request, next, value):
    return await next(request)


async def load_id_again(request, next, value):
    return await next(request)


class Greeter:
    def __init__(self) -> None:
        self.contexts: list[ActionContext] = []

    def hello(self, ctx: ActionContext):
        self.contexts.append(ctx)
        return action_unit

    def many(self, ctx):
        return [before_unit, [action_unit]]

    def nothing(self, ctx):
        return []

    def pipeline(self, ctx):
        return Pipeline(validate=lambda request: None, execute=lambda request: "done")

    def mapping(self, ctx):
        return {"sanitize": lambda request: None, "execute": lambda request: "done"}

    def mapping_without_execute(self, ctx):
        return {"validate": lambda request: None}

    def bad_validate(self, ctx):
        return Pipeline(validate="strict", execute=lambda request: "done")

    def bare_rule_schema(self, ctx):
        return {"validate": {"title": required}, "execute": lambda request: "done"}

    def number(self, ctx):
        return 42

    def explode(self, ctx):
        raise RuntimeError("wiring failed")

    def loader(self):
        return load_id

    def no_loader(self):
        return None

    def bad_loader(self):
        return 42

    def __call__(self, ctx):
        return action_unit


class Comments(ResourceController):
    resource_id = "comment_id"

    def get_all(self, ctx):
        return action_unit

    def get_one(self, ctx):
        return action_unit

    def count(self, ctx):
        return action_unit


@pytest.fixture
def greeter() -> Greeter:
    return Greeter()


@pytest.fixture
def router() -> RecordingRouter:
    return RecordingRouter()


@pytest.fixture
def builder(greeter: Greeter, router: RecordingRouter) -> RouterBuilder:
    return RouterBuilder(
        {"greeter": greeter, "blog": {"comments": Comments()}},
        router=router,
    )


def route_calls(router: RecordingRouter) -> list[tuple[str, str]]:
    return [(c[1], c[2]) for c in router.calls if c[0] == "route"]


class TestVerbs:
    def test_action_binding(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"/hello": {"get": {"action": "greeter@hello"}}})
        assert router.calls == [("route", "get", "/hello", [action_unit])]

    def test_action_context(self, builder: RouterBuilder, greeter: Greeter) -> None:
        builder.add_specification(
            {"/hello": {"get": {"action": "greeter@hello", "options": {"page": 1}}}}
        )
        assert greeter.contexts == [ActionContext("/hello", {"page": 1})]

    def test_action_context_without_options(self, builder: RouterBuilder, greeter: Greeter) -> None:
        builder.add_specification({"get": {"action": "greeter@hello"}})
        assert greeter.contexts == [ActionContext("/", None)]

    def test_single_action_controller(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        builder.add_specification({"/x": {"post": {"action": "greeter"}}})
        assert router.calls == [("route", "post", "/x", [action_unit])]

    def test_nested_paths(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification(
            {
                "/users": {
                    "get": {"action": "greeter@hello"},
                    "/:id": {"/posts": {"get": {"action": "greeter@hello"}}},
                }
            }
        )
        assert route_calls(router) == [("get", "/users"), ("get", "/users/:id/posts")]

    def test_base_path(self, greeter: Greeter, router: RecordingRouter) -> None:
        builder = RouterBuilder({"greeter": greeter}, "/api", router=router)
        builder.add_specification({"/hello": {"get": {"action": "greeter@hello"}}})
        assert route_calls(router) == [("get", "/api/hello")]

    def test_explicit_path(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"get": {"action": "greeter@hello"}}, "/v2")
        assert route_calls(router) == [("get", "/v2")]

    def test_verbs_are_case_insensitive(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        builder.add_specification(
            {"PUT": {"action": "greeter@hello"}, "all": {"action": "greeter"}}
        )
        assert [r.method for r in router.routes] == ["PUT", "ALL"]

    def test_head_is_processed_first(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification(
            {
                "get": {"action": "greeter@hello"},
                "post": {"action": "greeter@hello"},
                "head": {"action": "greeter@hello"},
            }
        )
        assert [c[1] for c in router.calls] == ["head", "get", "post"]

    def test_before_and_after(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        before = [before_unit]
        builder.add_specification(
            {
                "/a": {"get": {"before": before, "action": "greeter@hello", "after": [after_unit]}},
                "/b": {"get": {"before": before, "action": "greeter@hello"}},
            }
        )
        assert router.calls[0][3] == [before_unit, action_unit, after_unit]
        assert router.calls[1][3] == [before_unit, action_unit]
        assert before == [before_unit]

    def test_single_before_callable(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"get": {"before": before_unit, "action": "greeter@hello"}})
        assert router.calls[0][3] == [before_unit, action_unit]

    def test_view(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"/about": {"get": {"view": "about.html"}}})
        (unit,) = router.calls[0][3]
        assert unit.__name__ == "render_about.html"

    def test_action_wins_over_view(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"get": {"action": "greeter@hello", "view": "about.html"}})
        assert router.calls[0][3] == [action_unit]


class TestActionResults:
    def test_list(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"get": {"action": "greeter@many"}})
        assert router.calls[0][3] == [before_unit, action_unit]

    def test_pipeline(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"get": {"action": "greeter@pipeline"}})
        names = [u.__name__ for u in router.calls[0][3]]
        assert names == ["validate_<lambda>", "execute_<lambda>"]

    def test_mapping(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"get": {"action": "greeter@mapping"}})
        names = [u.__name__ for u in router.calls[0][3]]
        assert names == ["sanitize_<lambda>", "execute_<lambda>"]

    def test_mapping_without_execute(self, builder: RouterBuilder) -> None:
        msg = r"must define an 'execute' property \[get /\]"
        with pytest.raises(ConfigurationError, match=msg):
            builder.add_specification({"get": {"action": "greeter@mapping_without_execute"}})

    def test_unsupported_validate(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported validate value"):
            builder.add_specification({"get": {"action": "greeter@bad_validate"}})

    def test_schema_rules_must_be_lists(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        with pytest.raises(ConfigurationError, match=r"Unsupported validate value .* \[post /\]"):
            builder.add_specification({"post": {"action": "greeter@bare_rule_schema"}})
        assert router.calls == []

    def test_unsupported_return_type(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="Return type of controller method must be"):
            builder.add_specification({"get": {"action": "greeter@number"}})

    def test_errors_from_action_methods_propagate(self, builder: RouterBuilder) -> None:
        with pytest.raises(RuntimeError, match="wiring failed"):
            builder.add_specification({"get": {"action": "greeter@explode"}})


class TestEmptyPipelines:
    def test_skipped_by_default(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"get": {"action": "greeter@nothing"}})
        assert router.calls == []

    def test_strict(self, greeter: Greeter) -> None:
        builder = RouterBuilder({"greeter": greeter}, strict=True)
        with pytest.raises(ConfigurationError, match="get / builds an empty middleware pipeline"):
            builder.add_specification({"get": {"action": "greeter@nothing"}})


class TestVerbErrors:
    def test_invalid_verb(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="frobnicate is not a valid http verb"):
            builder.add_specification({"frobnicate": {"action": "greeter@hello"}})

    def test_missing_action_and_view(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="get /x must define an action or view"):
            builder.add_specification({"/x": {"get": {"before": [before_unit]}}})

    def test_options_must_be_mapping(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="get / must be a mapping"):
            builder.add_specification({"get": "greeter@hello"})

    def test_unknown_controller(self, builder: RouterBuilder) -> None:
        with pytest.raises(ControllerNotFound):
            builder.add_specification({"get": {"action": "ghost@hello"}})

    def test_unknown_method(self, builder: RouterBuilder) -> None:
        with pytest.raises(MethodNotFound):
            builder.add_specification({"get": {"action": "greeter@bye"}})

    def test_bad_before(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="Middleware must be a callable"):
            builder.add_specification({"get": {"before": ["nope"], "action": "greeter@hello"}})


class TestSpecificationShapes:
    def test_use(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"/admin": {"use": [before_unit]}})
        assert router.calls == [("use", "/admin", [before_unit])]

    def test_list_node_is_mounted(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification({"/static": [before_unit, after_unit]})
        assert router.calls == [("use", "/static", [before_unit, after_unit])]

    def test_router_node_is_mounted(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        child = Router()
        builder.add_specification({"/api": child})
        assert router.calls == [("use", "/api", [child])]

    def test_top_level_callable(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification(before_unit)
        assert router.calls == [("use", "/", [before_unit])]

    @pytest.mark.parametrize("node", [42, "text", None])
    def test_invalid_node(self, builder: RouterBuilder, node: Any) -> None:
        with pytest.raises(ConfigurationError, match="Specification must be a mapping"):
            builder.add_specification({"/x": node})

    def test_registration_follows_key_order(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        builder.add_specification(
            {
                "use": before_unit,
                "/a": {"get": {"action": "greeter@hello"}},
                ":id": load_id,
                "post": {"action": "greeter@hello"},
            }
        )
        assert [c[0] for c in router.calls] == ["use", "route", "param", "route"]

    def test_chaining(self, builder: RouterBuilder) -> None:
        assert builder.add_specification({}) is builder

    def test_get_router(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        assert builder.get_router() is router
        assert builder.router is router

    def test_default_router(self) -> None:
        assert isinstance(RouterBuilder().get_router(), Router)


class TestResourceNodes:
    def test_expansion_is_registered(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_specification(
            {"/comments": {"resource": {"controller": "blog.comments"}}}
        )
        assert route_calls(router) == [
            ("get", "/comments"),
            ("get", "/comments/count"),
            ("get", "/comments/:comment_id"),
        ]

    def test_resource_errors_propagate(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="/comments is missing controller property"):
            builder.add_specification({"/comments": {"resource": {}}})


class TestParameters:
    def test_callable(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_parameter(":id", load_id)
        assert router.calls == [("param", "id", load_id)]

    def test_action(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_parameter(":id", {"action": "greeter@loader"})
        assert router.params == {"id": load_id}

    def test_registered_once(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_parameter(":id", load_id)
        builder.add_parameter(":id", load_id_again)
        builder.add_specification({":id": load_id_again})
        assert router.params == {"id": load_id}
        assert len(router.calls) == 1

    def test_override(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_parameter(":id", load_id)
        builder.add_parameter(":id", load_id_again, override=True)
        assert router.params == {"id": load_id_again}

    def test_once_within_one_specification(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        builder.add_specification({":id": load_id, "/x": {":id": load_id_again}})
        assert router.params == {"id": load_id}

    def test_action_returning_none(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        builder.add_parameter(":id", {"action": "greeter@no_loader"})
        assert router.calls == []
        # Still counted as registered
        builder.add_parameter(":id", load_id)
        assert router.params == {}

    def test_action_returning_non_callable(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="Parameter handler must be callable"):
            builder.add_parameter(":id", {"action": "greeter@bad_loader"})

    def test_mapping_without_action(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match=r"Invalid parameter specification \(:id\)"):
            builder.add_parameter(":id", {"handler": load_id})

    def test_invalid_opts(self, builder: RouterBuilder) -> None:
        msg = r"opts must be a callable or a mapping \[param=:id\]"
        with pytest.raises(ConfigurationError, match=msg):
            builder.add_parameter(":id", 42)

    def test_name_needs_sigil(self, builder: RouterBuilder) -> None:
        with pytest.raises(ConfigurationError, match="must start with :"):
            builder.add_parameter("id", load_id)


class TestAtomicity:
    def test_failed_specification_registers_nothing(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        with pytest.raises(ConfigurationError):
            builder.add_specification(
                {
                    "use": before_unit,
                    ":id": load_id,
                    "/ok": {"get": {"action": "greeter@hello"}},
                    "/broken": {"get": {"action": "greeter@missing"}},
                }
            )
        assert router.calls == []

    def test_failed_specification_does_not_cache_params(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        with pytest.raises(ConfigurationError):
            builder.add_specification({":id": load_id, "bogus": {"action": "greeter@hello"}})
        builder.add_parameter(":id", load_id_again)
        assert router.params == {"id": load_id_again}

    def test_invalid_path_registers_nothing(
        self, builder: RouterBuilder, router: RecordingRouter
    ) -> None:
        with pytest.raises(ConfigurationError):
            builder.add_specification(
                {"/ok": {"get": {"action": "greeter@hello"}}, "/:bad-name": {"get": {"view": "x"}}}
            )
        assert router.calls == []


class TestAddRouters:
    def test_nested_mapping(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        api, admin = Router(), Router()
        builder.add_routers({"api": api, "internal": {"admin": admin, "mw": [before_unit]}})
        assert router.calls == [
            ("use", "/", [api]),
            ("use", "/", [admin]),
            ("use", "/", [before_unit]),
        ]

    def test_invalid_leaf(self, builder: RouterBuilder, router: RecordingRouter) -> None:
        with pytest.raises(ConfigurationError, match="Router api must be a router"):
            builder.add_routers({"ok": Router(), "api": 42})
        assert router.calls == []


class TestLogging:
    def test_wiring_trace(self, builder: RouterBuilder, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="routespec.binding"):
            builder.add_specification(
                {
                    "use": before_unit,
                    ":id": load_id,
                    "/hello": {"get": {"action": "greeter@hello"}},
                }
            )
        assert caplog.messages == [
            "processing use /",
            "processing parameter :id",
            "processing GET /hello",
        ]
