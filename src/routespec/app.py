"""routespec application class.

Mutable during setup (specifications, parameters, middleware, hooks).
Frozen at runtime when ``__call__()`` is first invoked.
"""

import inspect
import threading
from collections.abc import Callable, Mapping
from typing import Any

from kida import Environment

from routespec._internal.asgi import Receive, Scope, Send
from routespec.binding.actions import ControllerRegistry
from routespec.binding.builder import RouterBuilder
from routespec.config import AppConfig
from routespec.middleware.protocol import Middleware
from routespec.routing.router import Router
from routespec.server.handler import handle_request
from routespec.templating.integration import apply_extensions, create_environment


class App:
    """The routespec application.

    Wraps a ``RouterBuilder`` so specifications can be added directly::

        app = App({"posts": PostController()}, AppConfig(base_path="/api"))
        app.add_specification({"/posts": {"resource": {"controller": "posts"}}})

    Mutable during setup. Frozen when the first request or lifespan event
    arrives; the router is compiled with the kida environment then.

    Thread safety:
        The setup phase is single-threaded (module import time). The freeze
        transition uses a Lock + double-check so exactly one thread compiles
        the app, even when several ASGI workers call ``__call__()``
        concurrently on first request.
    """

    __slots__ = (
        "_builder",
        "_custom_kida_env",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_middleware",
        "_middleware_list",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "config",
    )

    def __init__(
        self,
        controllers: ControllerRegistry | Mapping[str, Any] | None = None,
        config: AppConfig | None = None,
        *,
        kida_env: Environment | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._builder = RouterBuilder(
            controllers,
            self.config.base_path,
            strict=self.config.strict_pipelines,
        )
        self._middleware_list: list[Middleware] = []
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._custom_kida_env: Environment | None = kida_env

        # Compiled state, set during _freeze()
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._kida_env: Environment | None = None

    # -- Route binding --

    def add_specification(self, spec: Any, path: str | None = None) -> App:
        """Bind a specification; see ``RouterBuilder.add_specification``."""
        self._check_not_frozen()
        self._builder.add_specification(spec, path)
        return self

    def add_parameter(self, name: str, opts: Any, override: bool = False) -> None:
        """Register a ``:name`` parameter handler; see ``RouterBuilder.add_parameter``."""
        self._check_not_frozen()
        self._builder.add_parameter(name, opts, override)

    def add_routers(self, routers: Mapping[str, Any]) -> App:
        """Mount routers at the root; see ``RouterBuilder.add_routers``."""
        self._check_not_frozen()
        self._builder.add_routers(routers)
        return self

    @property
    def router(self) -> Router:
        return self._builder.router

    @property
    def builder(self) -> RouterBuilder:
        return self._builder

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add app-wide middleware, run around the router in registration order."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Templates --

    def template_filter(self, name: str | None = None) -> Callable[..., Any]:
        """Register a kida template filter via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_filters[name or func.__name__] = func
            return func

        return decorator

    def template_global(self, name: str | None = None) -> Callable[..., Any]:
        """Register a kida template global via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_globals[name or func.__name__] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            router=self._builder.router,
            middleware=self._middleware,
            kida_env=self._kida_env,
        )

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup, then runs registered startup/shutdown
        hooks and signals completion back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Initialize kida environment
        if self._custom_kida_env is not None:
            self._kida_env = self._custom_kida_env
            apply_extensions(self._kida_env, self._template_filters, self._template_globals)
        else:
            self._kida_env = create_environment(
                self.config,
                self._template_filters,
                self._template_globals,
            )

        # 2. Compile the router; views render through the environment
        self._builder.router.compile(self._kida_env)

        # 3. Capture middleware as immutable tuple
        self._middleware = tuple(self._middleware_list)

        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Add specifications, parameters and middleware before the first request."
            )
            raise RuntimeError(msg)
