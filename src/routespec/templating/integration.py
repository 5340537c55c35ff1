"""Kida environment setup.

Creates a kida Environment from AppConfig with user-registered filters and
globals. The environment is created once when the app freezes and handed to
the router for view rendering.
"""

from collections.abc import Callable
from typing import Any

from kida import Environment, FileSystemLoader

from routespec.config import AppConfig
from routespec.templating.returns import Template


def create_environment(
    config: AppConfig,
    filters: dict[str, Callable[..., Any]] | None = None,
    globals_: dict[str, Any] | None = None,
) -> Environment:
    """Create a kida Environment rooted at ``config.template_dir``."""
    env = Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
    )
    apply_extensions(env, filters, globals_)
    return env


def apply_extensions(
    env: Environment,
    filters: dict[str, Callable[..., Any]] | None = None,
    globals_: dict[str, Any] | None = None,
) -> None:
    """Register user filters and globals on *env*."""
    if filters:
        env.update_filters(filters)
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)


def render_template(env: Environment, tpl: Template) -> str:
    """Render a full template to string."""
    template = env.get_template(tpl.name)
    return template.render(tpl.context)
