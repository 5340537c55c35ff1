"""``routespec routes`` — list bound routes.

Prints METHOD, PATH and the middleware chain of every route, including
routes of mounted routers, in dispatch order.
"""

import argparse
import sys

from routespec.cli._resolve import resolve_target, router_of


def _name(handler: object) -> str:
    return getattr(handler, "__name__", type(handler).__name__)


def run_routes(args: argparse.Namespace) -> None:
    """List bound routes of an app or router builder."""
    try:
        target = resolve_target(args.target)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = router_of(target).routes
    if not routes:
        print("No routes registered.")
        return

    rows = [(r.method, r.path, " > ".join(_name(h) for h in r.handlers)) for r in routes]

    max_method = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "HANDLERS"))
    sep_len = max_method + max_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, path, handlers in rows:
        print(fmt.format(method, path, handlers))
