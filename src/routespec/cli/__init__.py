"""routespec CLI — inspect and check bound routes.

Entry point registered as ``routespec`` in ``pyproject.toml``::

    [project.scripts]
    routespec = "routespec.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``routespec`` command."""
    parser = argparse.ArgumentParser(
        prog="routespec",
        description="routespec — declarative route binding for ASGI apps.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- routespec routes -------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List bound routes")
    routes_parser.add_argument("target", help="Import string (e.g. myapp:app or myapp:builder)")

    # -- routespec check --------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Check that specifications bind")
    check_parser.add_argument("target", help="Import string (e.g. myapp:app or myapp:builder)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from routespec.cli._routes import run_routes

        run_routes(args)
    elif args.command == "check":
        from routespec.cli._check import run_check

        run_check(args)
