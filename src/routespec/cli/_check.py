"""``routespec check`` — import an app and report wiring errors.

Specifications are bound when the app module is imported, so a broken
specification surfaces as a ``ConfigurationError`` here. Exits with code 1
on failure.
"""

import argparse
import sys

from routespec.cli._resolve import resolve_target, router_of
from routespec.errors import ConfigurationError


def run_check(args: argparse.Namespace) -> None:
    """Resolve ``args.target`` and report how many routes it binds."""
    try:
        target = resolve_target(args.target)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except TypeError as exc:
        # Factories wrap their errors in TypeError
        if isinstance(exc.__cause__, ConfigurationError):
            print(f"Configuration error: {exc.__cause__}", file=sys.stderr)
        else:
            print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except (ModuleNotFoundError, AttributeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    count = len(router_of(target).routes)
    print(f"OK: {count} route{'s' if count != 1 else ''} bound.")
