"""Test utilities for routespec applications::

    from routespec.testing import TestClient, assert_json_error
"""

from routespec.testing.assertions import assert_json_error
from routespec.testing.client import TestClient

__all__ = ["TestClient", "assert_json_error"]
