"""routespec exception hierarchy.

Two families share one base:

- ``ConfigurationError`` and its subclasses are *wiring-time* failures. They
  are raised while a specification is turned into routes and abort startup.
- ``AppError`` and ``HTTPError`` are *request-time* domain errors. They carry
  a machine-readable ``code`` and are rendered to clients by
  ``routespec.server.errors.error_response``.
"""

from typing import Any


class RoutespecError(Exception):
    """Base for all routespec-specific errors."""


class ConfigurationError(RoutespecError):
    """Raised when a specification or app configuration is invalid.

    Typically raised by ``RouterBuilder.add_specification()`` at startup.
    """


class InvalidActionReference(ConfigurationError):
    """An action reference is not ``controller`` or ``controller@method``."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"invalid action format [{reference}]")


class ControllerNotFound(ConfigurationError):  # noqa: N818
    """No controller is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"controller {name} not found")


class MethodNotFound(ConfigurationError):  # noqa: N818
    """The controller exists but does not define the requested method."""

    def __init__(self, controller: str, method: str) -> None:
        self.controller = controller
        self.method = method
        super().__init__(f"controller {controller} does not define method {method}")


class AppError(RoutespecError):
    """A domain error that can be reported to the client.

    ``code`` is a short machine-readable identifier, ``message`` is for
    humans, ``details`` is any JSON-serializable payload.
    """

    def __init__(self, code: str, message: str = "", details: Any = None) -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.message:
            return f"{self.code}: {self.message}"
        return self.code


class HTTPError(AppError):
    """A domain error that maps directly to an HTTP status code."""

    def __init__(
        self,
        status: int,
        code: str,
        message: str = "",
        details: Any = None,
        headers: tuple[tuple[str, str], ...] = (),
    ) -> None:
        super().__init__(code, message, details)
        self.status = status
        self.headers = headers

    def __str__(self) -> str:
        return f"{self.status}: {super().__str__()}"


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, message: str = "Not Found") -> None:
        super().__init__(404, "not_found", message)


class ValidationFailed(HTTPError):  # noqa: N818
    """400 — request data did not satisfy a validation schema."""

    def __init__(self, details: Any = None) -> None:
        super().__init__(400, "validation_failed", "Request validation failed", details)
