"""Message board — a JSON API bound entirely from one specification.

Demonstrates resource controllers, a ``:message_id`` parameter handler that
loads the message once per request, validated pipelines, a custom resource
action, per-verb ``before`` middleware and ``use`` mounted middleware.

Run:
    cd examples/messageboard && PYTHONPATH=. routespec routes app:app
"""

import itertools
import threading
from dataclasses import asdict, dataclass, replace

from routespec import (
    ActionDefinition,
    App,
    AppConfig,
    HTTPError,
    NotFound,
    Pipeline,
    ResourceController,
    Response,
    g,
)
from routespec.validation import max_length, required

ADMIN_TOKEN = "let-me-in"


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    author: str
    body: str
    likes: int = 0
    pinned: bool = False


class MessageStore:
    """In-memory storage (thread-safe for free-threading)."""

    def __init__(self) -> None:
        self._messages: dict[int, Message] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def add(self, author: str, body: str) -> Message:
        with self._lock:
            message = Message(next(self._ids), author, body)
            self._messages[message.id] = message
            return message

    def get(self, message_id: int) -> Message | None:
        return self._messages.get(message_id)

    def save(self, message: Message) -> Message:
        with self._lock:
            self._messages[message.id] = message
            return message

    def remove(self, message_id: int) -> None:
        with self._lock:
            self._messages.pop(message_id, None)

    def all(self) -> list[Message]:
        with self._lock:
            return sorted(self._messages.values(), key=lambda m: (not m.pinned, m.id))


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


async def request_id(request, next):
    response = await next(request)
    return response.with_header("X-Board", "messageboard")


async def require_token(request, next):
    if request.headers.get("authorization") != f"Bearer {ADMIN_TOKEN}":
        raise HTTPError(401, "unauthorized", "Admin token required")
    return await next(request)


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------


class Messages(ResourceController):
    resource_id = "message_id"

    def __init__(self, store: MessageStore) -> None:
        self.store = store

    @property
    def actions(self):
        return {**super().actions, "like": ActionDefinition("post", "like", "/:rcId/like")}

    def load(self):
        async def load_message(request, next, value):
            message = self.store.get(int(value)) if value.isdigit() else None
            if message is None:
                raise NotFound(f"message {value} not found")
            g.message = message
            return await next(request)

        return load_message

    def create(self, ctx):
        async def post_message(request):
            data = await request.data()
            message = self.store.add(data["author"].strip(), data["body"].strip())
            return asdict(message), 201

        return Pipeline(
            validate={"author": [required, max_length(30)], "body": [required, max_length(280)]},
            execute=post_message,
        )

    def get_all(self, ctx):
        page_size = (ctx.options or {}).get("page_size", 50)

        def list_messages(request, next):
            page = request.query.get_int("page", 1) or 1
            start = (max(page, 1) - 1) * page_size
            messages = self.store.all()
            return {
                "data": [asdict(m) for m in messages[start : start + page_size]],
                "meta": {"page": page, "total": len(messages)},
            }

        return list_messages

    def get_one(self, ctx):
        return lambda request, next: asdict(g.message)

    def count(self, ctx):
        return lambda request, next: {"count": len(self.store.all())}

    def delete(self, ctx):
        def remove(request):
            self.store.remove(g.message.id)
            return Response("", status=204)

        return {"execute": remove}

    def like(self, ctx):
        def like_message(request):
            return asdict(self.store.save(replace(g.message, likes=g.message.likes + 1)))

        return Pipeline(execute=like_message)

    def pin(self, ctx):
        def pin_message(request, next):
            return asdict(self.store.save(replace(g.message, pinned=True)))

        return pin_message

    def unpin(self, ctx):
        def unpin_message(request, next):
            return asdict(self.store.save(replace(g.message, pinned=False)))

        return unpin_message


class Health:
    def __call__(self, ctx):
        return lambda request, next: {"status": "ok"}


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

store = MessageStore()
app = App(
    {"messages": Messages(store), "health": Health()},
    AppConfig(base_path="/api"),
)

app.add_parameter(":message_id", {"action": "messages@load"})
app.add_specification(
    {
        "use": [request_id],
        "/health": {"get": {"action": "health"}},
        "/messages": {
            "resource": {
                "controller": "messages",
                "deny": ["update"],
                "options": {"page_size": 20},
            },
            "/:message_id/pin": {
                "post": {"before": [require_token], "action": "messages@pin"},
                "delete": {"before": [require_token], "action": "messages@unpin"},
            },
        },
    }
)
