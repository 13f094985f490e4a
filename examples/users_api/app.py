"""Users API: JSON routes, path params and a typed auth environment.

Demonstrates:
- An ``Env`` subclass as the per-request variables container
- Middleware that fills it in and declares the dependency with ``@requires``
- A guard middleware that short-circuits with 401
- Custom not-found and error handlers

Run:
    cd examples/users_api && python app.py
"""

import itertools
import threading
from typing import Any

from aim import App, Context, Env, HTTPError, Next, requires


class AuthEnv(Env):
    user_id: str | None = None


app = App(env_factory=AuthEnv)

_users: dict[int, dict[str, Any]] = {}
_ids = itertools.count(1)
_lock = threading.Lock()


@requires(AuthEnv)
async def authenticate(c: Context[AuthEnv], next: Next) -> None:
    """Trust an ``Authorization: Bearer <user>`` header (demo only)."""
    header = c.headers.get("authorization", "")
    if header.startswith("Bearer "):
        c.variables.user_id = header.removeprefix("Bearer ")
    await next()


async def require_user(c: Context[AuthEnv], next: Next) -> None:
    if c.variables.user_id is None and c.method != "GET":
        c.json({"error": "unauthorized"}, status=401)
        return
    await next()


app.use(authenticate)
app.use(require_user)


@app.get("/ping")
def ping(c: Context[AuthEnv]):
    return c.text("pong")


@app.get("/users")
def list_users(c: Context[AuthEnv]):
    limit = int(c.query_param("limit", "20"))
    with _lock:
        users = list(_users.values())[:limit]
    return c.json({"data": users, "total": len(_users)})


@app.post("/users")
async def create_user(c: Context[AuthEnv]):
    body = await c.json_body()
    if not isinstance(body, dict) or not body.get("name"):
        raise HTTPError(422, "name is required")
    with _lock:
        user = {"id": next(_ids), **body, "created_by": c.variables.user_id}
        _users[user["id"]] = user
    return c.json(user, status=201)


@app.get("/users/:id")
def get_user(c: Context[AuthEnv]):
    user = _users.get(int(c.param("id")))
    if user is None:
        return c.json({"error": "no such user"}, status=404)
    return c.json(user)


@app.delete("/users/:id")
def delete_user(c: Context[AuthEnv]):
    with _lock:
        _users.pop(int(c.param("id")), None)
    return c.empty()


@app.not_found
def not_found(c: Context[AuthEnv]):
    return c.json({"error": "not found", "path": c.path}, status=404)


@app.on_error
def on_error(exc: Exception, c: Context[AuthEnv]):
    status = exc.status if isinstance(exc, HTTPError) else 500
    detail = exc.detail if isinstance(exc, HTTPError) else "internal error"
    return c.json({"error": detail}, status=status)


if __name__ == "__main__":
    app.run()
