"""
End-to-end requests through TrellisServer and the ASGI adapter.
"""

import pytest

from trellis import (
    GET,
    POST,
    BadRequest,
    Body,
    Param,
    PayloadTooLarge,
    Query,
    Settings,
    TrellisApp,
    TrellisServer,
    UseFilters,
    UseGuards,
    UseMiddleware,
    UsePipes,
    controller,
    injectable,
)
from trellis.request import parse_json_body
from trellis.router import Router

from tests.conftest import client_for


def make_server(controllers, di_container, **kwargs):
    settings = kwargs.pop("settings", Settings())
    return TrellisServer(controllers, settings, container=di_container, **kwargs)


def upper(value, meta):
    return value.upper() if isinstance(value, str) else value


class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_auto_serialized_json(self, di_container):
        @controller("health")
        class HealthController:
            @GET()
            def health(self, req, res, next):
                return {"ok": True}

        server = make_server([HealthController], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/health")

        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert resp.headers["content-type"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_body_query_and_path_params(self, di_container):
        @controller("users")
        class UsersController:
            @POST(":id")
            @Param(0, "id")
            @Query(1, "verbose")
            @Body(2, "name")
            @UsePipes(upper)
            async def update(self, user_id, verbose, name, req, res, next):
                return {"id": user_id, "verbose": verbose, "name": name}

        server = make_server([UsersController], di_container)
        async with client_for(server.app) as client:
            resp = await client.post("/api/users/ab?verbose=yes", json={"name": "ann"})

        assert resp.json() == {"id": "AB", "verbose": "YES", "name": "ANN"}

    @pytest.mark.asyncio
    async def test_guard_rejection(self, di_container):
        @controller("admin")
        class AdminController:
            @GET()
            @UseGuards(lambda ctx: ctx.request.header("x-role") == "admin")
            def index(self, req, res, next):
                return {"secret": 1}

        server = make_server([AdminController], di_container)
        async with client_for(server.app) as client:
            denied = await client.get("/api/admin")
            allowed = await client.get("/api/admin", headers={"X-Role": "admin"})

        assert denied.status_code == 403
        assert denied.json() == {"status": "forbidden"}
        assert allowed.json() == {"secret": 1}

    @pytest.mark.asyncio
    async def test_unmatched_route_is_404(self, di_container):
        server = make_server([], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/nothing")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    @pytest.mark.asyncio
    async def test_invalid_json_is_400(self, di_container):
        @controller("echo")
        class EchoController:
            @POST()
            def echo(self, req, res, next):
                return req.body

        server = make_server([EchoController], di_container)
        async with client_for(server.app) as client:
            resp = await client.post(
                "/api/echo", content=b"{broken", headers={"content-type": "application/json"}
            )

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_JSON"

    @pytest.mark.asyncio
    async def test_unhandled_error_is_500(self, di_container):
        @controller("boom")
        class BoomController:
            @GET()
            def boom(self, req, res, next):
                raise RuntimeError("kaboom")

        server = make_server([BoomController], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/boom")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error"}

    @pytest.mark.asyncio
    async def test_filter_exhaustion_falls_back_to_500(self, di_container, calls):
        def quiet(error, ctx):
            calls.append("quiet")

        @controller("quiet")
        class QuietController:
            @GET()
            @UseFilters(quiet)
            def boom(self, req, res, next):
                raise RuntimeError("kaboom")

        server = make_server([QuietController], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/quiet")

        assert calls == ["quiet"]
        assert resp.status_code == 500

    @pytest.mark.asyncio
    async def test_filter_response(self, di_container):
        def bad_request(error, ctx):
            if isinstance(error, ValueError):
                ctx.response.set_status(400).send_json({"error": str(error)})

        @controller("validate")
        class ValidateController:
            @POST()
            @Body(0, "age")
            @UseFilters(bad_request)
            def check(self, age, req, res, next):
                if not isinstance(age, int):
                    raise ValueError("age must be an integer")
                return {"age": age}

        server = make_server([ValidateController], di_container)
        async with client_for(server.app) as client:
            bad = await client.post("/api/validate", json={"age": "x"})
            good = await client.post("/api/validate", json={"age": 3})

        assert bad.status_code == 400
        assert bad.json() == {"error": "age must be an integer"}
        assert good.json() == {"age": 3}

    @pytest.mark.asyncio
    async def test_public_fault_keeps_its_status(self, di_container):
        @controller("fault")
        class FaultController:
            @GET()
            def fault(self, req, res, next):
                raise BadRequest("missing field")

        server = make_server([FaultController], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/fault")

        assert resp.status_code == 400
        assert resp.json() == {"error": {"code": "BAD_REQUEST", "message": "missing field"}}

    @pytest.mark.asyncio
    async def test_no_response_fallback(self, di_container):
        @controller("silent")
        class SilentController:
            @GET()
            def silent(self, req, res, next):
                return None

        server = make_server([SilentController], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/silent")

        assert resp.status_code == 500
        assert resp.json() == {"error": "No response sent"}

    @pytest.mark.asyncio
    async def test_handler_next_falls_through_to_404(self, di_container):
        @controller("skip")
        class SkipController:
            @GET()
            async def skip(self, req, res, next):
                await next()

        server = make_server([SkipController], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/skip")

        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_route_and_app_middlewares(self, di_container, calls):
        def app_mw(req, res, next):
            calls.append("app")
            req.state["seen"] = True
            return next()

        async def route_mw(req, res, next):
            calls.append("route")
            res.set_header("x-route", "yes")
            await next()

        @controller("mw")
        class MwController:
            @GET()
            @UseMiddleware(route_mw)
            def index(self, req, res, next):
                calls.append("handler")
                return {"seen": req.state.get("seen")}

        server = make_server([MwController], di_container, middlewares=[app_mw])
        async with client_for(server.app) as client:
            resp = await client.get("/api/mw")

        assert calls == ["app", "route", "handler"]
        assert resp.headers["x-route"] == "yes"
        assert resp.json() == {"seen": True}

    @pytest.mark.asyncio
    async def test_singletons_shared_across_requests(self, di_container):
        @injectable()
        class Counter:
            def __init__(self):
                self.value = 0

        @controller("count", deps=[Counter])
        class CountController:
            def __init__(self, counter):
                self.counter = counter

            @POST()
            def bump(self, req, res, next):
                self.counter.value += 1
                return {"value": self.counter.value}

        server = make_server([CountController], di_container)
        async with client_for(server.app) as client:
            await client.post("/api/count")
            resp = await client.post("/api/count")

        assert resp.json() == {"value": 2}
        assert di_container.resolve(Counter).value == 2

    @pytest.mark.asyncio
    async def test_settings_are_injectable(self, di_container):
        @controller("cfg", deps=[Settings])
        class ConfigController:
            def __init__(self, settings):
                self.settings = settings

            @GET()
            def mode(self, req, res, next):
                return {"mode": self.settings.mode}

        settings = Settings(mode="production", global_prefix="/v1")
        server = make_server([ConfigController], di_container, settings=settings)
        async with client_for(server.app) as client:
            resp = await client.get("/v1/cfg")

        assert resp.json() == {"mode": "production"}

    @pytest.mark.asyncio
    async def test_global_prefix_override(self, di_container):
        @controller("p")
        class PrefixController:
            @GET()
            def index(self, req, res, next):
                return {"ok": True}

        server = make_server([PrefixController], di_container, global_prefix="")
        async with client_for(server.app) as client:
            resp = await client.get("/p")

        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_path_param_decoded_once(self, di_container):
        @controller("files")
        class FilesController:
            @GET(":name")
            @Param(0, "name")
            def show(self, name, req, res, next):
                return {"name": name}

        server = make_server([FilesController], di_container)
        async with client_for(server.app) as client:
            resp = await client.get("/api/files/100%2525")

        assert resp.json() == {"name": "100%25"}


class TestRequestBody:

    @staticmethod
    def echo_server(di_container):
        @controller("echo")
        class EchoController:
            @POST()
            def echo(self, req, res, next):
                return {"body": req.body}

        return make_server([EchoController], di_container)

    @pytest.mark.asyncio
    async def test_body_without_content_type_is_not_parsed(self, di_container):
        server = self.echo_server(di_container)
        async with client_for(server.app) as client:
            plain = await client.post("/api/echo", content=b"hello")
            json_looking = await client.post("/api/echo", content=b'{"a": 1}')

        assert plain.status_code == 200
        assert plain.json() == {"body": {}}
        assert json_looking.json() == {"body": {}}

    @pytest.mark.asyncio
    async def test_non_json_content_type_is_not_parsed(self, di_container):
        server = self.echo_server(di_container)
        async with client_for(server.app) as client:
            resp = await client.post(
                "/api/echo", content=b"a=1", headers={"content-type": "text/plain"}
            )

        assert resp.status_code == 200
        assert resp.json() == {"body": {}}

    def test_parse_json_body_needs_content_type(self):
        assert parse_json_body(b"hello") == {}
        assert parse_json_body(b'{"a": 1}', None) == {}
        assert parse_json_body(b'{"a": 1}', "application/json; charset=utf-8") == {"a": 1}

    @pytest.mark.asyncio
    async def test_oversized_body_is_413(self, di_container):
        server = self.echo_server(di_container)
        server.app.max_body_size = 10
        async with client_for(server.app) as client:
            small = await client.post("/api/echo", json={"a": 1})
            large = await client.post("/api/echo", json={"text": "x" * 100})

        assert small.json() == {"body": {"a": 1}}
        assert large.status_code == 413
        assert large.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"

    @pytest.mark.asyncio
    async def test_reading_stops_once_limit_exceeded(self):
        received = 0

        async def receive():
            nonlocal received
            received += 1
            return {"type": "http.request", "body": b"x" * 4, "more_body": True}

        with pytest.raises(PayloadTooLarge):
            await TrellisApp._read_body(receive, max_size=10)

        assert received == 3

    @pytest.mark.asyncio
    async def test_limit_rejects_before_dispatch(self):
        chunks = [
            {"type": "http.request", "body": b"x" * 8, "more_body": True},
            {"type": "http.request", "body": b"x" * 8, "more_body": True},
            {"type": "http.request", "body": b"x" * 8, "more_body": False},
        ]
        sent = []

        async def receive():
            return chunks.pop(0)

        async def send(message):
            sent.append(message)

        app = TrellisApp(Router(), max_body_size=10)
        scope = {"type": "http", "method": "POST", "path": "/", "headers": [], "query_string": b""}
        await app(scope, receive, send)

        assert sent[0]["status"] == 413
        assert len(chunks) == 1


class TestLifespan:

    @pytest.mark.asyncio
    async def test_lifespan_acknowledged(self):
        app = TrellisApp(Router())
        messages = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent = []

        async def receive():
            return messages.pop(0)

        async def send(message):
            sent.append(message["type"])

        await app({"type": "lifespan"}, receive, send)
        assert sent == ["lifespan.startup.complete", "lifespan.shutdown.complete"]
