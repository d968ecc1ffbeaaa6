"""
Route compilation: DI-resolved controllers registered with the router.
"""

import pytest

from trellis.controller import (
    GET,
    POST,
    Body,
    HttpMethod,
    MetadataError,
    RouteCompiler,
    UseMiddleware,
    controller,
)
from trellis.di import NotInjectableError, injectable
from trellis.response import Response
from trellis.router import Router

from tests.conftest import make_request, run_handler


class TestRouteCompiler:

    def test_full_paths_and_order(self, di_container):
        @controller("auth")
        class AuthController:
            @POST("login")
            def login(self, req, res, next):
                return {}

            @GET("/me/")
            def me(self, req, res, next):
                return {}

        @controller()
        class HealthController:
            @GET("health")
            def health(self, req, res, next):
                return {}

        router = Router()
        compiled = RouteCompiler(di_container).compile(
            [AuthController, HealthController], router, "/api"
        )

        assert [(r.http_method, r.full_path) for r in compiled] == [
            (HttpMethod.POST, "/api/auth/login"),
            (HttpMethod.GET, "/api/auth/me"),
            (HttpMethod.GET, "/api/health"),
        ]
        assert router.routes() == [
            ("POST", "/api/auth/login"),
            ("GET", "/api/auth/me"),
            ("GET", "/api/health"),
        ]

    def test_controller_instance_is_container_singleton(self, di_container):
        @injectable()
        class TokenService:
            pass

        @controller("tokens", deps=[TokenService])
        class TokenController:
            def __init__(self, tokens):
                self.tokens = tokens

            @GET()
            def index(self, req, res, next):
                return {}

        compiled = RouteCompiler(di_container).compile([TokenController], Router())

        instance = compiled[0].executor.instance
        assert instance is di_container.resolve(TokenController)
        assert instance.tokens is di_container.resolve(TokenService)

    def test_not_injectable_dependency_is_fatal(self, di_container, calls):
        class Missing:
            pass

        @controller("x", deps=[Missing])
        class Broken:
            def __init__(self, missing):
                calls.append("constructed")

            @GET()
            def index(self, req, res, next):
                return {}

        router = Router()
        with pytest.raises(NotInjectableError):
            RouteCompiler(di_container).compile([Broken], router)
        assert calls == []
        assert len(router) == 0

    def test_non_controller_rejected(self, di_container):
        class Plain:
            pass

        with pytest.raises(MetadataError):
            RouteCompiler(di_container).compile([Plain], Router())

    def test_middlewares_registered_before_executor(self, di_container):
        def audit(req, res, next):
            return next()

        @controller("m")
        class MwController:
            @GET()
            @UseMiddleware(audit)
            def index(self, req, res, next):
                return {}

        router = Router()
        compiled = RouteCompiler(di_container).compile([MwController], router, "")

        handlers = router.match("GET", "/m").entry.handlers
        assert handlers == (audit, compiled[0].executor)

    @pytest.mark.asyncio
    async def test_route_collision_last_wins(self, di_container):
        @controller("dup")
        class First:
            @GET()
            def index(self, req, res, next):
                return {"from": "first"}

        @controller("dup")
        class Second:
            @GET()
            def index(self, req, res, next):
                return {"from": "second"}

        router = Router()
        RouteCompiler(di_container).compile([First, Second], router, "/api")

        entry = router.match("GET", "/api/dup").entry
        response = await run_handler(entry.handlers[-1], make_request("GET", "/api/dup"))
        assert response.json() == {"from": "second"}

    @pytest.mark.asyncio
    async def test_compiled_executor_reads_metadata(self, di_container):
        @controller("echo")
        class EchoController:
            @POST()
            @Body(0, "text")
            def echo(self, text, req, res, next):
                return {"text": text}

        compiled = RouteCompiler(di_container).compile([EchoController], Router())
        response = Response()
        await run_handler(
            compiled[0].executor, make_request("POST", body={"text": "hi"}), response
        )
        assert response.json() == {"text": "hi"}

    def test_to_dict(self, di_container):
        @controller("d")
        class DictController:
            @GET("x")
            def x(self, req, res, next):
                return {}

        route = RouteCompiler(di_container).compile([DictController], Router())[0]
        assert route.to_dict()["path"] == "/api/d/x"
        assert route.to_dict()["method"] == "GET"
