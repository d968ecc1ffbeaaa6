"""
TrellisServer - bootstraps settings, the DI container, route compilation
and the ASGI application.
"""

from typing import Any, Iterable, List, Optional, Sequence
import logging

import uvicorn

from .asgi import TrellisApp
from .config import Settings
from .controller.compiler import CompiledRoute, RouteCompiler
from .controller.registry import MetadataRegistry
from .di.core import Container, container as default_container
from .middleware import Middleware, MiddlewareStack
from .router import Router


class TrellisServer:
    """
    Main server object.

    Compiles every controller at construction time, so DI and metadata
    errors stop the process before it starts serving.

    Example:
        server = TrellisServer([HealthController, AuthController])
        server.run()
    """

    def __init__(
        self,
        controllers: Iterable[type],
        settings: Optional[Settings] = None,
        *,
        global_prefix: Optional[str] = None,
        container: Optional[Container] = None,
        registry: Optional[MetadataRegistry] = None,
        middlewares: Sequence[Middleware] = (),
    ):
        """
        Args:
            controllers: Controller classes, compiled in the given order
            settings: Startup settings (default: Settings.from_env())
            global_prefix: Overrides settings.global_prefix
            container: DI container (default: the process-wide one)
            registry: Metadata registry (default: the process-wide one)
            middlewares: Application-wide middlewares, run before routing
        """
        self.logger = logging.getLogger("trellis.server")
        self.settings = settings if settings is not None else Settings.from_env()
        self.container = container if container is not None else default_container
        self.global_prefix = (
            global_prefix if global_prefix is not None else self.settings.global_prefix
        )
        self.controllers: List[type] = list(controllers)

        # Services may depend on Settings
        if not self.container.has(Settings):
            self.container.register_instance(Settings, self.settings)

        self.router = Router()
        self.middleware_stack = MiddlewareStack()
        for middleware in middlewares:
            self.middleware_stack.add(middleware)

        self.compiler = RouteCompiler(self.container, registry)
        self.routes: List[CompiledRoute] = self.compiler.compile(
            self.controllers, self.router, self.global_prefix
        )
        self.app = TrellisApp(self.router, self.middleware_stack)

        self.logger.info(
            f"Server ready: {len(self.router)} route(s), mode={self.settings.mode}"
        )

    def use(self, middleware: Middleware, name: Optional[str] = None) -> "TrellisServer":
        """Add an application-wide middleware."""
        self.middleware_stack.add(middleware, name)
        return self

    def get_asgi_app(self) -> TrellisApp:
        """Get the ASGI application for external servers."""
        return self.app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        """ASGI entry point, so "module:server" import strings work with uvicorn."""
        await self.app(scope, receive, send)

    def run(
        self,
        host: str = "127.0.0.1",
        port: Optional[int] = None,
        reload: bool = False,
        log_level: str = "info",
        *,
        import_string: Optional[str] = None,
        factory: bool = False,
        app_dir: Optional[str] = None,
    ) -> None:
        """
        Run the server with uvicorn.

        Args:
            host: Host to bind to
            port: Port to bind to (default: settings.port)
            reload: Enable auto-reload (requires import_string)
            log_level: Logging level
            import_string: "module:attr" naming this server or its factory
            factory: Whether import_string names a factory
            app_dir: Directory uvicorn adds to sys.path before importing

        Raises:
            ValueError: If reload is requested without an import string
        """
        if reload and not import_string:
            raise ValueError("reload=True requires import_string (\"module:attr\")")

        logging.basicConfig(
            level=getattr(logging, log_level.upper()),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )

        port = port if port is not None else self.settings.port
        self.logger.info(f"Starting uvicorn server on {host}:{port}")

        if import_string:
            # Reload workers re-import the application themselves
            uvicorn.run(
                import_string,
                host=host,
                port=port,
                reload=reload,
                log_level=log_level,
                factory=factory,
                app_dir=app_dir,
            )
        else:
            uvicorn.run(
                self.app,
                host=host,
                port=port,
                log_level=log_level,
            )

    def __repr__(self) -> str:
        return f"<TrellisServer controllers={len(self.controllers)} routes={len(self.routes)}>"
