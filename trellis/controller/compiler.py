"""
Controller Compiler - turns controller metadata into live routes.

For each controller the compiler resolves a singleton instance from the
DI container, reads its prefix and routes from the metadata registry,
computes each route's full path and registers one PipelineExecutor per
route with the transport router.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from ..di.core import Container
from ..router import Router
from .engine import PipelineExecutor
from .metadata import HttpMethod, MetadataError
from .paths import join_paths
from .registry import MetadataRegistry, metadata


logger = logging.getLogger("trellis.controller.compiler")


@dataclass
class CompiledRoute:
    """A compiled controller route bound to its executor."""

    controller_class: type
    handler_name: str
    http_method: HttpMethod
    full_path: str
    executor: PipelineExecutor
    middlewares: Tuple[Callable[..., Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for introspection."""
        return {
            "controller": f"{self.controller_class.__module__}:{self.controller_class.__name__}",
            "route_name": self.handler_name,
            "path": self.full_path,
            "method": self.http_method.value,
            "middlewares": len(self.middlewares),
        }


class RouteCompiler:
    """
    Compiles controllers into router registrations.

    Example:
        compiler = RouteCompiler(container)
        routes = compiler.compile([AuthController], router, global_prefix="/api")
    """

    def __init__(self, container: Container, registry: Optional[MetadataRegistry] = None):
        self.container = container
        self.registry = registry if registry is not None else metadata
        self.compiled_routes: List[CompiledRoute] = []

    def compile(
        self,
        controllers: Iterable[type],
        router: Router,
        global_prefix: str = "/api",
    ) -> List[CompiledRoute]:
        """
        Compile and register every route of every controller.

        Routes are registered in controller-then-route declaration order;
        an identical (method, path) registered later shadows the earlier one.

        Raises:
            MetadataError: If a class was never declared as a controller
            DIError: If a controller or one of its dependencies cannot be built
        """
        compiled: List[CompiledRoute] = []
        for controller_class in controllers:
            compiled.extend(self.compile_controller(controller_class, router, global_prefix))

        self.compiled_routes.extend(compiled)
        logger.info(
            f"Compiled {len(compiled)} route(s) from "
            f"{len({r.controller_class for r in compiled})} controller(s)"
        )
        return compiled

    def compile_controller(
        self,
        controller_class: type,
        router: Router,
        global_prefix: str = "/api",
    ) -> List[CompiledRoute]:
        """Compile a single controller class."""
        if not self.registry.is_controller(controller_class):
            raise MetadataError(
                f"{controller_class.__name__} is not a controller; decorate it with @controller"
            )

        # Construction failures are fatal startup errors
        instance = self.container.resolve(controller_class)
        descriptor = self.registry.get_controller(controller_class)

        compiled: List[CompiledRoute] = []
        for route in descriptor.routes:
            compiled_route = self._compile_route(
                controller_class, instance, descriptor.prefix, route, global_prefix
            )
            router.register(
                compiled_route.http_method.value,
                compiled_route.full_path,
                *compiled_route.middlewares,
                compiled_route.executor,
            )
            logger.debug(
                f"{compiled_route.http_method.value} {compiled_route.full_path or '/'} -> "
                f"{controller_class.__name__}.{route.handler_name}"
            )
            compiled.append(compiled_route)
        return compiled

    def _compile_route(self, controller_class, instance, prefix, route, global_prefix) -> CompiledRoute:
        handler_name = route.handler_name
        executor = PipelineExecutor(
            instance,
            handler_name,
            params=self.registry.get_params(controller_class, handler_name),
            guards=self.registry.get_guards(controller_class, handler_name),
            pipes=self.registry.get_pipes(controller_class, handler_name),
            filters=self.registry.get_filters(controller_class, handler_name),
        )
        return CompiledRoute(
            controller_class=controller_class,
            handler_name=handler_name,
            http_method=route.http_method,
            full_path=join_paths(global_prefix, prefix, route.path),
            executor=executor,
            middlewares=self.registry.get_middlewares(controller_class, handler_name),
        )
