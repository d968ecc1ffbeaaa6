"""
Controller Engine - the compiled per-route request handler.

Each route gets one PipelineExecutor. Per request it runs, in strict
order: guards, parameter resolution through pipes, the handler call,
and response completion. Errors raised while resolving parameters or
running the handler go to the route's exception filters.
"""

from typing import Any, Callable, List, Mapping, Sequence, Tuple
import inspect
import logging

from ..middleware import Next
from ..request import Request
from ..response import Response
from .context import ExceptionContext, ExecutionContext, ExceptionFilter, Guard, Pipe
from .metadata import ParamDescriptor, ParamSource, PipeMeta
from .results import JsonBody, to_result


FORBIDDEN_BODY = {"status": "forbidden"}

logger = logging.getLogger("trellis.controller.engine")


class PipelineExecutor:
    """
    Compiled request handler for one controller route.

    Attributes:
        instance: Singleton controller instance
        handler_name: Name of the bound controller method
        params: Parameter descriptors sorted by ascending index
        guards: Guards in declared order
        pipes: Pipes in declared order, applied to every parameter
        filters: Exception filters in declared order
    """

    def __init__(
        self,
        instance: Any,
        handler_name: str,
        params: Sequence[ParamDescriptor] = (),
        guards: Sequence[Guard] = (),
        pipes: Sequence[Pipe] = (),
        filters: Sequence[ExceptionFilter] = (),
    ):
        self.instance = instance
        self.handler_name = handler_name
        self.handler: Callable[..., Any] = getattr(instance, handler_name)
        self.params: Tuple[ParamDescriptor, ...] = tuple(sorted(params, key=lambda p: p.index))
        self.guards: Tuple[Guard, ...] = tuple(guards)
        self.pipes: Tuple[Pipe, ...] = tuple(pipes)
        self.filters: Tuple[ExceptionFilter, ...] = tuple(filters)

    @property
    def qualname(self) -> str:
        return f"{type(self.instance).__name__}.{self.handler_name}"

    async def __call__(self, request: Request, response: Response, next: Next) -> None:
        # Stage 1: guards (errors here are not filtered)
        if not await self._run_guards(request, response):
            logger.debug(f"{self.qualname}: rejected by guard")
            response.set_status(403).send_json(FORBIDDEN_BODY)
            return

        try:
            # Stage 2: parameters and pipes
            args = await self._resolve_params(request)

            # Stage 3: handler
            result = await self._safe_call(self.handler, *args, request, response, next)
        except Exception as e:
            await self._handle_error(e, request, response, next)
            return

        # Stage 4: response completion
        result = to_result(result)
        if isinstance(result, JsonBody) and not response.already_sent:
            response.send_json(result.value, 200)

    # ========================================================================
    # Stages
    # ========================================================================

    async def _run_guards(self, request: Request, response: Response) -> bool:
        if not self.guards:
            return True

        ctx = ExecutionContext(request=request, response=response)
        for guard in self.guards:
            if not await self._safe_call(guard, ctx):
                return False
        return True

    async def _resolve_params(self, request: Request) -> List[Any]:
        """
        Resolved arguments, each in its declared positional slot.

        Slots without a descriptor are None.
        """
        if not self.params:
            return []

        args: List[Any] = [None] * (self.params[-1].index + 1)
        for descriptor in self.params:
            value = self._extract(request, descriptor)
            meta = PipeMeta(source=descriptor.source, key=descriptor.key)
            for pipe in self.pipes:
                value = await self._safe_call(pipe, value, meta)
            args[descriptor.index] = value
        return args

    @staticmethod
    def _extract(request: Request, descriptor: ParamDescriptor) -> Any:
        if descriptor.source is ParamSource.BODY:
            source = request.body
        elif descriptor.source is ParamSource.QUERY:
            source = request.query
        else:
            source = request.params

        if descriptor.key is None:
            return source
        if isinstance(source, Mapping):
            return source.get(descriptor.key)
        return None

    async def _handle_error(
        self,
        error: Exception,
        request: Request,
        response: Response,
        next: Next,
    ) -> None:
        """
        Offer error to each filter in order until one sends a response.

        Raises:
            The original error when no filter responded
        """
        if self.filters:
            ctx = ExceptionContext(request=request, response=response, next=next)
            for exception_filter in self.filters:
                await self._safe_call(exception_filter, error, ctx)
                if response.already_sent:
                    logger.debug(
                        f"{self.qualname}: {type(error).__name__} handled by "
                        f"{getattr(exception_filter, '__name__', exception_filter)!r}"
                    )
                    return

        logger.error(
            f"Error executing {self.qualname}: {error}",
            exc_info=(type(error), error, error.__traceback__),
        )
        raise error

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _safe_call(self, func: Any, *args) -> Any:
        """Safely call function (sync or async)."""
        result = func(*args)
        if inspect.isawaitable(result):
            return await result
        return result

    def __repr__(self) -> str:
        return (
            f"<PipelineExecutor {self.qualname} guards={len(self.guards)} "
            f"params={len(self.params)} pipes={len(self.pipes)} filters={len(self.filters)}>"
        )
