# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import asyncio
import functools
import inspect
import logging
import sys

from typing import Any, Callable, Dict, Mapping, Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from deferred_functions import _function_registry
from deferred_functions.exceptions import (
    DeferredFunctionsException,
    InvalidResponseException,
    InvalidTargetException,
)

_FUNCTION_STATUS_HEADER_FIELD = "X-Google-Status"
_CRASH = "crash"

_HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]

HTTPFunction = Callable[[Dict[str, Any]], Any]

logger = logging.getLogger(__name__)


def http(func: HTTPFunction) -> HTTPFunction:
    """Decorator that registers a handler to be served by the host."""
    _function_registry.register_function(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            return await func(*args, **kwargs)

        return async_wrapper

    return wrapper


def setup_logging():
    logging.getLogger().setLevel(logging.INFO)
    info_handler = logging.StreamHandler(sys.stdout)
    info_handler.setLevel(logging.NOTSET)
    info_handler.addFilter(lambda record: record.levelno <= logging.INFO)
    logging.getLogger().addHandler(info_handler)

    warn_handler = logging.StreamHandler(sys.stderr)
    warn_handler.setLevel(logging.WARNING)
    logging.getLogger().addHandler(warn_handler)


async def _request_to_event(request: Request) -> Dict[str, Any]:
    """Converts a Starlette request into the platform event handed to a handler.

    The entire body is read before the handler runs, to avoid connection
    errors when the handler returns before the client finished sending.
    """
    body = await request.body()
    return {
        "httpMethod": request.method,
        "path": request.url.path,
        "headers": dict(request.headers),
        "queryStringParameters": dict(request.query_params) or None,
        "body": body.decode("utf-8", errors="replace") if body else None,
    }


def _result_to_response(result: Any) -> Response:
    if isinstance(result, Response):
        return result
    if not isinstance(result, Mapping) or not isinstance(
        result.get("statusCode"), int
    ):
        raise InvalidResponseException(
            "Function must return a mapping with an integer statusCode, "
            f"got: {result!r}"
        )
    body = result.get("body")
    return PlainTextResponse(
        "" if body is None else str(body),
        status_code=result["statusCode"],
        headers=result.get("headers"),
    )


def _make_endpoint(name: str, function: Callable):
    # The served callable decides, not the registry entry of the same name.
    is_async = inspect.iscoroutinefunction(function)

    async def endpoint(request: Request) -> Response:
        event = await _request_to_event(request)

        if is_async:
            # Awaited on the server's loop, so detached tasks the handler
            # spawns keep running there after the response is sent.
            result = await function(event)
        else:
            loop = asyncio.get_event_loop()
            result = await loop.run_in_executor(None, function, event)

        return _result_to_response(result)

    endpoint.__name__ = name
    return endpoint


async def crash_handler(request: Request, exc: Exception) -> Response:
    """
    Return crash header to allow logging 'crash' message in logs.
    """
    logger.error("Function execution failed: %s", exc, exc_info=exc)
    return PlainTextResponse(
        str(exc), status_code=500, headers={_FUNCTION_STATUS_HEADER_FIELD: _CRASH}
    )


def create_asgi_app(
    target: Optional[str] = None,
    functions: Optional[Mapping[str, HTTPFunction]] = None,
) -> Starlette:
    """Create a Starlette ASGI application serving the handlers.

    Args:
        target: Name of the handler also mounted at ``/``. Falls back to the
            FUNCTION_TARGET environment variable; when neither is set only the
            per-handler routes exist.
        functions: Handlers to serve, keyed by name. Defaults to every handler
            registered with the ``http`` decorator.

    Returns:
        A Starlette ASGI application instance

    Raises:
        InvalidTargetException: If the target is not one of the handlers
    """
    if functions is None:
        # Importing the module registers its entry points.
        from deferred_functions import handlers  # noqa: F401

        functions = dict(_function_registry.REGISTRY_MAP)

    target = _function_registry.get_function_target(target)

    routes = []
    if target is not None:
        function = _function_registry.get_user_function(target, functions)
        routes.append(
            Route("/", _make_endpoint(target, function), methods=_HTTP_METHODS)
        )

    for name, function in functions.items():
        routes.append(
            Route(f"/{name}", _make_endpoint(name, function), methods=_HTTP_METHODS)
        )

    # Every exception escaping a handler is answered by crash_handler.
    app = Starlette(
        routes=routes,
        exception_handlers={Exception: crash_handler},
    )
    return app


__all__ = [
    "DeferredFunctionsException",
    "InvalidTargetException",
    "create_asgi_app",
    "http",
    "setup_logging",
]
