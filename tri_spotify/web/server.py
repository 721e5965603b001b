"""
The HTTP ingress: a single ``POST /dl`` endpoint served by aiohttp.
"""

import json
import logging

from aiohttp import web
from pydantic import ValidationError
from rich.markup import escape

from tri_spotify.core.service import ServiceRuntime
from tri_spotify.exceptions import InvalidRequestError
from tri_spotify.models.request import DownloadRequest, DownloadResponse

log = logging.getLogger(__name__)

RUNTIME_KEY = web.AppKey("runtime", ServiceRuntime)


def _error_response(
    runtime: ServiceRuntime, message: str, status: int
) -> web.Response:
    body = DownloadResponse(ok=False)
    if runtime.config.verbose_errors:
        body = DownloadResponse(ok=False, error=message)
    return web.json_response(body.to_json(), status=status)


def _validation_message(error: ValidationError) -> str:
    """Flattens pydantic errors into 'field: message' pairs."""
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item.get("loc", ())) or "body"
        parts.append(f"{field}: {item.get('msg', 'invalid value')}")
    return "invalid request: " + "; ".join(parts)


async def parse_download_request(
    request: web.Request, max_body_size: int
) -> DownloadRequest:
    """
    Reads and validates the JSON body of a download request.

    Raises:
        InvalidRequestError: With status 413 for oversized bodies and 400 for
        anything that is not a well-formed, safe request.
    """
    try:
        payload = await request.json()
    except web.HTTPRequestEntityTooLarge as e:
        raise InvalidRequestError(
            f"request body exceeds {max_body_size} bytes", status=413
        ) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError(f"invalid JSON body: {e}") from e

    if not isinstance(payload, dict):
        raise InvalidRequestError("request body must be a JSON object")

    try:
        return DownloadRequest(**payload)
    except ValidationError as e:
        raise InvalidRequestError(_validation_message(e)) from e


async def handle_download(request: web.Request) -> web.Response:
    """Validates the body, runs the orchestrator and maps its result to HTTP."""
    runtime = request.app[RUNTIME_KEY]

    try:
        download_request = await parse_download_request(
            request, runtime.config.max_body_size
        )
    except InvalidRequestError as e:
        log.warning(f"[yellow]Rejected request:[/yellow] {escape(str(e))}")
        return _error_response(runtime, str(e), e.status)

    result = await runtime.orchestrator.handle(download_request)
    body = result.to_response(runtime.config.verbose_errors)
    return web.json_response(body.to_json(), status=200 if result.ok else 500)


def create_app(runtime: ServiceRuntime) -> web.Application:
    """Builds the aiohttp application around an already wired runtime."""
    app = web.Application(client_max_size=runtime.config.max_body_size)
    app[RUNTIME_KEY] = runtime
    app.router.add_post("/dl", handle_download)

    async def _close_runtime(app: web.Application) -> None:
        await app[RUNTIME_KEY].close()

    app.on_cleanup.append(_close_runtime)
    return app
