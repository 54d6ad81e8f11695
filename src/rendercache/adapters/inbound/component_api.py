# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""HTTP adapter invoking registered components.

``GET /components/{name}?key=value`` builds an InputBundle from the query
string (repeated keys become lists) and invokes the component, memoized
if it was registered that way. The route is a plain ``def`` so FastAPI
runs it in its threadpool; renders may block.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, Response

from rendercache.adapters.config.logging import get_logger, render_context
from rendercache.adapters.inbound.admin_api import get_registry
from rendercache.application.registry import ComponentRegistry
from rendercache.domain.errors import (
    ComponentNotFoundError,
    MissingInputError,
    UnkeyableInputError,
)
from rendercache.domain.value_objects import InputBundle

logger = get_logger(__name__)

router = APIRouter(prefix="/components", tags=["components"])


def bundle_from_query(request: Request) -> InputBundle:
    """Query parameters as an InputBundle; repeated keys become lists."""
    values: dict[str, Any] = {}
    for key in request.query_params:
        items = request.query_params.getlist(key)
        values[key] = items[0] if len(items) == 1 else items
    return InputBundle(values)


def to_response(output: Any) -> Response:
    """Wrap render output: text as HTML, bytes as-is, anything else as JSON."""
    if isinstance(output, str):
        return HTMLResponse(content=output)
    if isinstance(output, (bytes, bytearray)):
        return Response(content=bytes(output), media_type="application/octet-stream")
    return JSONResponse(content=output)


@router.get("")
def list_components(
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
) -> dict[str, list[dict[str, Any]]]:
    """Registered component names and whether they are memoized."""
    return {
        "components": [
            {"name": registration.name, "memoized": registration.memoized}
            for registration in registry.registrations()
        ]
    }


@router.get("/{name}")
def render_component(
    name: str,
    request: Request,
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
) -> Response:
    """Render a component from query parameters.

    Raises:
        HTTPException: 404 unknown component, 400 missing or unkeyable input
    """
    try:
        registration = registry.get(name)
    except ComponentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    bundle = bundle_from_query(request)
    cache_name = registration.invoker.cache.name if registration.invoker is not None else None
    with render_context(component=name, cache=cache_name):
        try:
            output = registration.invoke(bundle)
        except (MissingInputError, UnkeyableInputError) as e:
            logger.info("render_rejected", error_type=type(e).__name__, message=str(e))
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        logger.debug("component_rendered", memoized=registration.memoized, inputs=len(bundle))

    return to_response(output)
