import re
from typing import TYPE_CHECKING, Any, cast

from litestar.connection import Request
from litestar.connection.base import AuthT, StateT, UserT
from litestar.exceptions import HTTPException, InternalServerException, NotFoundException, ValidationException
from litestar.exceptions.responses import (
    create_debug_response,  # pyright: ignore[reportUnknownVariableType]
    create_exception_response,  # pyright: ignore[reportUnknownVariableType]
)
from litestar.repository.exceptions import NotFoundError  # pyright: ignore[reportAttributeAccessIssue]
from litestar.status_codes import HTTP_400_BAD_REQUEST, HTTP_422_UNPROCESSABLE_ENTITY

from litestar_inertia.request import InertiaDetails, InertiaRequest, set_validation_errors
from litestar_inertia.response import InertiaBack

if TYPE_CHECKING:
    from litestar.response import Response

    from litestar_inertia.plugin import InertiaPlugin
    from litestar_inertia.types import ValidationErrors

__all__ = ("exception_to_http_response", "validation_errors_from_exception")

FIELD_ERR_RE = re.compile(r"field `(.+)`$")


def validation_errors_from_exception(exc: "ValidationException") -> "ValidationErrors":
    """Turn the ``extra`` payload of a validation exception into field errors.

    Args:
        exc: The validation exception.

    Returns:
        Field name to messages. Errors that name no field are filed under ``root``.
    """
    errors: "dict[str, list[str]]" = {}
    extras: Any = exc.extra if isinstance(exc.extra, (list, tuple)) else []
    for extra in cast("list[Any]", extras):
        if not isinstance(extra, dict):
            continue
        message_info = cast("dict[str, Any]", extra)
        message = str(message_info.get("message") or exc.detail)
        match = FIELD_ERR_RE.search(message)
        field = match.group(1) if match else str(message_info.get("key") or "root")
        errors.setdefault(field, []).append(message)
    if not errors and exc.detail:
        errors["root"] = [exc.detail]
    return cast("ValidationErrors", errors)


def _is_inertia_request(request: "Request[Any, Any, Any]") -> bool:
    if isinstance(request, InertiaRequest):
        return request.is_inertia
    return bool(InertiaDetails(request))


def exception_to_http_response(request: "Request[UserT, AuthT, StateT]", exc: "Exception") -> "Response[Any]":
    """Handler for all exceptions.

    Validation failures of Inertia requests are flashed as field errors and answered
    with a redirect back to the form, which is what the Inertia client expects. Everything
    else gets Litestar's default exception response.

    Args:
        request: The request object.
        exc: The exception to handle.

    Returns:
        The response object.
    """
    if (
        isinstance(exc, ValidationException)
        and exc.status_code in {HTTP_400_BAD_REQUEST, HTTP_422_UNPROCESSABLE_ENTITY}
        and _is_inertia_request(request)
    ):
        set_validation_errors(request, validation_errors_from_exception(exc))
        try:
            inertia_plugin: "InertiaPlugin" = request.app.plugins.get("InertiaPlugin")
        except KeyError:
            return InertiaBack(request)
        return inertia_plugin.inertia.back(request)

    if isinstance(exc, HTTPException):
        return cast("Response[Any]", create_exception_response(request, exc))
    if request.app.debug:
        return cast("Response[Any]", create_debug_response(request, exc))
    http_exc = NotFoundException if isinstance(exc, NotFoundError) else InternalServerException
    return cast("Response[Any]", create_exception_response(request, http_exc()))
