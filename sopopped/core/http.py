# sopopped/core/http.py
import json
from typing import Any
from urllib.parse import urlencode

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from sopopped.core.errors import BadRequest, error_envelope


def is_ajax_request(request: Request) -> bool:
    """
    Detect whether the caller expects JSON rather than a redirect.

    Checks, in order:
      - X-Requested-With: XMLHttpRequest
      - Accept containing application/json
      - Content-Type containing application/json
    """
    if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
        return True
    if "application/json" in request.headers.get("accept", ""):
        return True
    if "application/json" in request.headers.get("content-type", ""):
        return True
    return False


async def read_payload(request: Request) -> dict[str, Any]:
    """
    Read a request body that may be JSON or form-encoded.

    Returns an empty dict for an empty body.

    Raises:
        BadRequest: if a JSON body is malformed or is not an object.
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        raw = await request.body()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            raise BadRequest("Malformed JSON body")
        if not isinstance(data, dict):
            raise BadRequest("Request body must be a JSON object")
        return data

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def flow_redirect(
    path: str,
    flow: str,
    success: bool,
    message: str,
) -> RedirectResponse:
    """
    Redirect for non-AJAX form posts, encoding the outcome in the query.

    Example:
        /home?login_result=error&login_message=Invalid+email+or+password
    """
    query = urlencode(
        {
            f"{flow}_result": "success" if success else "error",
            f"{flow}_message": message,
        }
    )
    return RedirectResponse(url=f"{path}?{query}", status_code=status.HTTP_303_SEE_OTHER)


def flow_error(
    request: Request,
    flow: str,
    status_code: int,
    message: str,
    errors: Any = None,
) -> Response:
    """Render a failed login/signup/logout either as JSON or as a redirect."""
    if is_ajax_request(request):
        return JSONResponse(
            status_code=status_code,
            content=error_envelope(message, errors),
        )
    return flow_redirect("/home", flow, False, message)
