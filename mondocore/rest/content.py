"""Request content dispatch and response materialization.

The helpers in this module turn a caller-supplied body into wire content,
turn a successful response into the caller's requested type, and classify
failed responses into the pieces of a :class:`RestException`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Tuple
from urllib.parse import urlencode

import httpx
import pydantic_core
from pydantic import TypeAdapter, ValidationError

from .models import HttpContent, ProblemDetails

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
PROBLEM_MEDIA_TYPE = "application/problem+json"

DEFAULT_FAILURE_MESSAGE = "Rest Api Exception, Status Code = {status}"


def build_content(body: Any) -> Tuple[Optional[bytes], Optional[str]]:
    """Convert a request body into ``(content, content_type)``.

    The body's runtime type is checked in this order:

    1. ``HttpContent``, ``bytes`` or ``bytearray`` are sent unchanged
    2. a non-empty mapping of ``str`` to ``str`` is form-url-encoded
    3. a ``str`` is sent as UTF-8 text labelled ``application/json``
    4. anything else is serialized as JSON

    Parameters
    ----------
    body : Any
        The request body, or None for no body

    Returns
    -------
    tuple
        The encoded bytes and the content type to send with them. Both are
        None when there is no body.
    """
    if body is None:
        return None, None

    if isinstance(body, HttpContent):
        return body.body, body.content_type

    if isinstance(body, (bytes, bytearray)):
        return bytes(body), None

    if isinstance(body, Mapping) and _is_string_mapping(body):
        return urlencode(list(body.items())).encode("ascii"), FORM_CONTENT_TYPE

    if isinstance(body, str):
        # Plain strings are assumed to already be JSON text
        return body.encode("utf-8"), JSON_CONTENT_TYPE

    return pydantic_core.to_json(body, fallback=_object_fields), JSON_CONTENT_TYPE


def _is_string_mapping(value: Mapping) -> bool:
    # Empty mappings carry no form fields and go out as JSON "{}"
    return bool(value) and all(isinstance(k, str) and isinstance(v, str) for k, v in value.items())


def _object_fields(value: Any) -> dict:
    """Serialize an arbitrary object through its public attributes."""
    return {k: v for k, v in vars(value).items() if not k.startswith("_")}


def read_result(text: str, response_type: Any = Any) -> Any:
    """Materialize a successful response body as ``response_type``.

    When ``response_type`` is ``str`` the text is returned verbatim and no
    JSON parsing is attempted. Anything else is validated from JSON, so
    pydantic models, dataclasses and ``list[Model]`` all work. An empty
    body (e.g. a 204) is not valid JSON and fails for every type but ``str``.

    Raises
    ------
    pydantic.ValidationError
        If the body is not valid JSON or does not fit ``response_type``
    """
    if response_type is str:
        return text

    return TypeAdapter(response_type).validate_json(text)


def media_type(content_type: Optional[str]) -> str:
    """Return the bare, lower-cased media type of a Content-Type value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def status_name(status_code: int) -> str:
    """Return the PascalCase name of a status code, e.g. ``NotFound``.

    Unknown codes are rendered as the bare number.
    """
    try:
        name = httpx.codes(status_code).name
    except ValueError:
        return str(status_code)
    return "".join(part.capitalize() for part in name.split("_"))


def classify_failure(
    response: httpx.Response,
) -> Tuple[str, str, Optional[ProblemDetails]]:
    """Work out the message and detail for a non-success response.

    If the response is ``application/problem+json`` and carries a
    non-blank ``title``, the title becomes the message. Otherwise the
    message is ``"Rest Api Exception, Status Code = {status}"``.

    Returns
    -------
    tuple
        ``(message, detail, problem)`` where ``detail`` is the raw body
        text (empty if it could not be read)
    """
    detail = _read_text(response)

    if media_type(response.headers.get("content-type")) == PROBLEM_MEDIA_TYPE:
        try:
            problem = ProblemDetails.model_validate_json(detail)
        except ValidationError:
            logger.debug("Unparseable problem document (status %s)", response.status_code)
        else:
            if problem.title and problem.title.strip():
                return problem.title, detail, problem

    message = DEFAULT_FAILURE_MESSAGE.format(status=status_name(response.status_code))
    return message, detail, None


def _read_text(response: httpx.Response) -> str:
    try:
        return response.text
    except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError, LookupError):
        # Unread or undecodable bodies must not mask the status failure
        logger.debug("Could not read error body (status %s)", response.status_code, exc_info=True)
        return ""
