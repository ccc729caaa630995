"""Exception classes for the MondoCore REST client.

This module defines the errors raised by :class:`~mondocore.rest.client.RestApi`.
Transport failures coming out of httpx (connection errors, transport
timeouts) are deliberately not wrapped here and reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class RestError(Exception):
    """Base exception for all MondoCore REST errors.

    All custom exceptions in the package inherit from this base class,
    allowing applications to catch every package-specific error with a
    single except clause if desired.
    """

    pass


class ConfigurationError(RestError, ValueError):
    """Raised when a REST API wrapper or its settings are invalid.

    This is raised at construction time, before any request is sent,
    for example when no client source is given or the API name is blank.
    """

    pass


class RestException(RestError):
    """Raised when a REST call returns a non-success status code.

    Attributes
    ----------
    status_code : int
        The HTTP status code (e.g., 400, 404, 504)
    url : str
        The request URL as passed by the caller
    headers : object or None
        The headers object the caller passed in. Headers contributed by a
        header factory are not included.
    api_name : str
        Logical name of the API that was called
    message : str
        Human-readable message; the problem ``title`` when the server sent
        an RFC 7807 problem document
    response : str
        The raw response body, or an empty string if it could not be read
    problem : ProblemDetails or None
        The parsed problem document, when there was one
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        url: str = "",
        headers: Any = None,
        api_name: str = "",
        response: str = "",
        problem: Any = None,
    ):
        self.message = message
        self.status_code = status_code
        self.url = url
        self.headers = headers
        self.api_name = api_name
        self.response = response
        self.problem = problem
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, status_code={self.status_code}, "
            f"url={self.url!r}, api_name={self.api_name!r})"
        )
