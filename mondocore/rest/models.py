"""Data models shared by the MondoCore REST client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProblemDetails(BaseModel):
    """RFC 7807 problem document (``application/problem+json``).

    See https://datatracker.ietf.org/doc/html/rfc7807. Extension members
    are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    title: Optional[str] = None
    detail: Optional[str] = None
    instance: Optional[str] = None


@dataclass(frozen=True)
class HttpContent:
    """Pre-built request content sent to the server as-is."""

    body: bytes
    content_type: Optional[str] = None
