"""Header sources for REST API calls.

A header factory supplies headers computed fresh on every request (for
example a short-lived bearer token). Headers passed explicitly by the
caller are flattened with :func:`to_string_dict` and sent ahead of the
factory's headers.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class HeaderFactory(Protocol):
    """Produces per-request headers for a named API."""

    async def get_headers(self, api_name: str) -> Mapping[str, str]:
        """Return the headers to attach to a request for ``api_name``."""
        ...


class StaticHeaderFactory:
    """Header factory that returns the same headers on every call.

    Parameters
    ----------
    headers : Mapping[str, str], optional
        Headers sent to every API
    per_api : Mapping[str, Mapping[str, str]], optional
        Additional headers keyed by logical API name

    Examples
    --------
    >>> factory = StaticHeaderFactory({"Authorization": "Bearer abc"})
    """

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        per_api: Optional[Mapping[str, Mapping[str, str]]] = None,
    ):
        self._headers = dict(headers or {})
        self._per_api = {name: dict(h) for name, h in (per_api or {}).items()}

    async def get_headers(self, api_name: str) -> Dict[str, str]:
        headers = dict(self._headers)
        headers.update(self._per_api.get(api_name, {}))
        return headers


def to_string_dict(obj: Any) -> Dict[str, str]:
    """Flatten a headers object into a ``str -> str`` dictionary.

    Mappings, pydantic models, dataclasses and plain objects with public
    attributes are accepted. ``None`` values are dropped and every other
    value is converted with ``str()``.
    """
    if obj is None:
        return {}

    if isinstance(obj, Mapping):
        items = obj.items()
    elif isinstance(obj, BaseModel):
        items = obj.model_dump(by_alias=True).items()
    elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        items = dataclasses.asdict(obj).items()
    else:
        try:
            items = ((k, v) for k, v in vars(obj).items() if not k.startswith("_"))
        except TypeError:
            raise TypeError(
                f"Cannot convert {type(obj).__name__} to headers; pass a mapping instead"
            ) from None

    return {str(k): str(v) for k, v in items if v is not None}


def compose_headers(
    explicit: Optional[Mapping[str, str]],
    provided: Optional[Mapping[str, str]],
) -> List[Tuple[str, str]]:
    """Combine explicit and factory headers, explicit first.

    Nothing is merged or overwritten: if both sources name the same
    header, both values are sent.
    """
    composed: List[Tuple[str, str]] = []
    for source in (explicit, provided):
        if source:
            composed.extend(_pairs(source))
    return composed


def _pairs(headers: Mapping[str, str]) -> Iterable[Tuple[str, str]]:
    return ((str(k), str(v)) for k, v in headers.items())
