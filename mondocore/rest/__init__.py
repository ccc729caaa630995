"""Typed async REST client built on httpx.

Examples
--------
>>> from mondocore.rest import HTTPClientFactory, RestApi
>>> api = RestApi.from_factory(HTTPClientFactory(), "catalog")
"""

from ._http import (
    ClientSource,
    FactoryClientSource,
    HTTPClientFactory,
    InstanceClientSource,
    TimeoutConfig,
)
from .client import RestApi
from .config import ApiConfig, get_api_config, load_dotenv_for_rest
from .exceptions import ConfigurationError, RestError, RestException
from .headers import HeaderFactory, StaticHeaderFactory, to_string_dict
from .models import HttpContent, ProblemDetails

__all__ = [
    "ApiConfig",
    "ClientSource",
    "ConfigurationError",
    "FactoryClientSource",
    "HTTPClientFactory",
    "HeaderFactory",
    "HttpContent",
    "InstanceClientSource",
    "ProblemDetails",
    "RestApi",
    "RestError",
    "RestException",
    "StaticHeaderFactory",
    "TimeoutConfig",
    "get_api_config",
    "load_dotenv_for_rest",
    "to_string_dict",
]

__version__ = "0.1.0"
