from .adapter import JSONAPIAdapter as JSONAPIAdapter
from .config import AdapterConfig as AdapterConfig
from .exceptions import InvalidTypeError as InvalidTypeError
from .exceptions import JSONAPIAdapterError as JSONAPIAdapterError
from .exceptions import RecordNotReturnedError as RecordNotReturnedError
from .exceptions import TransportError as TransportError
from .inflector import Inflector as Inflector
from .models import ResourceObject as ResourceObject
from .models import Snapshot as Snapshot
from .request import RequestBuilder as RequestBuilder
from .request import RequestDescriptor as RequestDescriptor
from .urls import URLResolver as URLResolver

__all__ = [
    "JSONAPIAdapter",
    "AdapterConfig",
    "InvalidTypeError",
    "JSONAPIAdapterError",
    "RecordNotReturnedError",
    "TransportError",
    "Inflector",
    "ResourceObject",
    "Snapshot",
    "RequestBuilder",
    "RequestDescriptor",
    "URLResolver",
]
