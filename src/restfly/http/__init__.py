"""restfly HTTP values, payloads, transformers and the transport port."""

from restfly.http.filters import HttpRequestFilter, StripExpectHeader
from restfly.http.options import BaseHttpRequestOptions, HttpRequestOptions
from restfly.http.payloads import ContentMetadata, MultipartForm, Part, Payload
from restfly.http.ports.outbound import HttpCommandExecutorPort
from restfly.http.request import HttpRequest, HttpResponse

__all__ = [
    "BaseHttpRequestOptions",
    "ContentMetadata",
    "HttpCommandExecutorPort",
    "HttpRequest",
    "HttpRequestFilter",
    "HttpRequestOptions",
    "HttpResponse",
    "MultipartForm",
    "Part",
    "Payload",
    "StripExpectHeader",
]
