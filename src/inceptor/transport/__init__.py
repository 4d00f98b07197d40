"""Transport adapter: requests in, responses out.

Usage::

    from inceptor.transport import GatewayRequest, handle_request

    response = await handle_request(
        GatewayRequest(method="GET", query_params={"sourceCode": "return 1+1"}),
        pipeline,
    )
    response.to_dict()
"""

from inceptor.transport.gateway import (
    BAD_BASE64,
    BAD_JSON,
    BUILD_FAILED,
    MISSING_SOURCE,
    GatewayRequest,
    GatewayResponse,
    ResponseHeaders,
    handle_request,
    parse_post_body,
    run_source,
)
from inceptor.transport.schemas import SourceCodeParams

__all__ = [
    "BAD_BASE64",
    "BAD_JSON",
    "BUILD_FAILED",
    "MISSING_SOURCE",
    "GatewayRequest",
    "GatewayResponse",
    "ResponseHeaders",
    "SourceCodeParams",
    "handle_request",
    "parse_post_body",
    "run_source",
]
