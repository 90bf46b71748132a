"""Route an HTTP response by the operation's declared status codes."""

from __future__ import annotations

from typing import Sequence, Union

from azrest.exceptions import ResponseError
from azrest.metadata.command import Response


def route_response(
    status_code: int,
    body: Union[bytes, str],
    responses: Sequence[Response],
) -> str:
    """Return the body text if *status_code* is declared, else raise.

    Declared responses are scanned in order and the first whose
    ``statusCode`` list contains the code accepts the response. ``isError``
    does not take part in the decision.

    Raises:
        ResponseError: No declared response lists *status_code*. The error
            carries the code and the raw body text.
    """
    for response in responses:
        if response.status_code and status_code in response.status_code:
            return _decode(body)
    raise ResponseError(status_code, _decode(body))


def _decode(body: Union[bytes, str]) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body
