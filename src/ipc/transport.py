"""
Line-Delimited JSON Transport

Carries facade requests between the UI process and this one, one JSON
object per line:

    request:  {"id": 7, "method": "saveProduct", "params": {...}}
    response: {"id": 7, "result": {...}}

Each request runs as its own task, so a slow request never holds back
the reply to a later one; replies are matched to requests by id only.
A line that is not a valid request is answered with
{"id": null, "error": message}.

stdout belongs to this transport. Logging goes to stderr.
"""

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

import structlog

from src.ipc.facade import AccessFacade


logger = structlog.get_logger(__name__)

LineReader = Callable[[], Awaitable[str]]
LineWriter = Callable[[str], None]


class MalformedRequestError(ValueError):
    """A transport line that is not a request object."""

    def __init__(self, message: str, request_id: Any = None):
        super().__init__(message)
        self.request_id = request_id


def encode_message(message: dict[str, Any]) -> str:
    return json.dumps(message, ensure_ascii=False)


def parse_request(line: str) -> tuple[Any, str, Any]:
    """
    Split a request line into (id, method, params).

    Raises:
        MalformedRequestError: If the line is not a request object
    """
    try:
        request = json.loads(line)
    except ValueError as e:
        raise MalformedRequestError(f"Malformed request: {e}")
    if not isinstance(request, dict):
        raise MalformedRequestError("Malformed request: expected a JSON object")

    request_id = request.get("id")
    method = request.get("method")
    if not isinstance(method, str) or not method:
        raise MalformedRequestError("Malformed request: method is required", request_id)
    return request_id, method, request.get("params")


async def _respond(
    facade: AccessFacade,
    writer: LineWriter,
    request_id: Any,
    method: str,
    params: Any,
) -> None:
    result = await facade.handle(method, params)
    writer(encode_message({"id": request_id, "result": result}))


async def serve(facade: AccessFacade, reader: LineReader, writer: LineWriter) -> int:
    """
    Answer requests until the reader reports end of input.

    Args:
        facade: Endpoint dispatcher
        reader: Returns the next line, "" at end of input
        writer: Sends one response line

    Returns:
        Number of requests dispatched
    """
    pending: set[asyncio.Task] = set()
    dispatched = 0

    while True:
        line = await reader()
        if not line:
            break
        line = line.strip()
        if not line:
            continue

        try:
            request_id, method, params = parse_request(line)
        except MalformedRequestError as e:
            logger.warning("malformed_request", error=str(e))
            writer(encode_message({"id": e.request_id, "error": str(e)}))
            continue

        task = asyncio.create_task(_respond(facade, writer, request_id, method, params))
        pending.add(task)
        task.add_done_callback(pending.discard)
        dispatched += 1

    # End of input: let in-flight requests answer before returning
    if pending:
        await asyncio.gather(*pending)
    logger.info("transport_closed", dispatched=dispatched)
    return dispatched


def _write_stdout(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


async def serve_stdio(facade: AccessFacade) -> int:
    """Serve requests from stdin, answering on stdout."""
    return await serve(
        facade,
        lambda: asyncio.to_thread(sys.stdin.readline),
        _write_stdout,
    )
