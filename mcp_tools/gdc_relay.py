import os
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

# NCI GDC Search and Retrieval endpoint. The Submission endpoint is never used.
DEFAULT_GDC_GRAPHQL_ENDPOINT = "https://api.gdc.cancer.gov/v0/graphql"

USER_AGENT = "NciGdcMCP/0.1.0 (ModelContextProtocol; +https://modelcontextprotocol.io)"

REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": USER_AGENT,
}

# Caps on body-derived text returned to the calling model.
HTTP_ERROR_TEXT_LIMIT = 500
NON_JSON_TEXT_LIMIT = 1000

QUERY_PREVIEW_LENGTH = 150
VARIABLES_PREVIEW_LENGTH = 100
GRAPHQL_ERRORS_PREVIEW_LENGTH = 500
BODY_PREVIEW_LENGTH = 500

# Configure logging.
logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
if not logger.handlers:
    ch = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(levelname)s:%(name)s: %(message)s")
    ch.setFormatter(formatter)
    logger.addHandler(ch)


class LoggingSink:
    """
    Diagnostic sink that writes relay events to a standard logger.

    Anything with a ``record(event, **fields)`` method can stand in for it,
    e.g. a list-backed recorder in tests.
    """

    def __init__(self, log: logging.Logger = None):
        self._log = log or logger

    def record(self, event: str, **fields) -> None:
        level = logging.ERROR if event in ("http_error", "non_json_response", "client_error") else logging.INFO
        details = " ".join(f"{key}={value!r}" for key, value in fields.items())
        self._log.log(level, "%s %s", event, details)


def _emit(sink, event: str, **fields) -> None:
    # Diagnostics must never change the relay outcome.
    try:
        sink.record(event, **fields)
    except Exception:
        logger.debug("Diagnostic sink failed while recording %s", event, exc_info=True)


def _error_envelope(message: str, extensions: Dict[str, Any] = None) -> Dict[str, Any]:
    error = {"message": message}
    if extensions is not None:
        error["extensions"] = extensions
    return {"errors": [error]}


def build_request_body(query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Builds the outbound GraphQL body. Empty variables are omitted entirely.
    """
    body = {"query": query}
    if variables:
        body["variables"] = variables
    return body


def _preview_json(value: Any, limit: int) -> Optional[str]:
    try:
        return json.dumps(value, default=str)[:limit]
    except (TypeError, ValueError):
        return f"<unserializable {value.__class__.__name__}>"


async def _read_text(resp: aiohttp.ClientResponse) -> Optional[str]:
    # Undecodable bytes are replaced; None only when the body cannot be read at all.
    try:
        return await resp.text(errors="replace")
    except Exception:
        return None


async def _post_and_classify(session: aiohttp.ClientSession, endpoint: str, body: dict, sink) -> Any:
    async with session.post(endpoint, json=body, headers=REQUEST_HEADERS) as resp:
        status = resp.status
        _emit(sink, "response_status", status=status)

        if not 200 <= status < 300:
            message = f"Upstream HTTP Error {status}"
            error_text = message
            error_body = await _read_text(resp)
            if error_body is not None:
                error_text += f": {error_body[:HTTP_ERROR_TEXT_LIMIT]}"
            _emit(sink, "http_error", status=status, text=error_text)
            return _error_envelope(
                message,
                {"statusCode": status, "responseText": error_text},
            )

        raw = await _read_text(resp)
        try:
            if raw is None:
                raise ValueError("response body could not be read")
            payload = json.loads(raw)
        except ValueError:
            raw = raw or ""
            _emit(sink, "non_json_response", status=status, body=raw[:BODY_PREVIEW_LENGTH])
            return _error_envelope(
                "Upstream Error: Non-JSON response.",
                {"statusCode": status, "responseText": raw[:NON_JSON_TEXT_LIMIT]},
            )

        if isinstance(payload, dict) and payload.get("errors"):
            _emit(
                sink,
                "graphql_errors",
                errors=_preview_json(payload["errors"], GRAPHQL_ERRORS_PREVIEW_LENGTH),
            )
        return payload


async def execute_gdc_graphql_query(
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    endpoint: str = DEFAULT_GDC_GRAPHQL_ENDPOINT,
    sink=None,
    session: Optional[aiohttp.ClientSession] = None,
) -> Any:
    """
    Forwards a GraphQL query to the GDC endpoint and normalizes the outcome.

    The query is passed through untouched; the upstream service decides whether
    it is valid. The call never raises: transport failures, non-2xx statuses and
    non-JSON bodies are returned as a GraphQL-style ``{"errors": [...]}``
    envelope. A parsed JSON body is returned verbatim, including any GraphQL
    ``errors`` it carries.

    Args:
        query: GraphQL query text.
        variables: Optional mapping of GraphQL variables. Omitted when empty.
        endpoint: Upstream GraphQL URL.
        sink: Diagnostic sink with a ``record(event, **fields)`` method.
            Defaults to a LoggingSink.
        session: Optional aiohttp session to reuse. A private session is
            opened and closed for the call otherwise.

    Returns:
        The upstream JSON response, or an error envelope.
    """
    if sink is None:
        sink = LoggingSink()

    try:
        body = build_request_body(query, variables)
        _emit(
            sink,
            "request",
            endpoint=endpoint,
            query=query[:QUERY_PREVIEW_LENGTH],
            variables=_preview_json(variables, VARIABLES_PREVIEW_LENGTH) if variables else None,
        )
        if session is not None:
            return await _post_and_classify(session, endpoint, body, sink)
        async with aiohttp.ClientSession() as own_session:
            return await _post_and_classify(own_session, endpoint, body, sink)
    except Exception as e:
        # Network errors or other issues with the request itself.
        description = str(e) or e.__class__.__name__
        _emit(sink, "client_error", error=description)
        return _error_envelope(f"Client-side error: {description}")
