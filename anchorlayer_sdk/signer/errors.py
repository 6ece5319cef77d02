"""
Transport error mapping: translates raw RPC failures into TransportError.

This is the only place that looks at transport error codes and messages.
The mapping is coarse and conservative; anything not recognised is
classified as UNKNOWN rather than guessed.
"""
import asyncio
from typing import Any, Dict, List, Optional, Tuple

from web3.exceptions import TimeExhausted

from ..exceptions import TransportError, TransportErrorKind

# Symbolic codes carried by some transports (ethers-style error codes)
_CODE_MAP: Dict[str, TransportErrorKind] = {
    "INSUFFICIENT_FUNDS": TransportErrorKind.INSUFFICIENT_FUNDS,
    "NONCE_EXPIRED": TransportErrorKind.NONCE_EXPIRED,
    "TIMEOUT": TransportErrorKind.TIMEOUT,
}

# Known node phrases, checked in order against the lower-cased message
_PHRASE_MAP: List[Tuple[str, TransportErrorKind]] = [
    ("insufficient funds", TransportErrorKind.INSUFFICIENT_FUNDS),
    ("nonce too low", TransportErrorKind.NONCE_EXPIRED),
    ("nonce has already been used", TransportErrorKind.NONCE_EXPIRED),
    ("nonce expired", TransportErrorKind.NONCE_EXPIRED),
    ("correct nonce", TransportErrorKind.NONCE_EXPIRED),
    ("timed out", TransportErrorKind.TIMEOUT),
    ("timeout", TransportErrorKind.TIMEOUT),
]


def _rpc_error_fields(exc: BaseException) -> Tuple[Optional[Any], str]:
    """
    Pull (code, message) out of a raw transport exception.

    Handles the dict payload that web3 attaches to JSON-RPC errors as well
    as exceptions carrying a ``code`` attribute.
    """
    code = getattr(exc, "code", None)
    message = str(exc)

    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, dict) and isinstance(rpc_response.get("error"), dict):
        error = rpc_response["error"]
        return error.get("code", code), str(error.get("message", message))

    if exc.args and isinstance(exc.args[0], dict):
        error = exc.args[0]
        return error.get("code", code), str(error.get("message", message))

    return code, message


def classify_transport_error(exc: BaseException) -> TransportError:
    """
    Map a raw transport exception to a classified TransportError.

    Args:
        exc: Exception raised by web3 or the HTTP layer

    Returns:
        TransportError with the matching TransportErrorKind. The original
        message is preserved.
    """
    if isinstance(exc, TransportError):
        return exc

    if isinstance(exc, (TimeExhausted, asyncio.TimeoutError)):
        return TransportError(str(exc) or "Transport timed out", TransportErrorKind.TIMEOUT)

    code, message = _rpc_error_fields(exc)

    if isinstance(code, str) and code in _CODE_MAP:
        return TransportError(message, _CODE_MAP[code])

    lowered = message.lower()
    for phrase, kind in _PHRASE_MAP:
        if phrase in lowered:
            return TransportError(message, kind)

    return TransportError(message or type(exc).__name__, TransportErrorKind.UNKNOWN)
