"""
Utility functions for the AnchorLayer SDK.
"""
import base64
import binascii
from typing import Union

import base58

from .exceptions import PayloadError

BASE_CHAIN_ID = "eip155"

DIGEST_LENGTH = 32
# sha2-256 multihash header: hash function code + digest length
_SHA256_MULTIHASH_PREFIX = b"\x12\x20"
# CIDv1 header: version + codec + sha2-256 multihash header
_CIDV1_PREFIX_LENGTH = 4


def caip_chain_id(chain_id: int) -> str:
    """
    Represent a numeric chain id in CAIP-2 format.

    Args:
        chain_id: Numeric EVM chain id

    Returns:
        String like "eip155:1"
    """
    return f"{BASE_CHAIN_ID}:{chain_id}"


def cid_to_payload(cid: str) -> bytes:
    """
    Convert a CID string to the raw bytes that get anchored.

    Accepts "0x"-prefixed hex, base58btc CIDv0 ("Qm...") and multibase
    base32 ("b...") or base16 ("f...") CIDv1 strings.

    Args:
        cid: CID string

    Returns:
        Raw CID bytes

    Raises:
        PayloadError: If the CID cannot be decoded
    """
    if not isinstance(cid, str):
        raise PayloadError(f"CID must be a string, got {type(cid).__name__}")
    if not cid:
        raise PayloadError("CID is empty")

    if cid.startswith("0x"):
        try:
            return bytes.fromhex(cid[2:])
        except ValueError as e:
            raise PayloadError(f"Invalid hex CID format: {e}")

    if cid.startswith("Qm"):
        try:
            return base58.b58decode(cid)
        except ValueError as e:
            raise PayloadError(f"Failed to decode CID {cid}: {e}")

    prefix, body = cid[0], cid[1:]
    try:
        if prefix == "b":
            padding = "=" * (-len(body) % 8)
            return base64.b32decode(body.upper() + padding)
        if prefix == "f":
            return bytes.fromhex(body)
    except (binascii.Error, ValueError) as e:
        raise PayloadError(f"Failed to decode CID {cid}: {e}")

    raise PayloadError(f"Unsupported multibase prefix '{prefix}' in CID {cid}")


def anchor_digest(payload: Union[bytes, bytearray]) -> bytes:
    """
    Reduce an anchor payload to the 32-byte digest passed to the anchor contract.

    Args:
        payload: Raw digest, CIDv0 bytes or CIDv1 bytes

    Returns:
        32-byte digest

    Raises:
        PayloadError: If the payload does not carry a 32-byte sha2-256 digest
    """
    payload = bytes(payload)
    if len(payload) == DIGEST_LENGTH:
        return payload
    if len(payload) == DIGEST_LENGTH + 2 and payload.startswith(_SHA256_MULTIHASH_PREFIX):
        return payload[2:]
    if (
        len(payload) == DIGEST_LENGTH + _CIDV1_PREFIX_LENGTH
        and payload[2:_CIDV1_PREFIX_LENGTH] == _SHA256_MULTIHASH_PREFIX
    ):
        return payload[_CIDV1_PREFIX_LENGTH:]
    raise PayloadError(
        f"Cannot derive a {DIGEST_LENGTH}-byte digest from a {len(payload)}-byte payload"
    )
