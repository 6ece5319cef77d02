#!/usr/bin/env python3
"""
Example of anchoring a CID with the AnchorLayer SDK.
"""
import os
import asyncio
import logging

from anchorlayer_sdk import AnchorClient, AnchorConfig, AnchorLayerError


async def main():
    """
    Demonstrate basic usage of the AnchorClient.

    This example shows how to:
    1. Build a client from ANCHOR_* environment variables
    2. Connect and read the CAIP-2 chain id
    3. Anchor a CID and print the confirmed transaction
    """
    logging.basicConfig(level=logging.INFO)

    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    CID = os.environ.get("ANCHOR_CID", "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG")

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    # ANCHOR_NETWORK / ANCHOR_RPC_URL select the endpoint
    config = AnchorConfig.from_env()
    client = AnchorClient.from_config(config, PRIVATE_KEY)

    try:
        await client.connect()
        print(f"Connected to {client.chain_id} as {client.address}")

        anchor = await client.anchor_cid(CID)

        print("CID anchored successfully!")
        print(f"Chain: {anchor.chain_id}")
        print(f"Transaction hash: {anchor.transaction_hash}")
        print(f"Block number: {anchor.block_number}")
        print(f"Block timestamp: {anchor.block_timestamp.isoformat()}")

    except AnchorLayerError as e:
        print(f"Error anchoring CID: {type(e).__name__}: {e}")


if __name__ == "__main__":
    asyncio.run(main())
