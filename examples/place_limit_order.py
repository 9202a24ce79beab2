"""Place a Polymarket limit order from an EOA.

This example walks the full order flow:
- Check and set USDC / conditional token approvals on Polygon
- Sign the order with EIP-712
- Derive CLOB API credentials and submit

Prerequisites:
1. pip install poly-trade-sdk
2. Set POLYGON_RPC and OWNER_EOA_PK (a .env file works)
3. Fund the wallet with USDC.e and POL on Polygon

Usage:
    python place_limit_order.py <token_id> <BUY|SELL> <price> <size>
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

load_dotenv()


async def main(token_id: str, side: str, price: str, size: str):
    from poly_trade_sdk import (
        ConfigError,
        OrderPipeline,
        OrderRequest,
        PipelineConfig,
        SubmissionTimeout,
        format_usdc,
    )

    try:
        config = PipelineConfig.from_env()
    except ConfigError as e:
        print(e)
        return

    print("=" * 60)
    print("  POLYMARKET LIMIT ORDER")
    print("=" * 60)

    async with OrderPipeline(config) as pipeline:
        print(f"\n[1] Wallet: {config.signer_address}")
        if config.uses_proxy_funder:
            print(f"    Funder: {config.maker_address}")
        balance = await pipeline.collateral_balance()
        print(f"    USDC:   ${format_usdc(balance)}")

        request = OrderRequest(token_id=token_id, side=side, price=price, size=size)
        order = pipeline.build_order(request)
        print("\n[2] Order preview:")
        print(f"    {order.side.name} {size} shares @ ${price}")
        print(f"    makerAmount={order.maker_amount} takerAmount={order.taker_amount}")

        print("\n[3] Placing order...")
        try:
            result = await pipeline.place_order(request)
        except SubmissionTimeout as e:
            print(f"\nNo response from the CLOB: {e}")
            print("    Check open orders before resubmitting.")
            return

        if result.success:
            print(f"\n[4] Order placed: {result.order_id} ({result.status})")
            for tx_hash in result.transaction_hashes:
                print(f"    TX: https://polygonscan.com/tx/{tx_hash}")
        else:
            print(f"\n[4] Order rejected: {result.error_message}")

    print("=" * 60)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if len(sys.argv) != 5:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(*sys.argv[1:]))
