#!/usr/bin/env python3
"""
Solana RPC connectivity check.

Usage:
    python3 check_rpc.py
    python3 check_rpc.py --cluster mainnet-beta --address <pubkey>
    SOLANA_RPC_URL=https://my-node.example python3 check_rpc.py
"""

import argparse
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

import logging_config
from jupiter_arbitrage.config import ENV_RPC_URL
from jupiter_arbitrage.exceptions import RpcError
from jupiter_arbitrage.rpc import SolanaCluster, SolanaRPC


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check a Solana RPC endpoint")
    parser.add_argument(
        "--cluster",
        choices=[c.value for c in SolanaCluster],
        default=SolanaCluster.DEVNET.value,
        help="Cluster preset (default: devnet)",
    )
    parser.add_argument("--endpoint", help="RPC URL (overrides --cluster and env)")
    parser.add_argument("--address", help="Account to fetch the SOL balance of")
    parser.add_argument("--timeout", type=float, default=10.0)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging_config.setup_minimal()

    rpc = SolanaRPC(
        SolanaCluster(args.cluster),
        endpoint=args.endpoint or os.environ.get(ENV_RPC_URL),
        timeout=args.timeout,
    )
    try:
        connected = rpc.is_connected()
        print(f"Connected to {rpc.endpoint}: {connected}")
        if not connected:
            return 1

        print(f"Current slot: {rpc.get_slot()}")
        print(f"Node version: {rpc.get_version()}")
        print(f"Latest blockhash: {rpc.get_latest_blockhash()}")
        print(f"Ping: {rpc.ping():.0f} ms")
        print(f"Estimated fee: {rpc.get_estimated_transaction_fee()} lamports")
        if args.address:
            print(f"Balance: {rpc.get_balance(args.address)} SOL")
    except RpcError as e:
        print(f"RPC error: {e}", file=sys.stderr)
        return 1
    finally:
        rpc.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
