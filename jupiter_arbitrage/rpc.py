"""
Read-only Solana JSON-RPC access (balances, slot, node version, latency).

Used by the connectivity check script; the monitor itself never talks to the
ledger.
"""

import itertools
import time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from .exceptions import RpcError
from .opportunity_math import to_human
from .tokens import SOL
from .utils import get_logger

logger = get_logger(__name__)


class SolanaCluster(Enum):
    MAINNET = "mainnet-beta"
    DEVNET = "devnet"
    TESTNET = "testnet"
    LOCALNET = "localhost"


CLUSTER_URLS = {
    SolanaCluster.MAINNET: "https://api.mainnet-beta.solana.com",
    SolanaCluster.DEVNET: "https://api.devnet.solana.com",
    SolanaCluster.TESTNET: "https://api.testnet.solana.com",
    SolanaCluster.LOCALNET: "http://127.0.0.1:8899",
}

DEFAULT_RPC_URL = CLUSTER_URLS[SolanaCluster.MAINNET]

# Base fee of a single-signature transaction, in lamports
ESTIMATED_TRANSACTION_FEE_LAMPORTS = 5000


class SolanaRPC:
    """
    Minimal JSON-RPC client over ``requests``.

    Args:
        cluster: Cluster preset used when no endpoint is given
        endpoint: Explicit RPC URL
        commitment: Commitment level sent with state queries
        timeout: Per-request timeout in seconds
        session: Optional requests.Session (tests inject a mock)
    """

    def __init__(
        self,
        cluster: SolanaCluster = SolanaCluster.DEVNET,
        endpoint: Optional[str] = None,
        commitment: str = "confirmed",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.cluster = cluster
        self.endpoint = endpoint or CLUSTER_URLS[cluster]
        self.commitment = commitment
        self.timeout = timeout
        self.session = session or requests.Session()
        self._ids = itertools.count(1)
        logger.info(f"Solana RPC initialized for {cluster.value} at {self.endpoint}")

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Perform one JSON-RPC call and return its ``result``.

        Raises:
            RpcError: On transport failure, non-2xx status, malformed body or
                a JSON-RPC error object
        """
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        try:
            response = self.session.post(self.endpoint, json=body, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise RpcError(
                f"{method} failed: {e}",
                method=method,
                endpoint=self.endpoint,
                status_code=status,
            ) from e
        except requests.RequestException as e:
            raise RpcError(
                f"{method} failed: {e}", method=method, endpoint=self.endpoint
            ) from e
        except ValueError as e:
            raise RpcError(
                f"{method} returned invalid JSON: {e}",
                method=method,
                endpoint=self.endpoint,
            ) from e

        if not isinstance(data, dict):
            raise RpcError(
                f"{method} returned unexpected body", method=method, endpoint=self.endpoint
            )
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RpcError(
                f"{method} error: {message}",
                method=method,
                endpoint=self.endpoint,
                details={"error": error},
            )
        return data.get("result")

    def _config(self) -> Dict[str, str]:
        return {"commitment": self.commitment}

    def get_balance(self, address: str) -> Decimal:
        """Balance of an account in SOL."""
        result = self.call("getBalance", [address, self._config()])
        lamports = result["value"] if isinstance(result, dict) else result
        return to_human(int(lamports), SOL.decimals)

    def get_slot(self) -> int:
        return int(self.call("getSlot", [self._config()]))

    def get_version(self) -> str:
        return self.call("getVersion")["solana-core"]

    def get_latest_blockhash(self) -> str:
        return self.call("getLatestBlockhash", [self._config()])["value"]["blockhash"]

    def is_connected(self) -> bool:
        try:
            self.call("getEpochInfo", [self._config()])
        except RpcError as e:
            logger.warning(f"RPC not reachable: {e}")
            return False
        return True

    def ping(self) -> float:
        """Round-trip time of a getSlot call, in milliseconds."""
        started = time.perf_counter()
        self.get_slot()
        return (time.perf_counter() - started) * 1000

    @staticmethod
    def get_estimated_transaction_fee() -> int:
        """Fixed estimate in lamports; an exact fee needs a full transaction message."""
        return ESTIMATED_TRANSACTION_FEE_LAMPORTS

    def close(self) -> None:
        self.session.close()


def devnet_rpc(**kwargs) -> SolanaRPC:
    return SolanaRPC(SolanaCluster.DEVNET, **kwargs)


def mainnet_rpc(**kwargs) -> SolanaRPC:
    return SolanaRPC(SolanaCluster.MAINNET, **kwargs)
