"""
Arbitrage detection over the ordered swaps of a single transaction.

Two patterns are recognised:

- Cyclic: the whole swap sequence forms one connected token path that
  returns to its starting token with more than it started with
  (A -> B -> ... -> A).
- Cross-DEX: the same token pair is traded on two different pools, buying
  with the reference token (WETH) on one and selling back into it on the
  other for a gain.

Findings are then annotated with gas cost from the transaction receipt.
"""

import dataclasses
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from web3 import Web3

from .constants import WETH
from .exceptions import RPCError
from .interfaces import ChainReader
from .types import Arbitrage, ArbitrageType, NormalizedSwap, TokenFlow
from .utils import short_hex

logger = logging.getLogger(__name__)


def derive_token_flow(swap: NormalizedSwap) -> Optional[TokenFlow]:
    """
    Work out which token the trader put in and which came out.

    Priority:
      1. amount0In > 0 and amount1Out > 0: token0 -> token1
      2. amount1In > 0 and amount0Out > 0: token1 -> token0
      3. otherwise each side is resolved independently from whichever
         In / Out amount is positive (partial V3-style swaps)

    Returns None when either side can't be resolved.
    """
    if swap.amount0_in > 0 and swap.amount1_out > 0:
        return TokenFlow(swap.token0, swap.token1, swap.amount0_in, swap.amount1_out)
    if swap.amount1_in > 0 and swap.amount0_out > 0:
        return TokenFlow(swap.token1, swap.token0, swap.amount1_in, swap.amount0_out)

    token_in = token_out = None
    amount_in = amount_out = 0

    if swap.amount0_in > 0:
        token_in, amount_in = swap.token0, swap.amount0_in
    elif swap.amount1_in > 0:
        token_in, amount_in = swap.token1, swap.amount1_in

    if swap.amount0_out > 0:
        token_out, amount_out = swap.token0, swap.amount0_out
    elif swap.amount1_out > 0:
        token_out, amount_out = swap.token1, swap.amount1_out

    if token_in is None or token_out is None:
        return None
    return TokenFlow(token_in, token_out, amount_in, amount_out)


def pair_key(token_a: str, token_b: str) -> Tuple[str, str]:
    """
    Unordered token pair key.

    Ordered by the textual checksum representation, not the numeric address
    value; mixed-case checksums make the two orders disagree for some pairs.
    """
    if token_a < token_b:
        return token_a, token_b
    return token_b, token_a


class ArbitrageDetector:
    """Detects arbitrage from the decoded swaps of a transaction."""

    def __init__(self, chain: ChainReader, reference_token: str = WETH):
        self.chain = chain
        self.reference_token = Web3.to_checksum_address(reference_token)

    async def detect_arbitrage(
        self, tx_hash: str, swaps: Sequence[NormalizedSwap]
    ) -> List[Arbitrage]:
        """
        Analyze the swaps of one transaction.

        Swaps are sorted by log index first so detection follows execution
        order regardless of how the caller collected them.
        """
        if len(swaps) < 2:
            return []

        ordered = sorted(swaps, key=lambda swap: swap.log_index)

        arbitrages: List[Arbitrage] = []

        cyclic = self.detect_cyclic(ordered)
        if cyclic is not None:
            arbitrages.append(cyclic)

        arbitrages.extend(self.detect_cross_dex(ordered))

        return [await self.augment_with_gas(tx_hash, arb) for arb in arbitrages]

    def detect_cyclic(self, swaps: Sequence[NormalizedSwap]) -> Optional[Arbitrage]:
        """
        Detect an A -> B -> ... -> A arbitrage spanning every swap.

        The full ordered flow list must be connected; a sub-cycle hidden among
        unrelated swaps is not searched for.
        """
        if len(swaps) < 2:
            return None

        flows = [flow for flow in map(derive_token_flow, swaps) if flow is not None]
        if len(flows) < 2:
            return None

        first_token = flows[0].token_in
        last_token = flows[-1].token_out
        if first_token != last_token:
            return None

        for current, following in zip(flows, flows[1:]):
            if current.token_out != following.token_in:
                return None

        amount_in = flows[0].amount_in
        amount_out = flows[-1].amount_out
        if amount_out <= amount_in:
            return None

        profit = amount_out - amount_in
        first = swaps[0]

        logger.info(
            f"Detected cyclic arbitrage tx={first.tx_hash} profit={profit} "
            f"token={first_token} swaps={len(swaps)}"
        )

        return Arbitrage(
            type=ArbitrageType.CYCLIC,
            tx_hash=first.tx_hash,
            block_number=first.block_number,
            # Approximation: a router contract may be the sender rather than
            # the searcher's EOA
            arbitrageur=first.sender,
            path=tuple(swaps),
            token_start=first_token,
            token_end=last_token,
            amount_in=amount_in,
            amount_out=amount_out,
            profit=profit,
            profit_token=first_token,
        )

    def detect_cross_dex(self, swaps: Sequence[NormalizedSwap]) -> List[Arbitrage]:
        """
        Detect same-pair arbitrage across different pools.

        Within a pair, the first buy leg and the first sell leg in log-index
        order are used.
        """
        ref = self.reference_token

        pair_swaps: Dict[Tuple[str, str], List[NormalizedSwap]] = {}
        for swap in swaps:
            pair_swaps.setdefault(pair_key(swap.token0, swap.token1), []).append(swap)

        arbitrages: List[Arbitrage] = []

        for pair, swaps_for_pair in pair_swaps.items():
            if len(swaps_for_pair) < 2:
                continue

            if len({swap.pool for swap in swaps_for_pair}) < 2:
                continue

            buy_swap: Optional[NormalizedSwap] = None
            sell_swap: Optional[NormalizedSwap] = None

            for swap in swaps_for_pair:
                if ref not in (swap.token0, swap.token1):
                    continue
                spent_ref = (swap.token0 == ref and swap.amount0_in > 0) or (
                    swap.token1 == ref and swap.amount1_in > 0
                )
                if spent_ref:
                    if buy_swap is None:
                        buy_swap = swap
                elif sell_swap is None:
                    sell_swap = swap

            if buy_swap is None or sell_swap is None:
                continue
            if buy_swap.pool == sell_swap.pool:
                continue

            ref_in = buy_swap.amount0_in if buy_swap.token0 == ref else buy_swap.amount1_in
            ref_out = (
                sell_swap.amount0_out if sell_swap.token0 == ref else sell_swap.amount1_out
            )
            if ref_out <= ref_in:
                continue

            profit = ref_out - ref_in

            logger.info(
                f"Detected cross-DEX arbitrage tx={buy_swap.tx_hash} profit={profit} "
                f"pair={short_hex(pair[0])}-{short_hex(pair[1])}"
            )

            arbitrages.append(
                Arbitrage(
                    type=ArbitrageType.CROSS_DEX,
                    tx_hash=buy_swap.tx_hash,
                    block_number=buy_swap.block_number,
                    arbitrageur=buy_swap.sender,
                    path=(buy_swap, sell_swap),
                    token_start=ref,
                    token_end=ref,
                    amount_in=ref_in,
                    amount_out=ref_out,
                    profit=profit,
                    profit_token=ref,
                )
            )

        return arbitrages

    async def augment_with_gas(self, tx_hash: str, arb: Arbitrage) -> Arbitrage:
        """
        Attach gas used, gas price and net profit.

        Gas data is best effort: if either lookup fails the finding is kept
        with net_profit unset.
        """
        try:
            receipt = await self.chain.get_transaction_receipt(tx_hash)
        except RPCError as e:
            logger.warning(f"Gas data unavailable for {tx_hash}: {e}")
            return arb

        try:
            tx = await self.chain.get_transaction(tx_hash)
        except RPCError as e:
            logger.warning(f"Gas price unavailable for {tx_hash}: {e}")
            return dataclasses.replace(arb, gas_used=receipt.gas_used)

        gas_cost = receipt.gas_used * tx.gas_price
        return dataclasses.replace(
            arb,
            gas_used=receipt.gas_used,
            gas_price=tx.gas_price,
            net_profit=arb.profit - gas_cost,
        )

    @staticmethod
    def is_profitable(arb: Arbitrage) -> bool:
        """Net profit sign when gas is known, otherwise gross profit sign."""
        return arb.is_profitable
