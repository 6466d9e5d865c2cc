"""
MEV inspector CLI.

Watches new blocks for realized Uniswap V2/V3 arbitrage and logs each
finding with its gross and net profit.

Usage:
    mev-inspector
    mev-inspector --config configs/inspector.yaml
    mev-inspector --config configs/inspector.yaml --start-block 18000000
    mev-inspector --block 18000000
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from . import logging_config
from .config import InspectorConfig, load_config
from .exceptions import ConfigurationError, MevInspectorError
from .metrics import InspectorMetrics
from .pipeline import Inspector
from .rpc import ChainClient
from .utils import wei_to_ether
from .version import __version__

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mev-inspector",
        description="Realized DEX arbitrage inspector",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Follow the chain head with default config
  mev-inspector

  # Backfill from a given block in batches of 20
  mev-inspector --config configs/inspector.yaml --start-block 18000000 --batch-size 20

  # Inspect a single block and exit
  mev-inspector --block 18000000
        """,
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to config YAML file (default: ./config.yaml or ~/.mev-inspector/config.yaml)",
    )
    parser.add_argument("--start-block", type=int, help="First block to inspect")
    parser.add_argument("--batch-size", type=int, help="Max blocks per range")
    parser.add_argument(
        "--block",
        type=int,
        help="Inspect a single block, print findings and exit",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warn", "error"],
        help="Override logging level",
    )
    parser.add_argument(
        "--only-profitable",
        action="store_true",
        help="Only report arbitrages with positive net profit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def apply_overrides(config: InspectorConfig, args: argparse.Namespace) -> InspectorConfig:
    """Apply CLI flags on top of the loaded config, re-validating the result."""
    data = config.model_dump()
    if args.start_block is not None:
        data["inspector"]["start_block"] = args.start_block
    if args.batch_size is not None:
        data["inspector"]["batch_size"] = args.batch_size
    if args.only_profitable:
        data["inspector"]["only_profitable"] = True
    if args.log_level:
        data["logging"]["level"] = args.log_level
    return InspectorConfig.model_validate(data)


async def inspect_block(inspector: Inspector, block_number: int) -> int:
    arbitrages = await inspector.process_single_block(block_number)

    print(f"Block {block_number}: {len(arbitrages)} arbitrage(s)")
    for arb in arbitrages:
        net = "N/A" if arb.net_profit is None else wei_to_ether(arb.net_profit)
        print(
            f"  [{arb.type.value}] {arb.tx_hash} hops={arb.hops} "
            f"profit={wei_to_ether(arb.profit)} net={net}"
        )
    return 0


async def run_inspector(config: InspectorConfig, block: Optional[int] = None) -> int:
    loop = asyncio.get_running_loop()
    # connect() probes the node with blocking web3 calls
    chain = await loop.run_in_executor(None, ChainClient.connect, config.rpc)

    metrics = None
    if config.metrics.enabled:
        metrics = InspectorMetrics()
        await metrics.start_server(port=config.metrics.port, host=config.metrics.host)

    inspector = Inspector.from_config(config, chain, metrics)

    try:
        if block is not None:
            return await inspect_block(inspector, block)

        stop_event = asyncio.Event()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        await inspector.run(stop_event)
        return 0
    finally:
        if metrics:
            await metrics.stop_server()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigurationError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"❌ Invalid command line option: {e}", file=sys.stderr)
        return 1

    logging_config.setup(config.logging.level, config.logging.format)

    try:
        return asyncio.run(run_inspector(config, args.block))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 0
    except MevInspectorError as e:
        logger.error(f"Inspector failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
