"""
Chain constants used by the decoders and the arbitrage detector.

Event topics and call selectors are the keccak-derived identifiers of the
canonical Uniswap V2 pair / V3 pool ABIs.
"""

# event Swap(address indexed sender, uint amount0In, uint amount1In,
#            uint amount0Out, uint amount1Out, address indexed to)
UNISWAP_V2_SWAP_TOPIC = bytes.fromhex(
    "d78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822"
)

# event Swap(address indexed sender, address indexed recipient, int256 amount0,
#            int256 amount1, uint160 sqrtPriceX96, uint128 liquidity, int24 tick)
UNISWAP_V3_SWAP_TOPIC = bytes.fromhex(
    "c42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"
)

# 4-byte function selectors
TOKEN0_SELECTOR = bytes.fromhex("0dfe1681")  # token0()
TOKEN1_SELECTOR = bytes.fromhex("d21220a7")  # token1()
FEE_SELECTOR = bytes.fromhex("ddca3f43")  # fee()
GET_RESERVES_SELECTOR = bytes.fromhex("0902f1ac")  # getReserves()

WORD_SIZE = 32
UINT256_MODULUS = 1 << 256

# Wrapped native asset on Ethereum mainnet, the reference token for
# cross-DEX profit accounting
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

# Common V3 fee tiers (hundredths of a basis point)
V3_FEE_TIERS = {
    "LOWEST": 100,  # 0.01%
    "LOW": 500,  # 0.05%
    "MEDIUM": 3000,  # 0.30%
    "HIGH": 10000,  # 1.00%
}

WEI_PER_ETHER = 10**18
