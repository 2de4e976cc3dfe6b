"""Base mainnet addresses and minimal contract ABIs."""

# Uniswap V3 on Base
UNISWAP_V3_FACTORY = "0x33128a8fC17869897dcE68Ed026d694621f6FDfD"
AERODROME_FACTORY = "0x420DD381b31aEf6683db6B902084cB0FFECe40Da"

WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# (quote token, quote symbol, fee tier) probed for pools
POOL_MATRIX: list[tuple[str, str, int]] = [
    (WETH, "WETH", 500),
    (WETH, "WETH", 3000),
    (USDC, "USDC", 500),
    (USDC, "USDC", 3000),
]

# Official Base infrastructure tokens, exempt from scam heuristics
CANONICAL_TOKENS: dict[str, str] = {
    "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913": "USDC",
    "0x4200000000000000000000000000000000000006": "WETH",
    "0x2ae3f1ec7f1f5012cfeab0185bfc7aa3cf0dec22": "cbETH",
    "0x60a3e35cc302bfa44cb288bc5a4f316fdb1adb42": "EURC",
    "0xd9aaec86b65d86f6a7b5b1b0c42ffa531710b6ca": "USDbC",
}

DEAD_ADDRESSES: list[str] = [
    "0x000000000000000000000000000000000000dead",
    "0x0000000000000000000000000000000000000000",
    "0x0000000000000000000000000000000000000001",
]

KNOWN_ADDRESSES: dict[str, str] = {
    UNISWAP_V3_FACTORY.lower(): "Uniswap V3 Factory",
    AERODROME_FACTORY.lower(): "Aerodrome Factory",
    WETH.lower(): "WETH",
    USDC.lower(): "USDC",
    "0x000000000000000000000000000000000000dead": "Burn Address",
    "0x0000000000000000000000000000000000000000": "Burn (Zero Address)",
}

# LP lock contracts -> platform label
KNOWN_LOCKERS: dict[str, str] = {
    "0x231278edd38b00b07fbd52120cef685b9baebcc1": "Team Finance",
    "0x71b5759d73262fbb223956913ecf4ecc51057641": "Unicrypt",
    "0xdba68f07d1b7ca219f78ae8582c213d975c25caf": "PinkLock",
}


def _view(name: str, inputs: list[tuple[str, str]], outputs: list[str]) -> dict:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t} for t in outputs],
    }


ERC20_ABI = [
    _view("name", [], ["string"]),
    _view("symbol", [], ["string"]),
    _view("decimals", [], ["uint8"]),
    _view("totalSupply", [], ["uint256"]),
    _view("balanceOf", [("account", "address")], ["uint256"]),
    _view("owner", [], ["address"]),
]

UNISWAP_V3_FACTORY_ABI = [
    _view("getPool", [("tokenA", "address"), ("tokenB", "address"), ("fee", "uint24")], ["address"]),
]

LP_ABI = [
    _view("balanceOf", [("account", "address")], ["uint256"]),
    _view("totalSupply", [], ["uint256"]),
]

_ATTESTATION_TUPLE = {
    "name": "",
    "type": "tuple[]",
    "components": [
        {"name": "token", "type": "address"},
        {"name": "score", "type": "uint8"},
        {"name": "riskLevel", "type": "string"},
        {"name": "reportCID", "type": "string"},
        {"name": "timestamp", "type": "uint256"},
        {"name": "scanner", "type": "address"},
    ],
}

PINIOSCAN_ABI = [
    {
        "name": "submitAttestation",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "score", "type": "uint8"},
            {"name": "riskLevel", "type": "string"},
            {"name": "reportCID", "type": "string"},
        ],
        "outputs": [],
    },
    {
        "name": "getAttestations",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "token", "type": "address"}],
        "outputs": [_ATTESTATION_TUPLE],
    },
    {
        "name": "getLatestScore",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "token", "type": "address"}],
        "outputs": [
            {"name": "score", "type": "uint8"},
            {"name": "riskLevel", "type": "string"},
            {"name": "timestamp", "type": "uint256"},
        ],
    },
    _view("totalScans", [], ["uint256"]),
    _view("getRecentTokens", [("count", "uint256")], ["address[]"]),
]
