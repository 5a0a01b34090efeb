"""
Chain constants.

Factory event layout, deploy method layout, verified deployer overrides,
excluded deployer addresses and the pool probe grid (Base mainnet).
"""

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Token factory
FACTORY_ADDRESS = "0x9bd7dcc13c532f37f65b0bf078c8f83e037e7445"

TOKEN_CREATED_EVENT = (
    "TokenCreated(address,uint256,address,string,string,uint256,address,uint256)"
)
TOKEN_CREATED_TOPIC = Web3.to_hex(Web3.keccak(text=TOKEN_CREATED_EVENT))

# (token, tokenId, legacyDeployer, name, symbol, supply, recipient, recipientAmount)
TOKEN_CREATED_TYPES = [
    "address",
    "uint256",
    "address",
    "string",
    "string",
    "uint256",
    "address",
    "uint256",
]

# All tokens minted by the factory use 18 decimals
TOKEN_DECIMALS = 18

# deployToken(string _name, string _symbol, uint256 _supply, int24 _initialTick,
#             uint24 _fee, bytes32 _salt, address _deployer, address _recipient,
#             uint256 _recipientAmount)
DEPLOY_TOKEN_SELECTOR = "0xaaf29850"
DEPLOY_TOKEN_ARG_TYPES = [
    "string",
    "string",
    "uint256",
    "int24",
    "uint24",
    "bytes32",
    "address",
    "address",
    "uint256",
]
DEPLOY_TOKEN_DEPLOYER_INDEX = 6

# Manually verified deployers, keyed by transaction hash
KNOWN_DEPLOYERS = {
    "0xd45006335d15893457b4cf57bd2528f26432c99ac3b8b086a27ac99bff5bf385": (
        "0x86e8d2532d531eceba1316f5e545c8af7b650146"
    ),
    "0x27257bcbb52cff88ac7272cfa53fafad83a141d1778593ebb74e2ecbf159cc53": (
        "0xca5799410f108e44ca5fb1ff38f96c3ac5926fac"
    ),
    "0x26ba12be030c1ad051d20a97df802661236f98b4c1117c39b9ed05506a354aa2": (
        "0xe5351fba63916f69a9f4a437d5bb5e2da5a0672f"
    ),
    "0xd1392dd1936c7841588a11a65cb252c5dddd9ede0a010727da38b2a154254d09": (
        "0x01eebdb7f6855f1ddfd38c1131d67e8ed462ec5e"
    ),
}

# Operational relay that submits deployments on behalf of users
RELAY_ADDRESS = "0x903878b49bba6c55d14857fbc25805de7825e231"

EXCLUDED_DEPLOYERS = frozenset({ZERO_ADDRESS, RELAY_ADDRESS})

UNKNOWN_DEPLOYER = "unknown"


# Uniswap V3 factory on Base
POOL_FACTORY_ADDRESS = "0x33128a8fc17869897dce68ed026d694621f6fdfd"

# (address, symbol) of commonly paired tokens on Base
COMMON_PAIRS = [
    ("0x4200000000000000000000000000000000000006", "WETH"),
    ("0xd9aaec86b65d86f6a7b5b1b0c42ffa531710b6ca", "USDbC"),
    ("0x833589fcd6edb6e08f4c7c32d4f71b54bda02913", "USDC"),
]

FEE_TIERS = [500, 3000, 10000]

GET_POOL_SIGNATURE = "getPool(address,address,uint24)"
POOL_LIQUIDITY_SIGNATURE = "liquidity()"
POOL_TOKEN0_SIGNATURE = "token0()"
POOL_TOKEN1_SIGNATURE = "token1()"
