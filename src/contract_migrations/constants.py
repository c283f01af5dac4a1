"""Configuration constants for contract-migrations library."""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Lifecycle phase names, used in halt reports and logs
PHASE_INIT = "init"
PHASE_DEPLOYMENT = "deployment"
PHASE_VALIDATION = "validation"
PHASE_EXECUTION = "execution"

# Step outcome statuses
STATUS_DEPLOYED = "deployed"
STATUS_SKIPPED = "skipped"

# Role names read from the configuration file
ROLE_PROXY_ADMIN = "proxy_admin"
ROLE_GAME_SERVER_SUPER_ADMIN = "game_server_super_admin"
ROLE_GAME_SERVER_ADMIN = "game_server_admin_role"

# Chain configuration based on ethereum-lists/chains
CHAIN_CONFIG = {
    "wemix": {
        "chain_id": 1111,
        "chain_name": "WEMIX3.0 Mainnet",
        "default_rpc_env": "WEMIX_RPC_URL",
    },
    "wemix-testnet": {
        "chain_id": 1112,
        "chain_name": "WEMIX3.0 Testnet",
        "default_rpc_env": "WEMIX_TESTNET_RPC_URL",
    },
    "localhost": {
        "chain_id": 1337,
        "chain_name": "Local development chain",
        "default_rpc_env": "LOCAL_RPC_URL",
    },
}

# Used when neither the config file nor the environment names an endpoint
DEFAULT_RPC_URL = "http://127.0.0.1:8545"

# Environment variable holding the keystore password
KEYSTORE_PASSWORD_ENV = "KEYSTORE_PASSWORD"
