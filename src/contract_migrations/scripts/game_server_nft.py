"""GameServerNFT logic contract and its transparent proxy."""

from typing import Any, List, Sequence

from ..constants import ROLE_GAME_SERVER_ADMIN, ROLE_GAME_SERVER_SUPER_ADMIN
from ..exceptions import ConfigError
from ..network import Network
from ..steps import ContractStep, DeploymentStep, ProxyStep, is_zero_address

BLACKLIST_CONTRACT = "BlackOrWhiteList"


class GameServerNFT(ContractStep):
    target_name = "GameServerNFT"


class GameServerNFTProxy(ProxyStep):
    """
    Proxy for GameServerNFT.

    initialize(superAdmin, blacklist) bootstraps the super admin; the
    execution phase then grants the game server admin role.
    """

    target_name = "GameServerNFTProxy"
    logic_name = "GameServerNFT"
    depends_on = ("GameServerNFT", BLACKLIST_CONTRACT)
    grant_method = "grantAdminRoles"
    grant_roles = (ROLE_GAME_SERVER_ADMIN,)

    def initializer_args(self, network: Network) -> Sequence[Any]:
        super_admin = network.get_config().roles.address_of(ROLE_GAME_SERVER_SUPER_ADMIN)
        if is_zero_address(super_admin):
            raise ConfigError(f"Role {ROLE_GAME_SERVER_SUPER_ADMIN} is not configured")
        return (super_admin, network.get_address(BLACKLIST_CONTRACT))


def game_server_nft_steps() -> List[DeploymentStep]:
    return [GameServerNFT(), GameServerNFTProxy()]
