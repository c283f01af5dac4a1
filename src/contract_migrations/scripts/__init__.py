"""Deployment steps per project, in deployment order."""

from typing import Callable, Dict, List

from ..steps import DeploymentStep
from .game_server_nft import GameServerNFT, GameServerNFTProxy, game_server_nft_steps

# Project name -> factory building a fresh step list for one run
MIGRATIONS: Dict[str, Callable[[], List[DeploymentStep]]] = {
    "game-server-nft": game_server_nft_steps,
}

__all__ = [
    "MIGRATIONS",
    "GameServerNFT",
    "GameServerNFTProxy",
    "game_server_nft_steps",
]
