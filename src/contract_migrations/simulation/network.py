"""Web3Network over an in-process eth-tester chain."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import EthereumTesterProvider, Web3

from ..config import MigrationConfig
from ..constants import ZERO_ADDRESS
from ..exceptions import TransactionFailedError
from ..network import Sender
from ..registry import ContractRegistry
from ..types import ContractArtifact, Receipt
from ..web3_network import Web3Network

logger = logging.getLogger(__name__)

DEFAULT_FUNDING = Web3.to_wei(1000, "ether")


class EphemeralNetwork(Web3Network):
    """
    Runs migrations against a throwaway chain (eth-tester on py-evm).

    Used by the simulation tests and by the CLI's --test mode. Contracts run
    their compiled bytecode. Every signer is funded from the tester's
    prefunded accounts, and transactions can be sent from any signer, not
    just the deployer. Pass the same w3 to several networks to share a chain.
    """

    def __init__(
        self,
        registry: ContractRegistry,
        config: MigrationConfig,
        deployer: Optional[LocalAccount] = None,
        signers: Iterable[LocalAccount] = (),
        w3: Optional[Web3] = None,
        funding: int = DEFAULT_FUNDING,
        verify_code: bool = False,
        record_path: Optional[Path] = None,
    ):
        if w3 is None:
            w3 = Web3(EthereumTesterProvider())
        super().__init__(
            w3,
            deployer or Account.create(),
            registry,
            config,
            verify_code=verify_code,
            record_path=record_path,
        )
        self.funding = funding
        self.signers: Dict[str, LocalAccount] = {}
        for account in (self.account, *signers):
            self.add_signer(account)

    def add_signer(self, account: LocalAccount) -> LocalAccount:
        """Fund an account and accept transactions from it."""
        if account.address not in self.signers:
            tx_hash = self.w3.eth.send_transaction(
                {"from": self.w3.eth.accounts[0], "to": account.address, "value": self.funding}
            )
            self.w3.eth.wait_for_transaction_receipt(tx_hash)
            self.signers[account.address] = account
            logger.debug("Funded %s with %d wei", account.address, self.funding)
        return account

    def new_account(self) -> LocalAccount:
        """Create, fund and register a fresh account."""
        return self.add_signer(Account.create())

    def signer_for(self, address: str) -> LocalAccount:
        signer = self.signers.get(to_checksum_address(address))
        if signer is None:
            raise TransactionFailedError(f"Cannot sign for {address}: not a signer on the ephemeral chain")
        return signer

    def as_sender(self, address: str) -> Sender:
        """View of deployed contracts for an arbitrary account."""
        return Sender(address=address, contracts=self.registry.deployed())

    def proxy_execute(self, account: str, proxy_name: str, method: str, *args: Any, value: int = 0) -> Receipt:
        """
        Send a logic-contract method through a deployed proxy.

        Raises:
            TransactionFailedError: If the proxy is not deployed, account is
                not a signer or the call reverts
        """
        proxy = self._deployed_proxy(proxy_name)
        return self.execute_contract(self.as_sender(account), proxy, method, value, False, *args)

    def proxy_call(self, proxy_name: str, method: str, *args: Any, account: str = ZERO_ADDRESS) -> Any:
        """Static call of a logic-contract method through a deployed proxy."""
        proxy = self._deployed_proxy(proxy_name)
        return self.execute_contract(self.as_sender(account), proxy, method, 0, True, *args)

    def _deployed_proxy(self, proxy_name: str) -> ContractArtifact:
        proxy = self.registry.get(proxy_name)
        if proxy is None or proxy.address is None:
            raise TransactionFailedError(f"Proxy '{proxy_name}' is not deployed")
        if proxy.logic is None:
            raise TransactionFailedError(f"'{proxy_name}' has no logic contract")
        return proxy
