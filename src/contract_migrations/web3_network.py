"""Network facade backed by a web3 JSON-RPC client."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import is_same_address
from web3 import Web3
from web3.exceptions import Web3Exception

from .abi import find_function
from .config import MigrationConfig
from .exceptions import AbiEncodingError, ConfigError, RPCError, TransactionFailedError
from .network import Network, Sender
from .registry import ContractRegistry
from .types import ContractArtifact, Receipt

logger = logging.getLogger(__name__)

# Reverts and rejections surface as Web3Exception; dropped connections as requests errors
CLIENT_ERRORS = (Web3Exception, ValueError, TypeError, requests.RequestException)


def load_keystore(keystore_path: Union[Path, str], password: str) -> LocalAccount:
    """
    Decrypt a keystore (V3 JSON) file.

    Args:
        keystore_path: Path to the keystore file
        password: Keystore password

    Returns:
        LocalAccount able to sign transactions

    Raises:
        ConfigError: If the file is missing or the password is wrong
    """
    try:
        with open(keystore_path) as f:
            keyfile = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Keystore not found: {keystore_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Keystore is not valid JSON: {keystore_path}") from e

    try:
        private_key = Account.decrypt(keyfile, password)
    except ValueError as e:
        raise ConfigError(f"Cannot decrypt keystore {keystore_path}: {e}") from e

    return Account.from_key(private_key)


class Web3Network(Network):
    """Deploys and calls contracts through a web3 provider, signing locally."""

    def __init__(
        self,
        w3: Web3,
        account: LocalAccount,
        registry: ContractRegistry,
        config: MigrationConfig,
        verify_code: bool = False,
        record_path: Optional[Path] = None,
        receipt_timeout: int = 120,
    ):
        super().__init__(registry, config, verify_code=verify_code, record_path=record_path)
        self.w3 = w3
        self.account = account
        self.receipt_timeout = receipt_timeout

    @property
    def account_address(self) -> str:
        return self.account.address

    def signer_for(self, address: str) -> LocalAccount:
        """
        Get the local account that signs transactions from address.

        Raises:
            TransactionFailedError: If no key for address is unlocked
        """
        if is_same_address(address, self.account.address):
            return self.account
        raise TransactionFailedError(f"Cannot sign for {address}: only {self.account.address} is unlocked")

    def _tx_params(self, signer: LocalAccount, value: int) -> Dict[str, Any]:
        return {
            "from": signer.address,
            "value": value,
            "nonce": self.w3.eth.get_transaction_count(signer.address, "pending"),
        }

    def _send(self, signer: LocalAccount, tx: Dict[str, Any]) -> Receipt:
        signed = signer.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.debug("Sent transaction %s", Web3.to_hex(tx_hash))

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        return Receipt(
            success=receipt["status"] == 1,
            transaction_hash=Web3.to_hex(tx_hash),
            contract_address=receipt.get("contractAddress"),
            block_number=receipt.get("blockNumber"),
        )

    def deploy(self, contract: ContractArtifact, value: int, *args: Any) -> Optional[Receipt]:
        factory = self.w3.eth.contract(abi=contract.abi, bytecode=contract.bytecode)
        try:
            tx = factory.constructor(*args).build_transaction(self._tx_params(self.account, value))
            receipt = self._send(self.account, tx)
        except CLIENT_ERRORS as e:
            logger.error("Failed to deploy %s: %s", contract.name, e)
            return None

        if receipt.success:
            logger.info("%s deployed at %s (tx %s)", contract.name, receipt.contract_address, receipt.transaction_hash)
        else:
            logger.error("Deployment of %s reverted (tx %s)", contract.name, receipt.transaction_hash)
        return receipt

    def execute_contract(
        self,
        sender: Sender,
        contract: ContractArtifact,
        method: str,
        value: int,
        is_static: bool,
        *args: Any,
    ) -> Any:
        signer = None if is_static else self.signer_for(sender.address)
        if contract.address is None:
            raise TransactionFailedError(f"Contract '{contract.name}' is not deployed")

        abi = contract.call_abi()
        try:
            entry = find_function(abi, method, len(args))
        except AbiEncodingError as e:
            raise TransactionFailedError(str(e)) from e

        instance = self.w3.eth.contract(address=contract.address, abi=abi)
        try:
            function = instance.functions[method](*args)
            if is_static:
                result = function.call({"from": sender.address, "value": value})
                outputs = entry.get("outputs", [])
                # web3 unwraps single outputs
                if len(outputs) == 1:
                    return [result]
                return list(result) if outputs else []

            tx = function.build_transaction(self._tx_params(signer, value))
            receipt = self._send(signer, tx)
        except CLIENT_ERRORS as e:
            raise TransactionFailedError(f"{contract.name}.{method} failed: {e}") from e

        if not receipt.success:
            raise TransactionFailedError(f"{contract.name}.{method} reverted (tx {receipt.transaction_hash})")
        logger.info("%s.%s confirmed (tx %s)", contract.name, method, receipt.transaction_hash)
        return receipt

    def get_code(self, address: str) -> str:
        try:
            return Web3.to_hex(self.w3.eth.get_code(address))
        except CLIENT_ERRORS as e:
            raise RPCError(f"Could not read code at {address}: {e}") from e
