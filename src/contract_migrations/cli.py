"""Command line entry point: deploy a project's contracts."""

import argparse
import dataclasses
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from eth_account.signers.local import LocalAccount
from eth_utils import is_same_address
from web3 import Web3

from .artifacts import load_artifacts
from .compiler import DEFAULT_SOLC_VERSION, compile_sources
from .config import MigrationConfig, load_config, resolve_rpc_url
from .constants import CHAIN_CONFIG, KEYSTORE_PASSWORD_ENV
from .exceptions import ConfigError, MigrationError, RPCError
from .migration import Migration
from .network import Network
from .paths import get_record_path
from .registry import ContractRegistry
from .rpc import check_chain_id
from .scripts import MIGRATIONS
from .simulation import EphemeralNetwork
from .web3_network import Web3Network, load_keystore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contract-migrations",
        description="Deploy and configure a project's contracts in order.",
    )
    parser.add_argument("--project", default="game-server-nft", choices=sorted(MIGRATIONS), help="Migration script set")
    parser.add_argument("--artifacts", default="artifacts", help="Compiled contract artifacts directory")
    parser.add_argument("--sources", default="", help="Solidity sources to compile instead of loading --artifacts")
    parser.add_argument("--solc-version", default=DEFAULT_SOLC_VERSION, help="solc release used with --sources")
    parser.add_argument("--config", default="", help="Config file path (roles, addresses, chain)")
    parser.add_argument("--keystore", default="", help="Keystore path of the deploying account")
    parser.add_argument("--threshold", type=int, default=1, help="Signature threshold")
    parser.add_argument("--filter", default="", help="Comma-separated contract names to deploy")
    parser.add_argument("--from", dest="from_address", default="", help="Expected deployer address")
    parser.add_argument("--datadir", default="./data", help="Data directory for deployment records")
    parser.add_argument("--chain", default="", help="Chain name (overrides the config file)")
    parser.add_argument("--rpc-url", default="", help="RPC endpoint (overrides config and environment)")
    parser.add_argument("--label", default="", help="Snapshot label; labelled runs keep a separate record")
    parser.add_argument("--record", action="store_true", help="Persist deployed addresses to the data directory")
    parser.add_argument("--test", action="store_true", help="Run against an ephemeral in-memory network")
    parser.add_argument("--verify", action="store_true", help="Verify deployed runtime bytecode")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def unlock_account(args: argparse.Namespace) -> LocalAccount:
    """
    Decrypt the --keystore account, reading the password from the environment or a prompt.

    Raises:
        ConfigError: If the keystore can't be decrypted or doesn't match --from
    """
    password = os.environ.get(KEYSTORE_PASSWORD_ENV)
    if password is None:
        password = getpass.getpass(f"Password for {args.keystore}: ")
    account = load_keystore(args.keystore, password)

    if args.from_address and not is_same_address(account.address, args.from_address):
        raise ConfigError(f"Keystore account {account.address} does not match --from {args.from_address}")
    return account


def connect_ephemeral(args: argparse.Namespace, config: MigrationConfig, registry: ContractRegistry) -> Network:
    """
    Build an EphemeralNetwork for --test runs.

    The keystore account deploys when --keystore is given, so a run that
    deploys from the configured super admin behaves as it would on a live
    chain. Without one a throwaway account deploys, and steps that need a
    role held by a configured account will halt.

    Raises:
        ConfigError: If --from is given without its keystore
    """
    if args.record:
        logger.warning("--record is ignored with --test: ephemeral deployments don't outlive the run")

    deployer = None
    if args.keystore:
        deployer = unlock_account(args)
    elif args.from_address:
        raise ConfigError("--from needs the matching --keystore to send from it in --test mode")

    network = EphemeralNetwork(registry, config, deployer=deployer, verify_code=args.verify)
    logger.info("Deploying to an ephemeral chain from %s", network.account_address)
    return network


def connect(args: argparse.Namespace, config: MigrationConfig, registry: ContractRegistry) -> Network:
    """
    Build a Web3Network for a live chain.

    Raises:
        ConfigError: If the keystore is missing or doesn't match --from
        RPCError: If the endpoint is unreachable or serves another chain
    """
    rpc_url = resolve_rpc_url(config, args.rpc_url)
    if config.chain_id is not None:
        check_chain_id(rpc_url, config.chain_id)

    if not args.keystore:
        raise ConfigError("--keystore is required unless running with --test")
    account = unlock_account(args)

    w3 = Web3(Web3.HTTPProvider(rpc_url))
    if not w3.is_connected():
        raise RPCError(f"Could not connect to RPC at {rpc_url}")

    record_path = get_record_path(config.chain, args.datadir, args.label) if args.record else None
    chain_name = CHAIN_CONFIG.get(config.chain, {}).get("chain_name", config.chain)
    logger.info("Deploying to %s via %s from %s", chain_name, rpc_url, account.address)
    return Web3Network(w3, account, registry, config, verify_code=args.verify, record_path=record_path)


def run(args: argparse.Namespace) -> int:
    if args.threshold != 1:
        raise ConfigError("Multi-signature deployment (threshold > 1) is not supported")

    config = load_config(args.config) if args.config else MigrationConfig()
    if args.chain:
        config = dataclasses.replace(config, chain=args.chain)

    if args.sources:
        _, ordered = compile_sources(Path(args.sources), solc_version=args.solc_version)
    else:
        _, ordered = load_artifacts(Path(args.artifacts))
    registry = ContractRegistry(ordered)

    if args.test:
        network: Network = connect_ephemeral(args, config, registry)
    else:
        network = connect(args, config, registry)

    steps = MIGRATIONS[args.project]()
    result = Migration(network, steps, name_filter=args.filter, snapshot_label=args.label).run()

    for name in result.deployed:
        logger.info("  %s: %s", name, network.get_address(name))
    logger.info("%s deployment finished.", args.project)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except MigrationError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
