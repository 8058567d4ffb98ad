"""Ledger configuration from CLI args and environment.

Environment variables have HIGHEST priority, then CLI args, then the
LedgerConfig defaults.
"""

import argparse
import os
from typing import Any, Optional

import bittensor as bt

from retailtrust.ledger.models import BURN_ADDRESS, LedgerConfig, Tier

ENV_PREFIX = "RETAILTRUST_LEDGER__"

_TIER_MINIMUM_KEYS = {
    Tier.BRONZE: "bronze_minimum",
    Tier.SILVER: "silver_minimum",
    Tier.GOLD: "gold_minimum",
}


def add_args(parser: argparse.ArgumentParser) -> None:
    """
    Adds ledger arguments to the parser.
    """
    defaults = LedgerConfig()

    parser.add_argument(
        "--ledger.admin",
        type=str,
        help="Identity allowed to pause, mint and initialize.",
        default=None,
    )

    parser.add_argument(
        "--ledger.max_supply",
        type=int,
        help="Ceiling on total supply.",
        default=defaults.max_supply,
    )

    parser.add_argument(
        "--ledger.lockup_period",
        type=int,
        help="Blocks a new stake stays locked.",
        default=defaults.lockup_period,
    )

    parser.add_argument(
        "--ledger.burn_address",
        type=str,
        help="Reserved identity that can never receive tokens.",
        default=BURN_ADDRESS,
    )

    for tier, key in _TIER_MINIMUM_KEYS.items():
        parser.add_argument(
            f"--ledger.{key}",
            type=int,
            help=f"Minimum stake for the {tier.name.lower()} tier.",
            default=defaults.minimum_for(tier),
        )


def _setting(args: Optional[argparse.Namespace], key: str, default: Any) -> Any:
    env_value = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
    if env_value is not None and env_value != "":
        return env_value
    if args is not None:
        value = getattr(args, f"ledger.{key}", None)
        if value is not None:
            return value
    return default


def load_ledger_config(args: Optional[argparse.Namespace] = None) -> LedgerConfig:
    """Build a LedgerConfig, env over CLI over defaults.

    Raises:
        pydantic.ValidationError: a value is out of range or not an integer.
    """
    defaults = LedgerConfig()
    config = LedgerConfig(
        max_supply=_setting(args, "max_supply", defaults.max_supply),
        lockup_period=_setting(args, "lockup_period", defaults.lockup_period),
        burn_address=_setting(args, "burn_address", defaults.burn_address),
        tier_minimums={
            tier: _setting(args, key, defaults.minimum_for(tier))
            for tier, key in _TIER_MINIMUM_KEYS.items()
        },
    )
    bt.logging.debug({"ledger_config": config.model_dump(mode="json")})
    return config


def load_admin(args: Optional[argparse.Namespace] = None) -> str:
    """Resolve the admin identity. Empty string when unset."""
    return str(_setting(args, "admin", "") or "")


def build_parser(description: str = "RetailTrust ledger") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    bt.logging.add_args(parser)
    add_args(parser)
    return parser


__all__ = ["ENV_PREFIX", "add_args", "build_parser", "load_admin", "load_ledger_config"]
