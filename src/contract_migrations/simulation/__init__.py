"""Ephemeral in-process network for simulations and dry runs."""

from .network import DEFAULT_FUNDING, EphemeralNetwork

__all__ = [
    "DEFAULT_FUNDING",
    "EphemeralNetwork",
]
