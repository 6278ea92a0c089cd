"""Contract address extraction from free-form post text.

A post is treated as being about one primary token: for each address family
only the first match is taken, later addresses (replies, unrelated mentions)
are dropped.
"""

import re
from dataclasses import dataclass
from enum import Enum

EVM_ADDRESS_RE = re.compile(r"\b0x[a-fA-F0-9]{40}\b")
# base58 alphabet: no 0, O, I, l
SOL_ADDRESS_RE = re.compile(r"\b[1-9A-HJ-NP-Za-km-z]{32,44}\b")


class ChainFamily(str, Enum):
    EVM = "EVM"
    SOL = "SOL"


@dataclass(frozen=True)
class AddressSignal:
    """A contract address detected in a post."""

    address: str
    family: ChainFamily


def extract_addresses(text: str) -> list[AddressSignal]:
    """Return at most one EVM and one SOL signal, EVM first."""
    signals: list[AddressSignal] = []

    evm = EVM_ADDRESS_RE.search(text)
    if evm:
        signals.append(AddressSignal(evm.group(0), ChainFamily.EVM))

    sol = SOL_ADDRESS_RE.search(text)
    if sol and not sol.group(0).startswith("0x"):
        signals.append(AddressSignal(sol.group(0), ChainFamily.SOL))

    return signals


def first_of_family(signals: list[AddressSignal], family: ChainFamily) -> AddressSignal | None:
    return next((s for s in signals if s.family == family), None)
