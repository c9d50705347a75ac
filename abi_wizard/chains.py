"""Chain metadata used to label the active network."""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import List, Sequence


@dataclass
class NativeCurrency:
    name: str
    symbol: str
    decimals: int


@dataclass
class ChainInfo:
    name: str
    chain_id: int
    short_name: str
    native_currency: NativeCurrency


def parse_chain_infos(raw: str) -> List[ChainInfo]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("chain list must be a JSON array")
    infos: List[ChainInfo] = []
    for item in data:
        currency = item.get("nativeCurrency") or {}
        infos.append(
            ChainInfo(
                name=str(item["name"]),
                chain_id=int(item["chainId"]),
                short_name=str(item.get("shortName", "")),
                native_currency=NativeCurrency(
                    name=str(currency.get("name", "")),
                    symbol=str(currency.get("symbol", "")),
                    decimals=int(currency.get("decimals", 18)),
                ),
            )
        )
    return infos


def load_chain_infos(path: str | Path | None = None) -> List[ChainInfo]:
    """Load chain metadata from ``path`` or from the bundled table."""

    if path is not None:
        return parse_chain_infos(Path(path).read_text(encoding="utf-8"))
    bundled = resources.files("abi_wizard").joinpath("chains.json")
    return parse_chain_infos(bundled.read_text(encoding="utf-8"))


def chain_info_by_id(infos: Sequence[ChainInfo], chain_id: int) -> ChainInfo | None:
    for info in infos:
        if info.chain_id == chain_id:
            return info
    return None
