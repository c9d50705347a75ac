"""ABI files on disk."""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

ABI_SUFFIXES = (".abi", ".json")


class AbiDirectory:
    """Interface source backed by a directory of ``*.abi`` / ``*.json`` files."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _files(self) -> dict[str, Path]:
        if not self.path.is_dir():
            raise FileNotFoundError(f"ABI directory does not exist: {self.path}")
        files: dict[str, Path] = {}
        for entry in sorted(self.path.iterdir()):
            if entry.is_file() and entry.suffix in ABI_SUFFIXES:
                files.setdefault(entry.stem, entry)
        return files

    def list_available(self) -> List[str]:
        return list(self._files())

    def load(self, name: str) -> bytes:
        try:
            path = self._files()[name]
        except KeyError as exc:
            raise FileNotFoundError(f"no ABI named {name} in {self.path}") from exc
        return path.read_bytes()


def seed_bundled_abis(target: str | Path) -> list[Path]:
    """Copy the ABIs shipped with the package into ``target``.

    Existing files are never overwritten.  Returns the paths written.
    """

    target_dir = Path(target).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    bundled = resources.files("abi_wizard").joinpath("abis")
    for item in bundled.iterdir():
        if not item.name.endswith(ABI_SUFFIXES):
            continue
        destination = target_dir / item.name
        if destination.exists():
            continue
        destination.write_bytes(item.read_bytes())
        written.append(destination)
        logger.debug("Seeded bundled ABI %s", destination)
    return written
