from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError


@dataclass
class OutputDirectory:
    root: Path

    def exists(self) -> bool:
        return self.root.exists()

    def create(self) -> None:
        """Create the root; fails if it already exists."""
        self.root.mkdir(parents=True, exist_ok=False)

    def path_for(self, relative_path: str) -> Path:
        root = self.root.resolve()
        path = (root / relative_path).resolve()
        if path == root or root not in path.parents:
            raise ConfigError(f"Refusing to write outside {root}: {relative_path}")
        return path

    def write_file(self, relative_path: str, content: bytes) -> Path:
        path = self.path_for(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    def remove(self) -> None:
        shutil.rmtree(self.root)
