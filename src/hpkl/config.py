# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from dataclasses import dataclass, field
from importlib.metadata import version
import os
from pathlib import Path

import requests

from .transport.adapters import LocalFileAdapter

DEFAULT_CACHE_DIR = Path.home() / ".pkl" / "cache"
# layout version of the package cache, shared with the pkl CLI
PACKAGE_CACHE_DIRNAME = "package-2"
DEFAULT_TIMEOUT = 30.0


@dataclass
class AppConfig:
    """
    Process-wide settings of a hpkl invocation.
    """

    working_dir: Path = field(default_factory=Path.cwd)
    cache_dir: Path = DEFAULT_CACHE_DIR
    plain_http: bool = False
    timeout: float | None = DEFAULT_TIMEOUT

    @property
    def package_cache_dir(self) -> Path:
        return self.cache_dir / PACKAGE_CACHE_DIRNAME

    @classmethod
    def from_args(cls, args) -> "AppConfig":
        return cls(
            working_dir=Path(args.project_dir).absolute(),
            cache_dir=Path(getattr(args, "cache_dir", None) or default_cache_dir()).expanduser(),
            plain_http=args.plain_http,
            timeout=args.timeout if args.timeout > 0 else None,
        )

    def create_session(self) -> requests.Session:
        """
        Session shared by all transports. Reuses connections and allows to reference
        archives on the local filesystem.
        """
        rs = requests.Session()
        rs.mount("file:///", LocalFileAdapter())
        rs.headers.update({"User-Agent": f"hpkl/{version('hpkl')}"})
        return rs


def default_cache_dir() -> str:
    return os.environ.get("PKL_CACHE_DIR", str(DEFAULT_CACHE_DIR))
