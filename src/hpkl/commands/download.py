# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import logging
from pathlib import Path

from .input import ProjectInput
from ..config import AppConfig, default_cache_dir
from ..download import PackageDownloader, DownloadStatus
from ..lockfile import read_lockfile
from ..resolver import Resolver
from ..resolver.resolver import create_transports


logger = logging.getLogger(__name__)


class DownloadCmd(ProjectInput):
    """
    Resolves the dependencies of a project and downloads all packages which are
    not in the package cache yet.
    """

    @staticmethod
    def _check_lockfile(project_dir: Path, resolver: Resolver, resolved) -> None:
        """
        Warn about packages whose metadata differs from the one recorded in the lock-file
        """
        locked = read_lockfile(project_dir)
        if locked is None:
            return
        current = resolver.project_dependencies(resolved).resolved_dependencies
        for line, rd in current.items():
            lrd = locked.resolved_dependencies.get(line)
            if lrd is None:
                logger.warning(f"{line} is not in the lock-file")
            elif lrd.uri != rd.uri or lrd.checksums != rd.checksums:
                logger.warning(f"{line} differs from the lock-file: {rd.uri} != {lrd.uri}")

    @classmethod
    def run(cls, args):
        config = AppConfig.from_args(args)
        with config.create_session() as rs:
            transports = create_transports(config, rs)
            resolver = Resolver(transports)
            project, resolved = cls.resolve_project(config, resolver)
            cls._check_lockfile(project.project_dir, resolver, resolved)

            downloader = PackageDownloader(config.package_cache_dir, transports)
            if not args.json:
                missing = [m for m in resolved.values() if not downloader.exists(m)]
                cached = len(resolved) - len(missing)
                print(f"downloading {len(missing)} packages (cached: {cached})")

            for r in downloader.download(resolved):
                if args.json:
                    print(r.json())
                elif r.status == DownloadStatus.OK:
                    print(f"{r.metadata.package_uri} -> {r.path}")
                logger.debug(f"{r.status}: {r.metadata.package_uri}")

    @classmethod
    def setup_parser(cls, parser):
        cls.parser_add_project_args(parser)
        parser.add_argument(
            "--cache-dir",
            default=default_cache_dir(),
            help="package cache directory (default: $PKL_CACHE_DIR or %(default)s)",
        )
