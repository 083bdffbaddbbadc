# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
import json
import logging
import os
from pathlib import Path
import shutil
import tempfile

from ..package.checksum import verify_best_matching_digest
from ..package.model import Metadata, ResolverType, cache_path
from ..transport import Transport


logger = logging.getLogger(__name__)


class DownloadStatus(str, Enum):
    OK = "ok"
    CACHED = "cached"

    def __str__(self) -> str:
        return self.value


@dataclass
class DownloadResult:
    path: Path
    status: DownloadStatus
    metadata: Metadata

    def json(self) -> str:
        return json.dumps(
            {
                "status": str(self.status),
                "package": {
                    "name": self.metadata.name,
                    "version": self.metadata.version,
                    "uri": self.metadata.package_uri,
                },
                "path": str(self.path.absolute()),
            }
        )


class PackageDownloader:
    """
    Materialize resolved packages in the local package cache. Each package is stored
    in its own directory, holding the metadata document and the archive exactly as
    fetched. A package is only retrieved if its directory does not exist yet.
    """

    def __init__(self, basedir: Path | str, transports: Mapping[ResolverType, Transport]):
        self.basedir = Path(basedir)
        self.transports = transports

    def package_dir(self, metadata: Metadata) -> Path:
        return cache_path(self.basedir, metadata.package_uri)

    def exists(self, metadata: Metadata) -> bool:
        """
        Check if the package is in the cache. The content is not verified.
        """
        return self.package_dir(metadata).is_dir()

    def _fetch_archive(self, metadata: Metadata) -> bytes:
        archive = self.transports[metadata.resolver_type].resolve_archive(metadata)
        expected = metadata.package_zip_checksums.digests()
        if expected:
            verify_best_matching_digest(
                expected, archive, name=metadata.name, uri=metadata.package_uri
            )
        else:
            logger.warning(f"No archive checksum for '{metadata.package_uri}'. Skipping check")
        return archive

    def _store(self, metadata: Metadata, archive: bytes) -> Path:
        """
        Write metadata and archive to a staging directory next to the target and
        move it into place once complete.
        """
        target = self.package_dir(metadata)
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent))
        try:
            (staging / f"{metadata.basename()}.json").write_bytes(metadata.source)
            (staging / f"{metadata.basename()}.zip").write_bytes(archive)
            os.rename(staging, target)
        except OSError:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        logger.debug(f"Stored '{metadata.package_uri}' in '{target}'")
        return target

    def download(self, resolved: Mapping[str, Metadata]) -> Iterable[DownloadResult]:
        """
        Download all packages that are not cached yet and yield the on-disk location
        of every package. The first failure aborts the download; packages stored
        up to then stay in the cache.
        """
        logger.info("Starting download...")
        for metadata in resolved.values():
            target = self.package_dir(metadata)
            if self.exists(metadata):
                logger.debug(f"Package '{metadata.package_uri}' already downloaded.")
                yield DownloadResult(path=target, status=DownloadStatus.CACHED, metadata=metadata)
                continue
            logger.info(f"Downloading {metadata.package_uri} proto: {metadata.resolver_type}")
            archive = self._fetch_archive(metadata)
            yield DownloadResult(
                path=self._store(metadata, archive), status=DownloadStatus.OK, metadata=metadata
            )
