# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit, urlunsplit

import jsonschema
import semantic_version

from .checksum import ChecksumAlgo, sha256sum
from ..errors import InvalidPackageUriError, InvalidVersionError, MetadataParseError
from .. import schema

logger = logging.getLogger(__name__)

# scheme of the major-version package identity
PACKAGE_SCHEME = "package"


class ResolverType(str, Enum):
    """Transport that produced a ``Metadata`` instance"""

    REGISTRY = "oci"
    HTTP = "http"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Checksums:
    """Named digests of a remote artifact. Only sha256 is used by Pkl today."""

    sha256: str | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any] | None) -> "Checksums | None":
        if not data:
            return None
        return cls(sha256=data.get("sha256"))

    def digests(self) -> dict[ChecksumAlgo, str]:
        if self.sha256:
            return {ChecksumAlgo.SHA256SUM: self.sha256}
        return {}

    def to_json(self) -> dict[str, str]:
        return {str(algo): digest for algo, digest in self.digests().items()}


@dataclass(frozen=True)
class Dependency:
    """
    Reference to a package as declared by a consumer. The ``name`` is the local alias
    the dependency is declared under.
    """

    uri: str
    name: str = ""
    checksums: Checksums | None = None
    project_file_uri: str | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any], name: str = "") -> "Dependency":
        """
        Create a dependency from its JSON representation. The alias is not part of
        the wire record (only its map key), so the caller passes it in.
        """
        return cls(
            uri=data["uri"],
            name=name or data.get("name") or "",
            checksums=Checksums.from_json(data.get("checksums")),
            project_file_uri=data.get("project_file_uri"),
        )


@dataclass(frozen=True, eq=False)
class Metadata:
    """
    Resolved version of a package. The wire fields are taken from the metadata
    document; ``resolver_type``, ``plain_http``, ``checksum`` and ``source`` are
    assigned by the transport that fetched it.
    """

    name: str
    package_uri: str
    version: str
    package_zip_url: str
    package_zip_checksums: Checksums
    resolver_type: ResolverType
    checksum: str
    source: bytes = field(repr=False)
    authors: list[str] = field(default_factory=list)
    dependencies: dict[str, Dependency] = field(default_factory=dict)
    plain_http: bool = False

    @classmethod
    def from_document(
        cls,
        source: bytes,
        uri: str,
        resolver_type: ResolverType,
        plain_http: bool = False,
    ) -> "Metadata":
        """
        Parse a raw metadata document fetched from ``uri``. The digest is computed
        over the raw bytes, which are retained as-is for persisting them later.
        """
        try:
            data = json.loads(source)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MetadataParseError(uri, str(e)) from e
        try:
            jsonschema.validate(data, schema=schema.metadata)
        except jsonschema.ValidationError as e:
            raise MetadataParseError(uri, e.message) from e

        return cls(
            name=data["name"],
            package_uri=data["packageUri"],
            version=data["version"],
            package_zip_url=data["packageZipUrl"],
            package_zip_checksums=Checksums.from_json(data.get("packageZipChecksums"))
            or Checksums(),
            authors=list(data.get("authors") or []),
            dependencies={
                alias: Dependency.from_json(dep, name=alias)
                for alias, dep in (data.get("dependencies") or {}).items()
            },
            resolver_type=resolver_type,
            plain_http=plain_http,
            checksum=sha256sum(source),
            source=source,
        )

    def basename(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass
class ResolvedDependency:
    """Lock-file entry of a single resolved package"""

    uri: str
    checksums: dict[str, str]
    type: str = "remote"

    def to_json(self) -> dict[str, Any]:
        return {"type": self.type, "uri": self.uri, "checksums": dict(self.checksums)}


@dataclass
class ProjectDependencies:
    """Lock-file of a project: resolved dependencies keyed by package line"""

    resolved_dependencies: dict[str, ResolvedDependency] = field(default_factory=dict)
    schema_version: int = 1

    def to_json(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "resolvedDependencies": {
                uri: rd.to_json() for uri, rd in sorted(self.resolved_dependencies.items())
            },
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ProjectDependencies":
        return cls(
            schema_version=data["schemaVersion"],
            resolved_dependencies={
                uri: ResolvedDependency(
                    uri=rd["uri"], checksums=dict(rd.get("checksums") or {}), type=rd["type"]
                )
                for uri, rd in data["resolvedDependencies"].items()
            },
        )


def parse_version(version: str, uri: str | None = None) -> semantic_version.Version:
    try:
        return semantic_version.Version(version)
    except ValueError as e:
        raise InvalidVersionError(version, uri) from e


def _split_package_uri(uri: str):
    try:
        parts = urlsplit(uri)
    except ValueError as e:
        raise InvalidPackageUriError(uri, str(e)) from e
    if not parts.scheme or not parts.netloc:
        raise InvalidPackageUriError(uri, "scheme and host are required")
    return parts


def major_version_package(metadata: Metadata) -> str:
    """
    Identity of the package line ``metadata`` belongs to. The trailing ``@<version>``
    of the package URI is replaced by ``@<major>`` and the scheme is normalized, e.g.
    ``package://host/ns/name@1.2.3`` -> ``package://host/ns/name@1``.
    """
    parts = _split_package_uri(metadata.package_uri)
    version = parse_version(metadata.version, metadata.package_uri)
    suffix = f"@{metadata.version}"
    if not parts.path.endswith(suffix):
        raise InvalidPackageUriError(
            metadata.package_uri, f"path does not end with version '{suffix}'"
        )
    path = parts.path[: -len(suffix)] + f"@{version.major:d}"
    return urlunsplit((PACKAGE_SCHEME, parts.netloc, path, parts.query, parts.fragment))


def with_scheme(uri: str, scheme: str) -> str:
    parts = _split_package_uri(uri)
    return urlunsplit(parts._replace(scheme=scheme))


def cache_path(base: Path, package_uri: str) -> Path:
    """
    Directory of a versioned package below ``base``: ``<host>[(<port>)]/<path>``.
    The mapping is injective over host, port and path, independent of the scheme.
    """
    parts = _split_package_uri(package_uri)
    try:
        port = parts.port
    except ValueError as e:
        raise InvalidPackageUriError(package_uri, str(e)) from e
    host = parts.hostname
    if not host:
        raise InvalidPackageUriError(package_uri, "missing host")
    if port is not None:
        host += f"({port})"
    segments = [unquote(s) for s in parts.path.split("/") if s]
    if not segments:
        raise InvalidPackageUriError(package_uri, "missing path")
    if any(s in (".", "..") or "/" in s or "\\" in s for s in segments):
        raise InvalidPackageUriError(package_uri, "relative path segments are not allowed")
    return Path(base, host, *segments)
