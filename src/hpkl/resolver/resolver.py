# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from collections.abc import Mapping
import logging

import requests

from .hints import Route
from ..config import AppConfig
from ..errors import HpklError
from ..package.model import (
    Checksums,
    Dependency,
    Metadata,
    ProjectDependencies,
    ResolvedDependency,
    ResolverType,
    major_version_package,
    parse_version,
    with_scheme,
)
from ..transport import HttpTransport, RegistryTransport, Transport


logger = logging.getLogger(__name__)

# scheme of the resolved package URIs in a lock-file
PROJECT_PACKAGE_SCHEME = "projectpackage"


class ResolveError(HpklError):
    """
    Resolving a dependency failed. The underlying error is chained.
    """

    def __init__(self, alias: str, uri: str, resolver_type: ResolverType, reason: str):
        super().__init__(f"failed to resolve '{alias}' ({uri}) via {resolver_type}: {reason}")
        self.alias = alias
        self.uri = uri
        self.resolver_type = resolver_type


def create_transports(
    config: AppConfig, session: requests.Session
) -> dict[ResolverType, Transport]:
    return {
        ResolverType.REGISTRY: RegistryTransport(
            session, plain_http=config.plain_http, timeout=config.timeout
        ),
        ResolverType.HTTP: HttpTransport(
            session, plain_http=config.plain_http, timeout=config.timeout
        ),
    }


class Resolver:
    """
    Resolves dependencies to package metadata, including all transitive dependencies.

    Every URI is fetched at most once per resolver instance: resolved metadata is
    memoized and a package is memoized before its own dependencies are explored,
    so dependency cycles terminate. Instances are not thread-safe.
    """

    def __init__(self, transports: Mapping[ResolverType, Transport]):
        self.transports = transports
        self.cache: dict[str, Metadata] = {}

    @classmethod
    def create(cls, config: AppConfig, session: requests.Session) -> "Resolver":
        return cls(create_transports(config, session))

    def _fetch(self, alias: str, dependency: Dependency) -> Metadata:
        route = Route.from_alias(alias)
        logger.info(f"Resolving: {alias} as {dependency.uri} proto: {route.resolver_type}")
        try:
            return self.transports[route.resolver_type].resolve_metadata(
                dependency.uri, route.plain_http
            )
        except HpklError as e:
            logger.error(f"Metadata resolving error: {alias} - {dependency.uri}")
            raise ResolveError(alias, dependency.uri, route.resolver_type, str(e)) from e

    def _lookup(self, alias: str, dependency: Dependency) -> Metadata:
        metadata = self.cache.get(dependency.uri)
        if metadata is None:
            metadata = self._fetch(dependency.name or alias, dependency)
            self.cache[dependency.uri] = metadata
        else:
            logger.debug(f"Package '{dependency.uri}' already resolved")
        return metadata

    def resolve(self, dependencies: Mapping[str, Dependency]) -> dict[str, Metadata]:
        """
        Resolve the dependencies (keyed by alias) and all transitive dependencies.
        Returns the metadata of every reachable package, keyed by dependency URI.
        The first failure aborts the resolution.

        The graph is walked depth-first with an explicit stack of dependency
        iterators, so the depth of a dependency chain is not bounded by the
        interpreter's recursion limit.
        """
        result: dict[str, Metadata] = {}
        pending = [iter(dependencies.items())]
        while pending:
            entry = next(pending[-1], None)
            if entry is None:
                pending.pop()
                continue
            alias, dependency = entry
            if dependency.uri in result:
                continue
            metadata = self._lookup(alias, dependency)
            result[dependency.uri] = metadata
            pending.append(iter(metadata.dependencies.items()))
        return result

    @staticmethod
    def deduplicate(resolved: Mapping[str, Metadata]) -> dict[str, Metadata]:
        """
        Keep only the latest version of each package line (same package and major
        version). The result is keyed by the package URI of the remaining versions.
        """
        versioned = {}
        for metadata in resolved.values():
            line = major_version_package(metadata)
            version = parse_version(metadata.version, metadata.package_uri)
            current = versioned.get(line)
            if current is None or version > current[0]:
                versioned[line] = (version, metadata)
            elif version != current[0]:
                logger.debug(
                    f"Dropping {metadata.package_uri} in favor of {current[1].package_uri}"
                )
        return {m.package_uri: m for _, m in versioned.values()}

    @classmethod
    def project_dependencies(cls, resolved: Mapping[str, Metadata]) -> ProjectDependencies:
        """
        Create the lock-file record of a resolution. The checksum of each entry is the
        digest of its metadata document.
        """
        return ProjectDependencies(
            resolved_dependencies={
                major_version_package(m): ResolvedDependency(
                    uri=with_scheme(m.package_uri, PROJECT_PACKAGE_SCHEME),
                    checksums=Checksums(sha256=m.checksum).to_json(),
                )
                for m in cls.deduplicate(resolved).values()
            }
        )
