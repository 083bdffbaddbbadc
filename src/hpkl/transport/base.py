# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from abc import ABC, abstractmethod

from ..package.model import Metadata, ResolverType


class Transport(ABC):
    """
    Protocol to retrieve package metadata and archives from a remote.
    There are exactly two implementations: registry (OCI) and plain HTTP.
    """

    resolver_type: ResolverType

    @abstractmethod
    def resolve_metadata(self, uri: str, plain_http: bool = False) -> Metadata:
        """
        Fetch and parse the metadata document of the package ``uri``.
        If ``plain_http`` is set, the document is fetched without TLS.
        """
        raise NotImplementedError()

    @abstractmethod
    def resolve_archive(self, metadata: Metadata) -> bytes:
        """Fetch the raw package archive described by ``metadata``"""
        raise NotImplementedError()
