# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

"""
Routing hints carried by the local alias of a dependency (not by its URI):

- an alias ending in ``.oci`` is pulled from an OCI registry, any other alias is
  fetched via plain HTTP(S)
- an alias containing ``.plain`` is fetched without TLS

Example: ``toml.plain.oci`` pulls from a registry over plain HTTP.
"""

from dataclasses import dataclass

from ..package.model import ResolverType

REGISTRY_HINT = ".oci"
PLAIN_HINT = ".plain"


@dataclass(frozen=True)
class Route:
    resolver_type: ResolverType
    plain_http: bool

    @classmethod
    def from_alias(cls, alias: str) -> "Route":
        if alias.endswith(REGISTRY_HINT):
            return cls(resolver_type=ResolverType.REGISTRY, plain_http=PLAIN_HINT in alias)
        return cls(resolver_type=ResolverType.HTTP, plain_http=PLAIN_HINT in alias)
