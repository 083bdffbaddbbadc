# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

"""
This module pulls Pkl packages from OCI registries, following the distribution API
documented in https://github.com/opencontainers/distribution-spec/blob/main/spec.md.

A package ``package://<registry>/<repository>@<version>`` is stored as an artifact
tagged ``<version>`` in ``<repository>``. Its manifest references two layers: the
metadata document and the package zip archive, told apart by their media types.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from hmac import compare_digest
import logging
from typing import Any
from urllib.parse import urlsplit

import requests
from requests.exceptions import RequestException
from requests.utils import parse_dict_header

from .base import Transport
from ..errors import InvalidPackageUriError, TransportError
from ..package.checksum import sha256sum
from ..package.model import Metadata, ResolverType


logger = logging.getLogger(__name__)

MANIFEST_MEDIA_TYPES = [
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v2+json",
]
METADATA_MEDIA_TYPE = "application/vnd.pkl.package.metadata.v1+json"
ARCHIVE_MEDIA_TYPE = "application/vnd.pkl.package.archive.v1.zip"
TITLE_ANNOTATION = "org.opencontainers.image.title"


class RegistryError(TransportError):
    """
    Pulling from an OCI registry failed
    """

    pass


@dataclass(frozen=True)
class Reference:
    """Location of a package artifact on a registry"""

    registry: str
    repository: str
    tag: str

    @classmethod
    def from_package_uri(cls, uri: str) -> "Reference":
        """
        Map a versioned package URI to its registry reference. OCI tags must not
        contain '+', so semver build metadata is separated by '_' instead.
        """
        try:
            parts = urlsplit(uri)
        except ValueError as e:
            raise InvalidPackageUriError(uri, str(e)) from e
        if not parts.netloc:
            raise InvalidPackageUriError(uri, "missing registry host")
        repository, sep, version = parts.path.strip("/").rpartition("@")
        if not sep or not repository or not version:
            raise InvalidPackageUriError(uri, "path must be of the form '<repository>@<version>'")
        return cls(registry=parts.netloc, repository=repository, tag=version.replace("+", "_"))

    def __str__(self) -> str:
        return f"{self.registry}/{self.repository}:{self.tag}"


@dataclass
class PullResult:
    metadata: bytes
    archive: bytes | None = None


class RegistryClient:
    """
    Minimal read-only client for the OCI distribution API. Anonymous bearer tokens
    are requested on demand if the registry asks for them.
    """

    def __init__(
        self,
        session: requests.Session = requests.Session(),
        plain_http: bool = False,
        timeout: float | None = None,
    ):
        self.rs = session
        self.plain_http = plain_http
        self.timeout = timeout
        self._tokens: dict[str, str] = {}

    def _url(self, ref: Reference, kind: str, target: str) -> str:
        scheme = "http" if self.plain_http else "https"
        return f"{scheme}://{ref.registry}/v2/{ref.repository}/{kind}/{target}"

    def _request_token(self, ref: Reference, challenge: str) -> str:
        scheme, _, params = challenge.partition(" ")
        if scheme.lower() != "bearer":
            raise RegistryError(f"{ref}: unsupported authentication scheme '{scheme}'")
        params = parse_dict_header(params)
        realm = params.pop("realm", None)
        if not realm:
            raise RegistryError(f"{ref}: authentication challenge without realm")
        params.setdefault("scope", f"repository:{ref.repository}:pull")
        logger.debug(f"Requesting anonymous token for {ref} from {realm}")
        try:
            response = self.rs.get(realm, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (RequestException, ValueError) as e:
            raise RegistryError(f"{ref}: token request failed: {e}") from e
        if not isinstance(data, dict):
            raise RegistryError(f"{ref}: malformed token response")
        token = data.get("token") or data.get("access_token")
        if not token or not isinstance(token, str):
            raise RegistryError(f"{ref}: token response does not contain a token")
        return token

    def get(self, ref: Reference, url: str, accept: list[str] | None = None) -> requests.Response:
        headers = {}
        if accept:
            headers["Accept"] = ", ".join(accept)
        try:
            token = self._tokens.get(ref.repository)
            if token:
                headers["Authorization"] = f"Bearer {token}"
            response = self.rs.get(url, headers=headers, timeout=self.timeout)
            challenge = response.headers.get("WWW-Authenticate")
            if response.status_code == 401 and challenge and not token:
                self._tokens[ref.repository] = self._request_token(ref, challenge)
                headers["Authorization"] = f"Bearer {self._tokens[ref.repository]}"
                response = self.rs.get(url, headers=headers, timeout=self.timeout)
        except RequestException as e:
            raise RegistryError(f"{ref}: GET {url} failed: {e}") from e
        if response.status_code >= 300:
            raise RegistryError(
                f"{ref}: GET {url} failed: {response.status_code} {response.reason}"
            )
        return response

    def manifest(self, ref: Reference) -> dict[str, Any]:
        response = self.get(ref, self._url(ref, "manifests", ref.tag), accept=MANIFEST_MEDIA_TYPES)
        try:
            manifest = response.json()
        except ValueError as e:
            raise RegistryError(f"{ref}: malformed manifest: {e}") from e
        if not isinstance(manifest, dict) or not isinstance(manifest.get("layers"), list):
            raise RegistryError(f"{ref}: manifest does not contain layers")
        if not all(isinstance(layer, dict) for layer in manifest["layers"]):
            raise RegistryError(f"{ref}: manifest contains malformed layer descriptors")
        return manifest

    def blob(self, ref: Reference, descriptor: Mapping[str, Any]) -> bytes:
        """
        Fetch a blob and verify it against the digest of its descriptor.
        """
        digest = descriptor.get("digest")
        if not isinstance(digest, str):
            raise RegistryError(f"{ref}: malformed blob digest '{digest}'")
        algo, _, expected = digest.partition(":")
        if algo != "sha256" or not expected:
            raise RegistryError(f"{ref}: unsupported blob digest '{digest}'")
        data = self.get(ref, self._url(ref, "blobs", digest)).content
        if not compare_digest(expected, sha256sum(data)):
            raise RegistryError(f"{ref}: blob {digest} does not match its digest")
        return data

    @staticmethod
    def _find_layer(
        ref: Reference, manifest: Mapping[str, Any], media_type: str, extension: str
    ) -> Mapping[str, Any]:
        for layer in manifest["layers"]:
            if layer.get("mediaType") == media_type:
                return layer
        # artifacts pushed by generic tools only carry the file name
        for layer in manifest["layers"]:
            annotations = layer.get("annotations")
            title = annotations.get(TITLE_ANNOTATION) if isinstance(annotations, dict) else None
            if isinstance(title, str) and title.endswith(extension):
                return layer
        raise RegistryError(f"{ref}: manifest has no layer of type '{media_type}'")

    def pull(self, ref: Reference, with_package: bool = False) -> PullResult:
        """
        Pull the metadata document of a package and, if ``with_package`` is set,
        its archive as well.
        """
        manifest = self.manifest(ref)
        metadata = self.blob(ref, self._find_layer(ref, manifest, METADATA_MEDIA_TYPE, ".json"))
        archive = None
        if with_package:
            archive = self.blob(ref, self._find_layer(ref, manifest, ARCHIVE_MEDIA_TYPE, ".zip"))
        return PullResult(metadata=metadata, archive=archive)


class RegistryTransport(Transport):
    """
    Retrieves packages from OCI registries. Holds one client that follows the global
    transport security setting and one that always uses plain HTTP.
    """

    resolver_type = ResolverType.REGISTRY

    def __init__(
        self,
        session: requests.Session = requests.Session(),
        plain_http: bool = False,
        timeout: float | None = None,
    ):
        self.client = RegistryClient(session, plain_http=plain_http, timeout=timeout)
        self.plain_client = RegistryClient(session, plain_http=True, timeout=timeout)

    def _client(self, plain_http: bool) -> RegistryClient:
        return self.plain_client if plain_http else self.client

    def resolve_metadata(self, uri: str, plain_http: bool = False) -> Metadata:
        ref = Reference.from_package_uri(uri)
        logger.debug(f"Pulling metadata of '{uri}' from {ref}")
        result = self._client(plain_http).pull(ref, with_package=False)
        return Metadata.from_document(
            result.metadata, uri, ResolverType.REGISTRY, plain_http=plain_http
        )

    def resolve_archive(self, metadata: Metadata) -> bytes:
        ref = Reference.from_package_uri(metadata.package_uri)
        logger.debug(f"Pulling archive of '{metadata.package_uri}' from {ref}")
        result = self._client(metadata.plain_http).pull(ref, with_package=True)
        return result.archive
