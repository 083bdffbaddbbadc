# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import logging
import requests
from requests.exceptions import RequestException

from .base import Transport
from ..errors import TransportError
from ..package.model import Metadata, ResolverType, with_scheme


logger = logging.getLogger(__name__)


class HttpTransportError(TransportError):
    """
    A GET request failed or returned a non-success status
    """

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        super().__init__(f"GET {url} failed: {reason}")
        self.url = url
        self.status_code = status_code


class HttpTransport(Transport):
    """
    Retrieves packages from plain web servers. The metadata document is served under
    the package URI itself (with the scheme replaced by http or https), the archive
    under the ``packageZipUrl`` of the metadata.
    """

    resolver_type = ResolverType.HTTP

    def __init__(
        self,
        session: requests.Session = requests.Session(),
        plain_http: bool = False,
        timeout: float | None = None,
    ):
        self.rs = session
        self.plain_http = plain_http
        self.timeout = timeout

    def get(self, url: str) -> requests.Response:
        """
        Perform a GET request. Any status of 300 and above is treated as failure.
        """
        try:
            response: requests.Response = self.rs.get(url, timeout=self.timeout)
        except RequestException as e:
            raise HttpTransportError(url, str(e)) from e
        if response.status_code >= 300:
            raise HttpTransportError(
                url, f"{response.status_code} {response.reason}", response.status_code
            )
        return response

    def resolve_metadata(self, uri: str, plain_http: bool = False) -> Metadata:
        plain = self.plain_http or plain_http
        url = with_scheme(uri, "http" if plain else "https")
        logger.debug(f"Fetching metadata of '{uri}' from {url}")
        response = self.get(url)
        return Metadata.from_document(
            response.content, uri, ResolverType.HTTP, plain_http=plain
        )

    def resolve_archive(self, metadata: Metadata) -> bytes:
        url = metadata.package_zip_url
        logger.debug(f"Fetching archive of '{metadata.package_uri}' from {url}")
        return self.get(url).content
