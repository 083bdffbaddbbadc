# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from io import BytesIO
import json

from beartype.claw import beartype_package
import pytest
import requests
from requests import Response
from requests.adapters import BaseAdapter

beartype_package("hpkl")


class FakeRemote(BaseAdapter):
    """
    Serves canned responses for GET requests, keyed by URL. Unknown URLs are
    answered with 404. All requested URLs are recorded.
    """

    def __init__(self):
        super().__init__()
        self.routes = {}
        self.requests = []

    def add(self, url, body, status=200, headers=None):
        self.routes[url] = (status, body, headers or {})

    def send(self, request, **kwargs):
        self.requests.append(request.url)
        route = self.routes.get(request.url) or self.routes.get(request.url.split("?")[0])
        status, body, headers = route or (404, b"not found", {})

        response = Response()
        response.request = request
        response.url = request.url
        response.status_code = status
        response.reason = "OK" if status < 300 else "Error"
        response.headers.update(headers)
        response.raw = BytesIO(body)
        return response

    def close(self):
        pass

    def count(self, url):
        return self.requests.count(url)


@pytest.fixture()
def remote():
    return FakeRemote()


@pytest.fixture()
def http_session(remote):
    with requests.Session() as rs:
        rs.mount("https://", remote)
        rs.mount("http://", remote)
        yield rs


def metadata_document(name, version, host="pkg.example.com", dependencies=None, zip_sha256=None):
    """
    Metadata document of the package ``package://<host>/ns/<name>@<version>``.
    ``dependencies`` maps aliases to package URIs.
    """
    data = {
        "name": name,
        "packageUri": f"package://{host}/ns/{name}@{version}",
        "version": version,
        "packageZipUrl": f"https://{host}/ns/{name}@{version}.zip",
        "packageZipChecksums": {"sha256": zip_sha256} if zip_sha256 else None,
        "authors": ["Jane Doe <jane@example.com>"],
        "dependencies": {alias: {"uri": uri} for alias, uri in (dependencies or {}).items()},
    }
    return json.dumps(data, indent=2).encode()


@pytest.fixture()
def publish(remote):
    """
    Publish a package on the fake web server and return its package URI.
    """

    def _publish(
        name, version, dependencies=None, host="pkg.example.com", archive=None, zip_sha256=None
    ):
        if archive is None:
            archive = f"PK archive of {name}@{version}".encode()
        remote.add(
            f"https://{host}/ns/{name}@{version}",
            metadata_document(name, version, host, dependencies, zip_sha256),
        )
        remote.add(f"https://{host}/ns/{name}@{version}.zip", archive)
        return f"package://{host}/ns/{name}@{version}"

    return _publish


@pytest.fixture()
def make_document():
    return metadata_document
