# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from pathlib import Path

import pytest
import requests

from hpkl.errors import MetadataParseError
from hpkl.package import ResolverType
from hpkl.transport import HttpTransport, HttpTransportError
from hpkl.transport.adapters import LocalFileAdapter


def test_resolve_metadata(http_session, publish, remote):
    uri = publish("a", "1.0.0", dependencies={"b": "package://pkg.example.com/ns/b@1.0.0"})
    transport = HttpTransport(http_session)

    m = transport.resolve_metadata(uri)
    assert remote.requests == ["https://pkg.example.com/ns/a@1.0.0"]
    assert m.name == "a"
    assert m.resolver_type == ResolverType.HTTP
    assert not m.plain_http
    assert m.source == remote.routes["https://pkg.example.com/ns/a@1.0.0"][1]
    assert m.dependencies["b"].name == "b"


@pytest.mark.parametrize("global_plain,call_plain", [(True, False), (False, True), (True, True)])
def test_resolve_metadata_plain(http_session, publish, remote, global_plain, call_plain):
    publish("a", "1.0.0")
    remote.add(
        "http://pkg.example.com/ns/a@1.0.0", remote.routes["https://pkg.example.com/ns/a@1.0.0"][1]
    )
    transport = HttpTransport(http_session, plain_http=global_plain)

    m = transport.resolve_metadata("package://pkg.example.com/ns/a@1.0.0", call_plain)
    assert remote.requests == ["http://pkg.example.com/ns/a@1.0.0"]
    assert m.plain_http


def test_resolve_metadata_not_found(http_session):
    transport = HttpTransport(http_session)
    with pytest.raises(HttpTransportError) as e:
        transport.resolve_metadata("package://pkg.example.com/ns/missing@1.0.0")
    assert e.value.status_code == 404
    assert "404" in str(e.value)
    assert "https://pkg.example.com/ns/missing@1.0.0" in str(e.value)


def test_resolve_metadata_redirect_status(http_session, remote):
    remote.add("https://pkg.example.com/ns/a@1.0.0", b"", status=304)
    with pytest.raises(HttpTransportError):
        HttpTransport(http_session).resolve_metadata("package://pkg.example.com/ns/a@1.0.0")


def test_resolve_metadata_malformed(http_session, remote):
    remote.add("https://pkg.example.com/ns/a@1.0.0", b"<html></html>")
    with pytest.raises(MetadataParseError):
        HttpTransport(http_session).resolve_metadata("package://pkg.example.com/ns/a@1.0.0")


def test_resolve_metadata_connection_error():
    # nothing mounted for this scheme
    transport = HttpTransport(requests.Session())
    with pytest.raises(HttpTransportError):
        transport.resolve_metadata("package://localhost:1/ns/a@1.0.0")


def test_resolve_archive(http_session, publish):
    uri = publish("a", "1.0.0", archive=b"PK\x03\x04binary\x00data")
    transport = HttpTransport(http_session)
    m = transport.resolve_metadata(uri)
    assert transport.resolve_archive(m) == b"PK\x03\x04binary\x00data"


def test_resolve_archive_local_file(tmp_path, make_document, remote):
    archive = tmp_path / "a@1.0.0.zip"
    archive.write_bytes(b"PK local")
    doc = make_document("a", "1.0.0").replace(
        b"https://pkg.example.com/ns/a@1.0.0.zip", archive.absolute().as_uri().encode()
    )
    remote.add("https://pkg.example.com/ns/a@1.0.0", doc)

    with requests.Session() as rs:
        rs.mount("https://", remote)
        rs.mount("file:///", LocalFileAdapter())
        transport = HttpTransport(rs)
        m = transport.resolve_metadata("package://pkg.example.com/ns/a@1.0.0")
        assert transport.resolve_archive(m) == b"PK local"

        archive.unlink()
        with pytest.raises(HttpTransportError) as e:
            transport.resolve_archive(m)
        assert e.value.status_code == 404


def test_local_file():
    session = requests.Session()
    session.mount("file:///", LocalFileAdapter())
    path = Path(__file__).absolute()
    with session.get(path.as_uri()) as r:
        assert r.status_code == 200
        assert r.content == path.read_bytes()
    with session.head(path.as_uri()) as r:
        assert r.status_code == 200
        assert int(r.headers["Content-Length"]) == path.stat().st_size


def test_local_file_404():
    session = requests.Session()
    session.mount("file:///", LocalFileAdapter())
    with session.get("file:///does-not-exist") as r:
        assert r.status_code == 404
