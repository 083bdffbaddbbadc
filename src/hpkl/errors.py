# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT


class HpklError(Exception):
    """
    All hpkl exceptions inherit from this
    """

    pass


class ProjectError(HpklError):
    """
    The project descriptor is missing or cannot be read
    """

    pass


class InvalidPackageUriError(HpklError, ValueError):
    def __init__(self, uri: str, reason: str):
        super().__init__(f"Invalid package URI '{uri}': {reason}")
        self.uri = uri


class InvalidVersionError(HpklError, ValueError):
    def __init__(self, version: str, uri: str | None = None):
        if uri:
            super().__init__(f"Invalid semantic version '{version}' of '{uri}'")
        else:
            super().__init__(f"Invalid semantic version '{version}'")
        self.version = version


class MetadataParseError(HpklError, ValueError):
    """
    A package metadata document is not valid JSON or does not match the schema
    """

    def __init__(self, uri: str, reason: str):
        super().__init__(f"Malformed metadata document of '{uri}': {reason}")
        self.uri = uri


class TransportError(HpklError):
    """
    Retrieving metadata or an archive from a remote failed
    """

    pass


class ChecksumMismatchError(HpklError):
    def __init__(self, name: str, uri: str, alg: str, expected: str, actual: str):
        super().__init__(f"Checksum mismatch for '{name}' ({uri}): {alg}: {expected} != {actual}")
        self.name = name
        self.uri = uri
