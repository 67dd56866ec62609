from __future__ import annotations

import logging
from dataclasses import dataclass

from clientexport.domain.errors import MetadataInconsistency
from clientexport.domain.models import CLIENT_EXPORT, REQUEST_MAPPING, CandidateType

logger = logging.getLogger(__name__)

CONTROLLER_TOKEN = "Controller"
CLIENT_SUFFIX = "Client"
BASE_SUFFIX = "Base"
BASE_PACKAGE_SEGMENT = "base"


@dataclass(frozen=True)
class InterfaceNames:
    extract_name: str   # OrderClient
    base_name: str      # OrderClientBase
    package: str        # shop.clients
    base_package: str   # shop.clients.base
    base_path: str      # /orders, or ""


def extract_name(candidate: CandidateType) -> str:
    """
    Explicit client_export(extract_name=...) if given, else the class name
    without "Controller" plus "Client": OrderController -> OrderClient.
    """
    explicit = candidate.explicit_extract_name
    if explicit:
        return explicit
    return candidate.name.replace(CONTROLLER_TOKEN, "") + CLIENT_SUFFIX


def base_path(candidate: CandidateType) -> str:
    value = candidate.base_route
    attr = candidate.attributes.get(REQUEST_MAPPING)
    if not value and attr is not None and attr.members and attr.literal(attr.members[0][0]) is None:
        logger.warning(
            "%s: route prefix %s is not a literal string; generated client gets no path",
            candidate.qualified_name,
            attr.members[0][1],
        )
    return value


def resolve_names(candidate: CandidateType) -> InterfaceNames:
    package = candidate.export_package
    if not package:
        raise MetadataInconsistency(
            f"{candidate.qualified_name}: {CLIENT_EXPORT} needs a non-blank literal export_package"
        )
    if not all(part.isidentifier() for part in package.split(".")):
        raise MetadataInconsistency(f"{candidate.qualified_name}: invalid export_package {package!r}")

    name = extract_name(candidate)
    if not name.isidentifier():
        raise MetadataInconsistency(f"{candidate.qualified_name}: invalid extract name {name!r}")

    return InterfaceNames(
        extract_name=name,
        base_name=name + BASE_SUFFIX,
        package=package,
        base_package=f"{package}.{BASE_PACKAGE_SEGMENT}",
        base_path=base_path(candidate),
    )
