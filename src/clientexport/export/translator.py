from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from clientexport.domain.models import (
    BINDING_KINDS,
    NAME_REQUIRED_BINDING_KINDS,
    ROUTE_KINDS,
    Attribute,
    CandidateType,
    MethodDescriptor,
    ParameterDescriptor,
)
from clientexport.export.naming import InterfaceNames
from clientexport.export.specs import GeneratedInterfaceSpec, GeneratedMethod, GeneratedParameter

logger = logging.getLogger(__name__)


def translate_binding(attr: Attribute, parameter_name: str) -> Attribute:
    """
    Server-side bindings may match by parameter name; a client proxy needs the
    name spelled out to build the request, so RequestParam/PathVariable without
    a value get one.
    """
    if attr.kind in NAME_REQUIRED_BINDING_KINDS and not attr.has_member("value"):
        return attr.with_member("value", repr(parameter_name))
    return attr


def translate_parameter(parameter: ParameterDescriptor) -> GeneratedParameter:
    return GeneratedParameter(
        name=parameter.name,
        type=parameter.type,
        attributes=tuple(
            translate_binding(attr, parameter.name)
            for attr in parameter.attributes.of_kinds(BINDING_KINDS)
        ),
        keyword_only=parameter.keyword_only,
    )


def translate_method(method: MethodDescriptor) -> GeneratedMethod:
    return GeneratedMethod(
        name=method.name,
        parameters=tuple(translate_parameter(p) for p in method.parameters),
        return_type=method.return_type,
        attributes=tuple(method.attributes.of_kinds(ROUTE_KINDS)),
        is_async=method.is_async,
    )


def translate_interface(
    candidate: CandidateType,
    names: InterfaceNames,
    methods: Iterable[MethodDescriptor],
) -> GeneratedInterfaceSpec:
    """Base interface for a target: every collected method, translated, in collection order."""
    translated = tuple(translate_method(m) for m in methods)

    counts = Counter(m.name for m in translated)
    for name, n in sorted(counts.items()):
        if n > 1:
            logger.warning(
                "%s: %d signatures named %r; only the last one is visible on %s",
                candidate.qualified_name,
                n,
                name,
                names.base_name,
            )

    return GeneratedInterfaceSpec(
        name=names.base_name,
        package=names.base_package,
        methods=translated,
        origin=candidate.qualified_name,
        regenerated=True,
    )
