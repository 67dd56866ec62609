from __future__ import annotations

from clientexport.domain.models import (
    CLIENT_EXPORT,
    CONTROLLER,
    RESPONSE_BODY,
    REST_CONTROLLER,
    ROUTE_KINDS,
    CandidateType,
    MethodDescriptor,
)


def is_request_handler(candidate: CandidateType) -> bool:
    attrs = candidate.attributes
    return attrs.has(REST_CONTROLLER) or (attrs.has(CONTROLLER) and attrs.has(RESPONSE_BODY))


def is_extraction_target(candidate: CandidateType) -> bool:
    """A class marked with client_export that also handles requests (REST-style controller)."""
    return (
        candidate.kind == "class"
        and candidate.attributes.has(CLIENT_EXPORT)
        and is_request_handler(candidate)
    )


def is_extraction_candidate_method(method: MethodDescriptor, export_all: bool) -> bool:
    if not method.attributes.has_any(ROUTE_KINDS):
        return False
    return export_all or method.exported
