from __future__ import annotations

import logging

from clientexport.domain.errors import MetadataInconsistency
from clientexport.domain.models import CandidateType, MethodDescriptor, SignatureIdentity
from clientexport.export.filters import is_extraction_candidate_method

logger = logging.getLogger(__name__)

MAX_ANCESTRY_DEPTH = 64

_WALKABLE_KINDS = ("class", "interface")


def collect_methods(
    candidate: CandidateType,
    export_all: bool,
    *,
    max_depth: int = MAX_ANCESTRY_DEPTH,
) -> dict[SignatureIdentity, MethodDescriptor]:
    """
    Gather the qualifying methods of a type and all of its ancestors.

    Keys are signature identities (name + parameter types). A signature
    declared on a more-derived type always wins over the same signature
    declared further up; ancestors only contribute signatures not seen yet.
    Ordering: the type's own methods in declaration order, then each
    ancestor's new ones.
    """
    return _collect(candidate, export_all, depth=0, max_depth=max_depth)


def _collect(
    candidate: CandidateType,
    export_all: bool,
    *,
    depth: int,
    max_depth: int,
) -> dict[SignatureIdentity, MethodDescriptor]:
    if candidate.is_root:
        return {}
    if candidate.kind == "unresolved":
        raise MetadataInconsistency(
            f"cannot resolve supertype {candidate.qualified_name}; "
            "add its module to the scanned sources or declare it opaque"
        )
    if candidate.kind not in _WALKABLE_KINDS:
        raise MetadataInconsistency(f"{candidate.qualified_name} is neither a class nor an interface")
    if depth > max_depth:
        raise MetadataInconsistency(
            f"ancestry of {candidate.qualified_name} is deeper than {max_depth} levels"
        )

    result: dict[SignatureIdentity, MethodDescriptor] = {}
    for method in candidate.methods:
        if not is_extraction_candidate_method(method, export_all):
            continue
        key = method.signature
        if key in result:
            logger.debug("%s: duplicate signature %s ignored", candidate.qualified_name, key)
            continue
        result[key] = method

    supertype = candidate.supertype
    if supertype is None:
        # hand-built types may leave out the root sentinel
        return result

    inherited = _collect(supertype, export_all, depth=depth + 1, max_depth=max_depth)
    for key, method in inherited.items():
        if key in result:
            logger.debug(
                "%s.%s overrides %s", candidate.qualified_name, key[0], method.owner or supertype.qualified_name
            )
            continue
        result[key] = method

    return result
