from clientexport.domain.models import (
    Attribute,
    AttributeSet,
    CandidateType,
    MethodDescriptor,
)
from clientexport.export.filters import is_extraction_candidate_method, is_extraction_target


def attrs(*kinds: str) -> AttributeSet:
    return AttributeSet(tuple(Attribute(kind=k) for k in kinds))


def controller(*kinds: str, kind: str = "class") -> CandidateType:
    return CandidateType(qualified_name="app.X", name="X", kind=kind, attributes=attrs(*kinds))


def test_rest_controller_with_client_export_is_target():
    assert is_extraction_target(controller("rest_controller", "client_export"))


def test_plain_controller_needs_response_body():
    assert not is_extraction_target(controller("controller", "client_export"))
    assert is_extraction_target(controller("controller", "response_body", "client_export"))


def test_client_export_alone_is_not_target():
    assert not is_extraction_target(controller("client_export"))
    assert not is_extraction_target(controller("rest_controller"))


def test_interfaces_are_never_targets():
    assert not is_extraction_target(controller("rest_controller", "client_export", kind="interface"))


def test_method_needs_a_route_attribute():
    m = MethodDescriptor(name="f", attributes=attrs("export"))
    assert not is_extraction_candidate_method(m, export_all=True)


def test_method_needs_export_marker_unless_export_all():
    routed = MethodDescriptor(name="f", attributes=attrs("get_mapping"))
    marked = MethodDescriptor(name="g", attributes=attrs("export", "delete_mapping"))

    assert not is_extraction_candidate_method(routed, export_all=False)
    assert is_extraction_candidate_method(routed, export_all=True)
    assert is_extraction_candidate_method(marked, export_all=False)


def test_every_route_kind_qualifies():
    for kind in ("get_mapping", "post_mapping", "put_mapping", "delete_mapping", "patch_mapping", "request_mapping"):
        assert is_extraction_candidate_method(MethodDescriptor(name="f", attributes=attrs(kind)), export_all=True)
