import pytest

from clientexport.domain.errors import MetadataInconsistency
from clientexport.domain.models import Attribute, AttributeSet, CandidateType
from clientexport.export.naming import extract_name, resolve_names


def candidate(name: str, export: tuple = (("export_package", "'shop.clients'"),), mapping=None) -> CandidateType:
    attributes = [Attribute(kind="client_export", members=export)]
    if mapping is not None:
        attributes.append(Attribute(kind="request_mapping", members=mapping))
    return CandidateType(qualified_name=f"shop.api.{name}", name=name, attributes=AttributeSet(tuple(attributes)))


def test_controller_suffix_is_replaced_by_client():
    names = resolve_names(candidate("OrderController"))
    assert names.extract_name == "OrderClient"
    assert names.base_name == "OrderClientBase"


def test_name_without_controller_gets_client_suffix():
    assert extract_name(candidate("Reports")) == "ReportsClient"


def test_every_controller_substring_is_removed():
    assert extract_name(candidate("ControllerOfOrdersController")) == "OfOrdersClient"


def test_explicit_extract_name_wins_unless_blank():
    explicit = (("export_package", "'shop.clients'"), ("extract_name", "'Billing'"))
    blank = (("export_package", "'shop.clients'"), ("extract_name", "'  '"))
    assert extract_name(candidate("OrderController", export=explicit)) == "Billing"
    assert extract_name(candidate("OrderController", export=blank)) == "OrderClient"


def test_packages():
    names = resolve_names(candidate("OrderController"))
    assert names.package == "shop.clients"
    assert names.base_package == "shop.clients.base"


def test_base_path_from_route_prefix():
    assert resolve_names(candidate("A")).base_path == ""
    assert resolve_names(candidate("A", mapping=(("value", "'/orders'"),))).base_path == "/orders"
    assert resolve_names(candidate("A", mapping=(("value", "['/v1', '/v2']"),))).base_path == "/v1"
    assert resolve_names(candidate("A", mapping=(("path", "'/p'"),))).base_path == "/p"
    assert resolve_names(candidate("A", mapping=(("value", "[]"),))).base_path == ""


def test_non_literal_route_prefix_yields_empty_path(caplog):
    names = resolve_names(candidate("A", mapping=(("value", "API_PREFIX"),)))
    assert names.base_path == ""
    assert "not a literal string" in caplog.text


def test_missing_export_package_is_an_inconsistency():
    with pytest.raises(MetadataInconsistency, match="export_package"):
        resolve_names(candidate("OrderController", export=()))


def test_invalid_extract_name_is_an_inconsistency():
    bad = (("export_package", "'shop.clients'"), ("extract_name", "'my-client'"))
    with pytest.raises(MetadataInconsistency):
        resolve_names(candidate("OrderController", export=bad))
