import logging
import textwrap

from clientexport.domain.models import (
    Attribute,
    AttributeSet,
    MethodDescriptor,
    ParameterDescriptor,
    TypeRef,
)
from clientexport.export.collector import collect_methods
from clientexport.export.naming import resolve_names
from clientexport.export.translator import translate_interface, translate_method, translate_parameter
from clientexport.extractors.controllers.reflector import load_types_from_source


def param(name: str, *attributes: Attribute, type_expr: str = "str") -> ParameterDescriptor:
    return ParameterDescriptor(name=name, type=TypeRef(type_expr), attributes=AttributeSet(attributes))


def test_path_variable_without_value_gets_parameter_name():
    p = translate_parameter(param("order_id", Attribute(kind="PathVariable"), type_expr="int"))
    [attr] = p.attributes
    assert attr.member("value") == "'order_id'"
    assert p.type.expr == "int"


def test_request_param_explicit_value_is_kept():
    p = translate_parameter(param("q", Attribute(kind="RequestParam", members=(("value", "'query'"),))))
    assert p.attributes[0].members == (("value", "'query'"),)


def test_request_param_with_other_members_still_gets_value():
    p = translate_parameter(param("limit", Attribute(kind="RequestParam", members=(("required", "False"),))))
    assert p.attributes[0].members == (("required", "False"), ("value", "'limit'"))


def test_other_bindings_are_copied_without_injection():
    p = translate_parameter(
        param(
            "token",
            Attribute(kind="RequestHeader"),
            Attribute(kind="RequestBody", members=(("required", "True"),)),
            Attribute(kind="ModelAttribute"),
        )
    )
    assert [(a.kind, a.members) for a in p.attributes] == [
        ("RequestHeader", ()),
        ("RequestBody", (("required", "True"),)),
        ("ModelAttribute", ()),
    ]


def test_unrecognized_parameter_attributes_are_dropped():
    p = translate_parameter(param("x", Attribute(kind="Field", members=(("gt", "0"),))))
    assert p.attributes == ()


def test_route_attributes_copied_verbatim_and_others_dropped():
    method = MethodDescriptor(
        name="create",
        parameters=(param("body", Attribute(kind="RequestBody"), type_expr="Order"),),
        return_type=TypeRef("Order"),
        attributes=AttributeSet(
            (
                Attribute(kind="export"),
                Attribute(kind="post_mapping", members=(("value", "'/orders'"), ("consumes", "JSON"))),
                Attribute(kind="log_calls"),
            )
        ),
        is_async=True,
    )

    g = translate_method(method)
    assert g.name == "create"
    assert g.is_async is True
    assert g.return_type == TypeRef("Order")
    assert [(a.kind, a.members) for a in g.attributes] == [
        ("post_mapping", (("value", "'/orders'"), ("consumes", "JSON"))),
    ]
    assert [p.name for p in g.parameters] == ["body"]


def test_translate_interface_builds_base_spec_and_warns_on_name_clash(caplog):
    src = """
    from clientexport.markers import client_export, get_mapping, rest_controller

    class Parent:
        @get_mapping("/a")
        def find(self, id: int) -> str: ...

    @rest_controller
    @client_export(export_package="shop.clients")
    class OrderController(Parent):
        @get_mapping("/b")
        def find(self, id: str) -> str: ...
    """
    types = {t.name: t for t in load_types_from_source(textwrap.dedent(src))}
    ctrl = types["OrderController"]
    names = resolve_names(ctrl)

    with caplog.at_level(logging.WARNING):
        spec = translate_interface(ctrl, names, collect_methods(ctrl, export_all=True).values())

    assert spec.name == "OrderClientBase"
    assert spec.package == "shop.clients.base"
    assert spec.origin == "app.OrderController"
    assert spec.regenerated is True
    assert spec.head is None
    assert [m.parameters[0].type.expr for m in spec.methods] == ["str", "int"]
    assert "signatures named 'find'" in caplog.text
