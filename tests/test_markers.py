from typing import Annotated, get_type_hints

from clientexport import markers
from clientexport.markers import (
    PathVariable,
    RequestParam,
    client_export,
    export,
    get_mapping,
    remote_client,
    request_mapping,
    rest_controller,
)


def test_markers_record_metadata_and_return_target():
    @rest_controller
    @export
    @request_mapping("/orders")
    @client_export(export_package="shop.clients")
    class OrderController:
        @export
        @get_mapping("/{order_id}", produces="application/json")
        def get_order(self, order_id: Annotated[int, PathVariable()], q: Annotated[str, RequestParam("query")]) -> str:
            return "ok"

    meta = markers.metadata(OrderController)
    assert set(meta) == {"rest_controller", "export", "request_mapping", "client_export"}
    assert meta["client_export"] == {"export_package": "shop.clients", "extract_name": ""}
    assert meta["request_mapping"] == {"value": "/orders"}

    route = markers.metadata(OrderController.get_order)
    assert route["get_mapping"] == {"value": "/{order_id}", "produces": "application/json"}
    assert "export" in route
    assert OrderController().get_order(1, "x") == "ok"

    hints = get_type_hints(OrderController.get_order, include_extras=True)
    assert hints["q"].__metadata__[0].value == "query"
    assert hints["order_id"].__metadata__[0].value is None


def test_remote_client_marks_generated_interfaces():
    @remote_client(name="orders-service", path="/orders")
    class OrderClient:
        pass

    assert markers.metadata(OrderClient)["remote_client"] == {"name": "orders-service", "path": "/orders"}


def test_export_can_be_called():
    @export()
    def f():
        return 1

    assert "export" in markers.metadata(f)
    assert f() == 1
