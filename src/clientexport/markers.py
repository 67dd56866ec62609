"""
Declaration-only markers shared by server controllers and generated clients.

Every decorator records its arguments on the target under ``__clientexport__``
and returns the target unchanged. Nothing here performs a request; generated
clients are bound to a transport by whatever proxy library consumes them.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

_METADATA_ATTR = "__clientexport__"


def _record(target: T, kind: str, members: dict[str, Any]) -> T:
    meta = dict(getattr(target, _METADATA_ATTR, {}))
    meta[kind] = members
    setattr(target, _METADATA_ATTR, meta)
    return target


def metadata(target: Any) -> dict[str, dict[str, Any]]:
    return dict(getattr(target, _METADATA_ATTR, {}))


def _marker(kind: str) -> Callable[..., Any]:
    def marker(target: Optional[T] = None, /, **members: Any) -> Any:
        # usable both bare (@export) and called (@export())
        if target is not None:
            return _record(target, kind, members)
        return lambda t: _record(t, kind, members)

    marker.__name__ = kind
    return marker


export = _marker("export")
rest_controller = _marker("rest_controller")
controller = _marker("controller")
response_body = _marker("response_body")


def client_export(export_package: str, extract_name: str = "") -> Callable[[T], T]:
    return lambda cls: _record(
        cls, "client_export", {"export_package": export_package, "extract_name": extract_name}
    )


def remote_client(name: str, path: str = "", **members: Any) -> Callable[[T], T]:
    return lambda cls: _record(cls, "remote_client", {"name": name, "path": path, **members})


def _route(kind: str) -> Callable[..., Callable[[T], T]]:
    def route(value: Any = None, /, **members: Any) -> Callable[[T], T]:
        if value is not None:
            members = {"value": value, **members}
        return lambda fn: _record(fn, kind, members)

    route.__name__ = kind
    return route


get_mapping = _route("get_mapping")
post_mapping = _route("post_mapping")
put_mapping = _route("put_mapping")
delete_mapping = _route("delete_mapping")
patch_mapping = _route("patch_mapping")
request_mapping = _route("request_mapping")


class _Binding:
    def __init__(self, value: Any = None, /, **members: Any) -> None:
        self.members = {"value": value, **members} if value is not None else members

    @property
    def value(self) -> Any:
        return self.members.get("value")

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.members.items())
        return f"{type(self).__name__}({args})"


class RequestHeader(_Binding):
    pass


class RequestParam(_Binding):
    pass


class RequestBody(_Binding):
    pass


class PathVariable(_Binding):
    pass


class ModelAttribute(_Binding):
    pass
