"""Per-request identifiers carried through ``contextvars`` for log records."""

import contextvars

_UNSET = "-"

_tenant_id: contextvars.ContextVar[str] = contextvars.ContextVar("tenant_id", default=_UNSET)
_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default=_UNSET)
_actor_id: contextvars.ContextVar[str] = contextvars.ContextVar("actor_id", default=_UNSET)


def set_tenant_id(tenant_id: str | None) -> None:
    _tenant_id.set(tenant_id or _UNSET)


def get_tenant_id() -> str:
    return _tenant_id.get()


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


def set_actor_id(actor_id: str | None) -> None:
    _actor_id.set(actor_id or _UNSET)


def get_actor_id() -> str:
    return _actor_id.get()


def clear_context() -> None:
    for var in (_tenant_id, _request_id, _actor_id):
        var.set(_UNSET)
