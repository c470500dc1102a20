# bot/services/audit_log.py
from __future__ import annotations

import enum
import inspect
import logging
import uuid
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from functools import wraps
from typing import Any, ClassVar, Iterable, Mapping, Optional, Sequence
from contextvars import ContextVar, Token

from demo_day.config import Settings
from demo_day.db.database import DataBase
from demo_day.db.schemas.audit_log import AuditLogCreate, AuditLogRead
from demo_day.db.schemas.user import UserRead

Actor = UserRead | uuid.UUID | None

logger = logging.getLogger("demo_day.audit")


class AuditLogService:
    """
    Records judging actions (score submissions, lock changes, prize edits,
    winner selection...) in the ``audit_log`` table.

    Each entry stores the call under ``data`` and, when the acting user is
    known as a full record, a snapshot of it under ``actor``.
    """

    _instance: ClassVar[Optional["AuditLogService"]] = None

    def __new__(cls) -> "AuditLogService":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._actor_ctx: ContextVar[Optional[uuid.UUID]] = ContextVar("audit_actor", default=None)
        self._initialized = True

    @property
    def enabled(self) -> bool:
        return Settings().audit_enabled

    async def record(self, *, action: str, actor: Actor = None, data: Any | None = None) -> Optional[AuditLogRead]:
        """
        Persist one audit entry.

        :param action: dotted label, e.g. ``services.score.submit_score``
        :param actor: acting user or its id; defaults to the bound actor
        :param data: details of the call, serialised before storing
        """
        if not self.enabled:
            return None

        if actor is None:
            actor = self.current_actor()

        payload: dict[str, Any] = {}
        if data is not None:
            payload["data"] = self.serialize(data)
        if isinstance(actor, UserRead):
            payload["actor"] = {"id": str(actor.id), "role": self.serialize(actor.role), "label": actor.label}
        actor_id = actor.id if isinstance(actor, UserRead) else actor

        # DataBase is looked up per call so a reset singleton is picked up
        entry = await DataBase().create_audit_log(AuditLogCreate(action=action, actor_id=actor_id, payload=payload))
        logger.info("AUDIT action=%s actor=%s entry=%s", action, actor_id or "-", entry.id)
        return entry

    # --------------
    # Actor context
    # --------------
    def bind_actor(self, actor_id: Optional[uuid.UUID]) -> Token:
        return self._actor_ctx.set(actor_id)

    def unbind_actor(self, token: Token) -> None:
        try:
            self._actor_ctx.reset(token)
        except ValueError:
            # token created in another context
            self._actor_ctx.set(None)

    def current_actor(self) -> Optional[uuid.UUID]:
        return self._actor_ctx.get()

    def serialize(self, value: Any) -> Any:
        """Reduce DTOs, enums, ids and timestamps to JSON-friendly values."""
        if isinstance(value, enum.Enum):
            return self.serialize(value.value)
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if is_dataclass(value) and not isinstance(value, type):
            return {k: self.serialize(v) for k, v in asdict(value).items()}
        if hasattr(value, "model_dump"):
            return {k: self.serialize(v) for k, v in value.model_dump().items()}
        if isinstance(value, Mapping):
            return {str(k): self.serialize(v) for k, v in value.items()}
        if isinstance(value, (set, frozenset)):
            return sorted((self.serialize(v) for v in value), key=str)
        if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
            return [self.serialize(v) for v in value]
        return str(value)


audit_logger = AuditLogService()


def _resolve_actor(actor_fields: Iterable[str] | None, bound: inspect.BoundArguments) -> Actor:
    for field in actor_fields or ():
        candidate = bound.arguments.get(field)
        if candidate is not None:
            return candidate
    return None


async def _emit_action(*, action: str, actor: Actor, data: dict[str, Any]) -> None:
    # the audited call already finished; a failed audit write must not change its outcome
    try:
        await audit_logger.record(action=action, actor=actor, data=data)
    except Exception:
        logger.exception("Failed to write audit entry %s", action)


def _wrap_async_callable(fn, action: str, *, skip_first_arg: bool, actor_fields: Iterable[str] | None):
    if getattr(fn, "__audit_wrapped__", False):
        return fn

    signature = inspect.signature(fn)
    skip_count = 1 if skip_first_arg else 0

    @wraps(fn)
    async def wrapper(*args, **kwargs):
        actor = _resolve_actor(actor_fields, signature.bind_partial(*args, **kwargs))
        data = {
            "args": [audit_logger.serialize(arg) for arg in args[skip_count:]],
            "kwargs": {k: audit_logger.serialize(v) for k, v in kwargs.items()},
        }
        try:
            result = await fn(*args, **kwargs)
        except Exception as exc:
            data["error"] = repr(exc)
            await _emit_action(action=f"{action}.error", actor=actor, data=data)
            raise
        data["result"] = audit_logger.serialize(result)
        await _emit_action(action=action, actor=actor, data=data)
        return result

    wrapper.__audit_wrapped__ = True  # type: ignore[attr-defined]
    return wrapper


def instrument_service_class(
    cls,
    *,
    prefix: str | None = None,
    exclude: Iterable[str] | None = None,
    actor_fields: Iterable[str] | None = None,
) -> None:
    """Wrap the public coroutine methods of a service class so each call is audited."""
    action_prefix = prefix or cls.__name__
    excluded = set(exclude or [])

    for name, attr in list(cls.__dict__.items()):
        if name.startswith("_") or name in excluded:
            continue
        if inspect.iscoroutinefunction(attr):
            setattr(
                cls,
                name,
                _wrap_async_callable(attr, f"{action_prefix}.{name}", skip_first_arg=True, actor_fields=actor_fields),
            )
        elif isinstance(attr, staticmethod) and inspect.iscoroutinefunction(attr.__func__):
            wrapped = _wrap_async_callable(attr.__func__, f"{action_prefix}.{name}", skip_first_arg=False, actor_fields=actor_fields)
            setattr(cls, name, staticmethod(wrapped))


__all__ = [
    "AuditLogService",
    "audit_logger",
    "instrument_service_class",
]
