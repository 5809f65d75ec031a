"""Tenancy-safe query helpers."""

from typing import Any, TypeVar

from sqlalchemy import Select, select

from behaviorlog.auth.context import ActorContext

M = TypeVar("M")


def scoped_select(model: type[M], actor: ActorContext, *columns: Any) -> Select[Any]:
    """Select from a tenant table with org scoping enforced.

    Args:
        model: ORM model carrying an ``org_id`` column
        actor: Actor whose organization bounds the query
        columns: Optional explicit columns; defaults to the whole entity

    Returns:
        Select filtered by org_id
    """
    stmt = select(*columns) if columns else select(model)
    return stmt.where(model.org_id == actor.org_id)  # type: ignore[attr-defined]
