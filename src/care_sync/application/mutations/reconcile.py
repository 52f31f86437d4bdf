"""Mutations – reconcile a server-confirmed record into an optimistic value."""
from __future__ import annotations

from typing import Any

from care_sync.kernel.errors import MalformedResponseError

__all__ = ["DEFAULT_ID_FIELD", "reconcile", "replace_entity"]

DEFAULT_ID_FIELD = "id"


def replace_entity(node: Any, match_id: Any, record: dict[str, Any], id_field: str) -> tuple[Any, bool]:
    """Return *node* with the entity whose id is *match_id* replaced.

    The replacement is the old entity with *record* merged over it, kept at
    the same position in its list. Walks nested lists and dicts; containers
    that hold no match are returned as-is.
    """
    if isinstance(node, dict):
        if id_field in node and node[id_field] == match_id:
            return {**node, **record}, True
        changed = False
        out: dict[str, Any] = {}
        for k, v in node.items():
            new_v, hit = replace_entity(v, match_id, record, id_field)
            out[k] = new_v
            changed = changed or hit
        return (out, True) if changed else (node, False)
    if isinstance(node, list):
        changed = False
        items: list[Any] = []
        for item in node:
            new_item, hit = replace_entity(item, match_id, record, id_field)
            items.append(new_item)
            changed = changed or hit
        return (items, True) if changed else (node, False)
    return node, False


def reconcile(
    optimistic: Any,
    confirmed: Any,
    *,
    temp_id: str | None = None,
    id_field: str = DEFAULT_ID_FIELD,
) -> Any:
    """Merge the server's answer into the optimistic cache value.

    * With *temp_id*: *confirmed* must be the created record carrying
      ``id_field``; it replaces the temporary entity in place, server fields
      winning. A record without an id raises ``MalformedResponseError``.
    * Without *temp_id*: a record carrying ``id_field`` updates the matching
      entity in place; any other acknowledgement (``None``, ``{"message": …}``)
      leaves the optimistic value as the committed value.
    """
    if temp_id is not None:
        if not isinstance(confirmed, dict) or confirmed.get(id_field) in (None, ""):
            raise MalformedResponseError(
                f"create response carries no '{id_field}'",
                detail={"temp_id": temp_id},
            )
        merged, found = replace_entity(optimistic, temp_id, confirmed, id_field)
        if not found:
            raise MalformedResponseError(
                f"optimistic entity '{temp_id}' not present in cache value",
                detail={"temp_id": temp_id},
            )
        return merged

    if isinstance(confirmed, dict) and confirmed.get(id_field) not in (None, ""):
        merged, _ = replace_entity(optimistic, confirmed[id_field], confirmed, id_field)
        return merged
    return optimistic
