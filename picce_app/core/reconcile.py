"""Desired-state reconciliation shared by the protocol and answer upserts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from .exceptions import NotFoundError

Entry = tuple[int, Mapping]


@dataclass(frozen=True)
class Reconciliation:
    """Children to create and update, as ``(payload index, data)`` pairs, and ids to prune."""

    to_create: list[Entry] = field(default_factory=list)
    to_update: list[Entry] = field(default_factory=list)
    to_delete: frozenset[int] = frozenset()

    @property
    def entries(self) -> list[Entry]:
        return self.to_update + self.to_create


def reconcile(desired: Sequence[Mapping], persisted_ids: Iterable[int]) -> Reconciliation:
    # Siblings are handled in placement order; each entry keeps its payload
    # index since upload slots are addressed by position in the request.
    entries = sorted(enumerate(desired), key=lambda entry: entry[1].get("placement", 0))
    kept = {data["id"] for _, data in entries if data.get("id")}
    return Reconciliation(
        to_create=[(index, data) for index, data in entries if not data.get("id")],
        to_update=[(index, data) for index, data in entries if data.get("id")],
        to_delete=frozenset(set(persisted_ids) - kept),
    )


def scoped_get(model, **lookup):
    """Fetch a child by id *and* parent so foreign ids can never be re-parented."""
    try:
        return model.objects.get(**lookup)
    except model.DoesNotExist:
        name = model._meta.verbose_name
        raise NotFoundError(
            f"{name[0].upper()}{name[1:]} {lookup.get('id')} does not belong to this tree.",
            {"model": model._meta.model_name, "id": lookup.get("id")},
        ) from None


def sync_children(queryset, desired: Sequence[Mapping]) -> list[Entry]:
    """Prune persisted children missing from ``desired`` and return what is left to upsert."""
    plan = reconcile(desired, queryset.values_list("id", flat=True))
    if plan.to_delete:
        queryset.filter(id__in=plan.to_delete).delete()
    return plan.entries


def upsert_child(model, scope: Mapping, data: Mapping, **values):
    if data.get("id"):
        instance = scoped_get(model, id=data["id"], **scope)
        for name, value in values.items():
            setattr(instance, name, value)
        instance.save()
        return instance
    return model.objects.create(**scope, **values)
