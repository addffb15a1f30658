"""Create-or-update-and-prune of the whole protocol tree in one transaction."""

from __future__ import annotations

import logging
from typing import Mapping

from django.db import transaction
from django.db.models import Q

from picce_app.core.exceptions import ConflictError, DanglingReferenceError
from picce_app.core.files import UploadPool, discard_blobs_on_commit
from picce_app.core.reconcile import sync_children, upsert_child
from picce_app.core.validators import validate_appliers, validate_classrooms, validate_managers, validate_viewers

from .models import (
    File,
    Item,
    ItemGroup,
    ItemGroupDependencyRule,
    ItemOption,
    ItemValidation,
    Page,
    PageDependencyRule,
    Protocol,
    TableColumn,
)
from .validators import validate_protocol_tree

logger = logging.getLogger(__name__)

SCALAR_FIELDS = ("title", "description", "enabled", "replicable", "visibility", "applicability", "answers_visibility")
RELATION_FIELDS = (
    "managers",
    "appliers",
    "viewers_user",
    "viewers_classroom",
    "answers_viewers_user",
    "answers_viewers_classroom",
)


def protocol_file_paths(protocol_id: int) -> set[str]:
    owned = (
        Q(item__group__page__protocol_id=protocol_id)
        | Q(item_option__item__group__page__protocol_id=protocol_id)
        | Q(item_answer__item__group__page__protocol_id=protocol_id)
    )
    return set(File.objects.filter(owned).values_list("path", flat=True))


class ProtocolUpsert:
    """Bring persisted protocol state in line with a desired tree.

    Items are written first while recording ``temp_id -> id``; dependency
    rules are written afterwards so they can reference any item of the
    request. Creating is the same walk applied to an empty protocol.
    """

    def __init__(self, data: Mapping, uploads: Mapping | None = None):
        self.data = data
        self.uploads = UploadPool(uploads)
        self.temp_ids: dict[int, int] = {}
        self._pending_rules: list[tuple[type, dict, list]] = []

    def create(self, creator) -> Protocol:
        with transaction.atomic():
            protocol = Protocol.objects.create(
                creator=creator, **{name: self.data[name] for name in SCALAR_FIELDS}
            )
            self._apply(protocol)
        return protocol

    def update(self, protocol: Protocol) -> Protocol:
        with transaction.atomic():
            before = protocol_file_paths(protocol.id)
            for name in SCALAR_FIELDS:
                setattr(protocol, name, self.data[name])
            protocol.save()
            self._apply(protocol)
            discard_blobs_on_commit(before - protocol_file_paths(protocol.id))
        return protocol

    def _apply(self, protocol: Protocol) -> None:
        for name in RELATION_FIELDS:
            getattr(protocol, name).set(self.data.get(name, []))
        for index, page_data in sync_children(protocol.pages.all(), self.data["pages"]):
            page = upsert_child(
                Page, {"protocol": protocol}, page_data, placement=page_data["placement"], type=page_data["type"]
            )
            self._sync_item_groups(page, page_data, ("pages", index))
            self._pending_rules.append((PageDependencyRule, {"page": page}, page_data.get("dependencies", [])))
        self._sync_dependencies()
        self.uploads.ensure_consumed()

    def _sync_item_groups(self, page: Page, page_data: Mapping, coordinates: tuple) -> None:
        for index, group_data in sync_children(page.item_groups.all(), page_data.get("item_groups", [])):
            group = upsert_child(
                ItemGroup,
                {"page": page},
                group_data,
                placement=group_data["placement"],
                is_repeatable=group_data["is_repeatable"],
                type=group_data["type"],
            )
            group_coordinates = (*coordinates, "item_groups", index)
            for _, column in sync_children(group.table_columns.all(), group_data.get("table_columns", [])):
                upsert_child(TableColumn, {"group": group}, column, text=column["text"], placement=column["placement"])
            self._sync_items(group, group_data, group_coordinates)
            self._pending_rules.append(
                (ItemGroupDependencyRule, {"item_group": group}, group_data.get("dependencies", []))
            )

    def _sync_items(self, group: ItemGroup, group_data: Mapping, coordinates: tuple) -> None:
        for index, item_data in sync_children(group.items.all(), group_data.get("items", [])):
            item = upsert_child(
                Item,
                {"group": group},
                item_data,
                text=item_data["text"],
                description=item_data.get("description", ""),
                type=item_data["type"],
                placement=item_data["placement"],
                enabled=item_data["enabled"],
            )
            self.temp_ids[item_data["temp_id"]] = item.id
            item_coordinates = (*coordinates, "items", index)
            for option_index, option_data in sync_children(item.item_options.all(), item_data.get("item_options", [])):
                option = upsert_child(
                    ItemOption,
                    {"item": item},
                    option_data,
                    text=option_data["text"],
                    placement=option_data["placement"],
                )
                self._sync_files(
                    option.files.all(),
                    {"item_option": option},
                    option_data.get("files", []),
                    (*item_coordinates, "item_options", option_index),
                )
            for _, rule in sync_children(item.item_validations.all(), item_data.get("item_validations", [])):
                upsert_child(
                    ItemValidation,
                    {"item": item},
                    rule,
                    type=rule["type"],
                    argument=rule["argument"],
                    custom_message=rule.get("custom_message", ""),
                )
            self._sync_files(item.files.all(), {"item": item}, item_data.get("files", []), item_coordinates)

    def _sync_files(self, queryset, scope: dict, files: list, coordinates: tuple) -> None:
        for index, file_data in sync_children(queryset, files):
            description = file_data.get("description", "")
            if file_data.get("id"):
                # Content replacement is unsupported; only metadata changes.
                upsert_child(File, scope, file_data, description=description)
            else:
                path = self.uploads.claim((*coordinates, "files", index))
                File.objects.create(path=path, description=description, **scope)

    def _resolve(self, temp_id: int) -> int:
        try:
            return self.temp_ids[temp_id]
        except KeyError:
            raise DanglingReferenceError(
                f"Dependency references item temp id {temp_id}, which is not declared.",
                {"item_temp_id": temp_id},
            ) from None

    def _sync_dependencies(self) -> None:
        for model, scope, rules in self._pending_rules:
            for _, rule in sync_children(model.objects.filter(**scope), rules):
                upsert_child(
                    model,
                    scope,
                    rule,
                    type=rule["type"],
                    argument=rule["argument"],
                    custom_message=rule.get("custom_message", ""),
                    item_id=self._resolve(rule["item_temp_id"]),
                )
        self._pending_rules.clear()


def validate_protocol_payload(data: Mapping, institution_id: int | None) -> None:
    """Checks that must pass before the write transaction is opened."""
    validate_protocol_tree(data)
    validate_managers(data.get("managers", []), institution_id)
    validate_appliers(data.get("appliers", []), institution_id)
    validate_viewers([*data.get("viewers_user", []), *data.get("answers_viewers_user", [])])
    validate_classrooms([*data.get("viewers_classroom", []), *data.get("answers_viewers_classroom", [])])


def create_protocol(creator, data: Mapping, uploads: Mapping | None = None) -> Protocol:
    validate_protocol_payload(data, creator.institution_id)
    protocol = ProtocolUpsert(data, uploads).create(creator)
    logger.info("Protocol %s created by user %s", protocol.id, creator.id)
    return protocol


def update_protocol(protocol: Protocol, data: Mapping, uploads: Mapping | None = None) -> Protocol:
    validate_protocol_payload(data, protocol.creator.institution_id)
    protocol = ProtocolUpsert(data, uploads).update(protocol)
    logger.info("Protocol %s updated", protocol.id)
    return protocol


def delete_protocol(protocol: Protocol) -> None:
    protocol_id = protocol.id
    with transaction.atomic():
        if protocol.applications.exists():
            raise ConflictError("Protocols with applications cannot be deleted.")
        paths = protocol_file_paths(protocol_id)
        protocol.delete()
        discard_blobs_on_commit(paths)
    logger.info("Protocol %s deleted", protocol_id)
