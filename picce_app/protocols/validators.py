"""Structural and semantic checks run on a protocol payload before it is persisted.

All functions are pure: they take plain payload values and raise
:class:`SemanticError` (or :class:`DanglingReferenceError` for dependencies on
items that are never declared) on the first violation.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from picce_app.core.exceptions import DanglingReferenceError, SemanticError

from .models import DependencyType, Item, ItemGroup, ItemValidation

ItemType = Item.Type
ValidationType = ItemValidation.Type

MIN_MAX_ITEM_TYPES = frozenset({ItemType.NUMBERBOX, ItemType.RANGE, ItemType.CHECKBOX, ItemType.TEXTBOX})

DEPENDENCY_ITEM_TYPES = {
    DependencyType.EXACT_ANSWER: frozenset({ItemType.TEXTBOX, ItemType.NUMBERBOX, ItemType.RANGE}),
    DependencyType.MIN: frozenset({ItemType.CHECKBOX, ItemType.NUMBERBOX, ItemType.RANGE, ItemType.TEXTBOX}),
    DependencyType.MAX: frozenset({ItemType.CHECKBOX, ItemType.NUMBERBOX, ItemType.RANGE, ItemType.TEXTBOX}),
    DependencyType.OPTION_SELECTED: frozenset({ItemType.RADIO, ItemType.SELECT, ItemType.CHECKBOX}),
}


def parse_integer(argument: str, label: str) -> int:
    text = str(argument).strip()
    if "." in text:
        raise SemanticError(f"{label} argument must be an integer, got {argument!r}.")
    try:
        return int(text)
    except ValueError:
        raise SemanticError(f"{label} argument must be an integer, got {argument!r}.") from None


def by_placement(children: Iterable[Mapping]) -> list[Mapping]:
    return sorted(children, key=lambda child: child["placement"])


def validate_placements(placements: Iterable[int], label: str = "siblings") -> None:
    values = list(placements)
    if not values:
        return
    if len(set(values)) != len(values) or min(values) != 1 or max(values) != len(values):
        raise SemanticError(
            f"Invalid placement values for {label}: placements must be unique and consecutive starting at 1.",
            {"placements": values},
        )


def validate_item(item_type: str, option_count: int) -> None:
    if item_type in Item.OPTION_TYPES and option_count < 2:
        raise SemanticError(f"{item_type} items must have at least two options.")
    if item_type not in Item.OPTION_TYPES and option_count != 0:
        raise SemanticError(f"{item_type} items cannot have options.")


def validate_item_group(group_type: str, item_count: int, table_column_count: int) -> None:
    if item_count == 0:
        raise SemanticError("Item groups must have at least one item.")
    if group_type in ItemGroup.TABLE_TYPES and table_column_count == 0:
        raise SemanticError(f"{group_type} item groups must have at least one table column.")
    if group_type == ItemGroup.Type.ONE_DIMENSIONAL and table_column_count > 0:
        raise SemanticError("ONE_DIMENSIONAL item groups cannot have table columns.")


def validate_item_validations(item_type: str, rules: Sequence[Mapping]) -> None:
    kinds: dict[str, str] = {}
    for rule in rules:
        if rule["type"] in kinds:
            raise SemanticError(f"Only one {rule['type']} validation is allowed per item.")
        kinds[rule["type"]] = rule["argument"]

    if ValidationType.MANDATORY in kinds and kinds[ValidationType.MANDATORY] not in ("true", "false"):
        raise SemanticError("MANDATORY validation argument must be 'true' or 'false'.")

    numbers = {kind: parse_integer(kinds[kind], kind) for kind in (ValidationType.MIN, ValidationType.MAX, ValidationType.STEP) if kind in kinds}
    minimum = numbers.get(ValidationType.MIN)
    maximum = numbers.get(ValidationType.MAX)
    step = numbers.get(ValidationType.STEP)

    if step is not None and item_type != ItemType.RANGE:
        raise SemanticError("STEP validation is only allowed on RANGE items.")
    if (minimum is not None or maximum is not None) and item_type not in MIN_MAX_ITEM_TYPES:
        raise SemanticError(f"MIN and MAX validations are not allowed on {item_type} items.")
    if item_type == ItemType.RANGE and None in (minimum, maximum, step):
        raise SemanticError("RANGE items require MIN, MAX and STEP validations.")
    if minimum is not None and maximum is not None and minimum >= maximum:
        raise SemanticError("MIN validation must be lower than MAX validation.")
    if None not in (minimum, maximum, step):
        span = maximum - minimum
        if step <= 0 or step >= span or span % step != 0:
            raise SemanticError("STEP validation must be positive, lower than MAX - MIN and divide it evenly.")


def _validate_rules(
    rules: Sequence[Mapping],
    visible: Mapping[int, str],
    declared: Mapping[int, str],
    bounds: dict[int, dict[str, list[int]]],
) -> None:
    for rule in rules:
        temp_id = rule["item_temp_id"]
        if temp_id not in declared:
            raise DanglingReferenceError(
                f"Dependency references item temp id {temp_id}, which is not declared.",
                {"item_temp_id": temp_id},
            )
        if temp_id not in visible:
            raise SemanticError(
                f"Dependency references item temp id {temp_id}, which is not declared on an earlier page or item group.",
                {"item_temp_id": temp_id},
            )
        kind = rule["type"]
        if visible[temp_id] not in DEPENDENCY_ITEM_TYPES[kind]:
            raise SemanticError(f"{kind} dependencies cannot reference {visible[temp_id]} items.")
        if kind in (DependencyType.MIN, DependencyType.MAX):
            value = parse_integer(rule["argument"], kind)
            limits = bounds.setdefault(temp_id, {DependencyType.MIN: [], DependencyType.MAX: []})
            opposite = DependencyType.MAX if kind == DependencyType.MIN else DependencyType.MIN
            for other in limits[opposite]:
                low, high = (value, other) if kind == DependencyType.MIN else (other, value)
                if low >= high:
                    raise SemanticError(
                        f"MIN dependency {low} must be lower than MAX dependency {high} on item temp id {temp_id}.",
                        {"item_temp_id": temp_id},
                    )
            limits[kind].append(value)


def validate_dependencies(pages: Sequence[Mapping]) -> None:
    """Walk the tree in placement order so rules only see earlier items.

    Page rules see items of strictly earlier pages; group rules additionally
    see items of earlier groups on the same page. MIN and MAX rules are
    compared with every other rule of the protocol that references the same
    item.
    """
    declared = {
        item["temp_id"]: item["type"]
        for page in pages
        for group in page.get("item_groups", [])
        for item in group.get("items", [])
    }
    visible: dict[int, str] = {}
    bounds: dict[int, dict[str, list[int]]] = {}
    for page in by_placement(pages):
        _validate_rules(page.get("dependencies", []), visible, declared, bounds)
        page_items: dict[int, str] = {}
        for group in by_placement(page.get("item_groups", [])):
            _validate_rules(group.get("dependencies", []), {**visible, **page_items}, declared, bounds)
            page_items.update({item["temp_id"]: item["type"] for item in group.get("items", [])})
        visible.update(page_items)


def validate_protocol_tree(data: Mapping) -> None:
    pages = data.get("pages", [])
    validate_placements((page["placement"] for page in pages), "pages")
    temp_ids: set[int] = set()
    for page in pages:
        groups = page.get("item_groups", [])
        validate_placements((group["placement"] for group in groups), "item groups")
        for group in groups:
            items = group.get("items", [])
            columns = group.get("table_columns", [])
            validate_item_group(group["type"], len(items), len(columns))
            validate_placements((item["placement"] for item in items), "items")
            validate_placements((column["placement"] for column in columns), "table columns")
            for item in items:
                if item["temp_id"] in temp_ids:
                    raise SemanticError(f"Item temp id {item['temp_id']} is declared more than once.")
                temp_ids.add(item["temp_id"])
                options = item.get("item_options", [])
                validate_item(item["type"], len(options))
                validate_placements((option["placement"] for option in options), "item options")
                validate_item_validations(item["type"], item.get("item_validations", []))
    validate_dependencies(pages)
