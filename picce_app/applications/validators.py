from __future__ import annotations

from collections import defaultdict
from typing import Mapping, Sequence

from picce_app.core.exceptions import DanglingReferenceError, SemanticError
from picce_app.core.models import Address
from picce_app.protocols.models import Item, ItemValidation, TableColumn

ItemType = Item.Type
ValidationType = ItemValidation.Type


def _rules(item: Item) -> dict[str, str]:
    return {rule.type: rule.argument for rule in item.item_validations.all()}


def _validate_references(items: Mapping[int, Item], groups: Sequence[Mapping]) -> None:
    option_ids = {item_id: {option.id for option in item.item_options.all()} for item_id, item in items.items()}
    columns: dict[int, set[int]] = defaultdict(set)
    for column_id, group_id in TableColumn.objects.filter(group__items__in=list(items)).values_list("id", "group_id"):
        columns[group_id].add(column_id)

    for group in groups:
        for answer in [*group.get("item_answers", []), *group.get("option_answers", []), *group.get("table_answers", [])]:
            if answer["item"] not in items:
                raise DanglingReferenceError(
                    f"Item {answer['item']} does not belong to the answered protocol.", {"item": answer["item"]}
                )
        for answer in group.get("option_answers", []):
            if answer["option"] not in option_ids[answer["item"]]:
                raise DanglingReferenceError(
                    f"Option {answer['option']} does not belong to item {answer['item']}.", {"option": answer["option"]}
                )
        for answer in group.get("table_answers", []):
            if answer["column"] not in columns[items[answer["item"]].group_id]:
                raise DanglingReferenceError(
                    f"Column {answer['column']} does not belong to the group of item {answer['item']}.",
                    {"column": answer["column"]},
                )


def validate_answers(protocol_id: int, groups: Sequence[Mapping]) -> None:
    """Check answers against the items and validation rules of the answered protocol."""
    items = {
        item.id: item
        for item in Item.objects.filter(group__page__protocol_id=protocol_id).prefetch_related(
            "item_validations", "item_options"
        )
    }
    _validate_references(items, groups)

    answers: dict[int, list[Mapping]] = defaultdict(list)
    for group in groups:
        for kind in ("item_answers", "option_answers", "table_answers"):
            for answer in group.get(kind, []):
                answers[answer["item"]].append(answer)

    for item in items.values():
        rules = _rules(item)
        given = answers.get(item.id, [])
        if rules.get(ValidationType.MANDATORY) == "true":
            # A selected option counts as an answer even without text.
            if not given or any(answer.get("text", "") == "" for answer in given if "option" not in answer):
                raise SemanticError(f"Mandatory item is missing: {item.text}")
        if not given:
            continue
        measures = [value for value in (_measure(item, answer) for answer in given) if value is not None]
        if ValidationType.MIN in rules:
            minimum = int(rules[ValidationType.MIN])
            if item.type == ItemType.CHECKBOX and len(given) < minimum:
                raise SemanticError(f"Not enough items selected: {item.text} expected at least {minimum}")
            if any(value < minimum for value in measures):
                raise SemanticError(f"Item value is too low: {item.text} expected at least {minimum}")
        if ValidationType.MAX in rules:
            maximum = int(rules[ValidationType.MAX])
            if item.type == ItemType.CHECKBOX and len(given) > maximum:
                raise SemanticError(f"Too many items selected: {item.text} expected at most {maximum}")
            if any(value > maximum for value in measures):
                raise SemanticError(f"Item value is too high: {item.text} expected at most {maximum}")


def _measure(item: Item, answer: Mapping) -> float | None:
    text = answer.get("text", "")
    if text == "":
        return None
    if item.type == ItemType.TEXTBOX:
        return len(text)
    if item.type in (ItemType.NUMBERBOX, ItemType.RANGE):
        try:
            return float(text)
        except ValueError:
            raise SemanticError(f"Item value is not a number: {item.text}") from None
    return None


def validate_address(address_id: int | None) -> None:
    if address_id is not None and not Address.objects.filter(id=address_id).exists():
        raise DanglingReferenceError(f"Unknown address: {address_id}.", {"address": address_id})
