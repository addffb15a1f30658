import pytest

from picce_app.core.exceptions import DanglingReferenceError, SemanticError
from picce_app.protocols.validators import (
    validate_dependencies,
    validate_item,
    validate_item_group,
    validate_item_validations,
    validate_placements,
    validate_protocol_tree,
)


def rule(kind, argument):
    return {"type": kind, "argument": argument}


def item(temp_id, type="TEXTBOX", placement=1, **extra):
    return {"temp_id": temp_id, "type": type, "placement": placement, "text": f"Item {temp_id}", **extra}


def group(items, placement=1, dependencies=(), **extra):
    return {"placement": placement, "type": "ONE_DIMENSIONAL", "items": items, "dependencies": list(dependencies), **extra}


def page(groups, placement=1, dependencies=()):
    return {"placement": placement, "type": "ITEMS", "item_groups": groups, "dependencies": list(dependencies)}


def dependency(temp_id, type="EXACT_ANSWER", argument="yes"):
    return {"type": type, "argument": argument, "item_temp_id": temp_id}


class TestPlacements:
    @pytest.mark.parametrize("placements", [[1, 2, 3], [2, 1, 3], [1], []])
    def test_accepts_consecutive_runs(self, placements):
        validate_placements(placements)

    @pytest.mark.parametrize("placements", [[1, 2, 4], [1, 1, 2], [0, 1], [2, 3]])
    def test_rejects_gaps_duplicates_and_wrong_start(self, placements):
        with pytest.raises(SemanticError):
            validate_placements(placements)


class TestItemCardinality:
    def test_option_types_need_two_options(self):
        with pytest.raises(SemanticError):
            validate_item("RADIO", 1)
        validate_item("RADIO", 2)
        validate_item("CHECKBOX", 5)

    def test_other_types_take_no_options(self):
        validate_item("TEXTBOX", 0)
        with pytest.raises(SemanticError):
            validate_item("TEXTBOX", 1)

    def test_groups_need_items(self):
        with pytest.raises(SemanticError):
            validate_item_group("ONE_DIMENSIONAL", 0, 0)

    def test_table_groups_need_columns(self):
        with pytest.raises(SemanticError):
            validate_item_group("RADIO_TABLE", 2, 0)
        validate_item_group("RADIO_TABLE", 2, 3)

    def test_one_dimensional_groups_forbid_columns(self):
        with pytest.raises(SemanticError):
            validate_item_group("ONE_DIMENSIONAL", 1, 1)


class TestItemValidations:
    def test_range_needs_min_max_and_step(self):
        with pytest.raises(SemanticError):
            validate_item_validations("RANGE", [rule("MIN", "0"), rule("MAX", "10")])

    def test_step_must_divide_the_span(self):
        with pytest.raises(SemanticError):
            validate_item_validations("RANGE", [rule("MIN", "0"), rule("MAX", "10"), rule("STEP", "3")])
        validate_item_validations("RANGE", [rule("MIN", "0"), rule("MAX", "10"), rule("STEP", "5")])

    def test_step_must_be_smaller_than_the_span(self):
        with pytest.raises(SemanticError):
            validate_item_validations("RANGE", [rule("MIN", "0"), rule("MAX", "10"), rule("STEP", "10")])

    def test_step_only_on_range(self):
        with pytest.raises(SemanticError):
            validate_item_validations("NUMBERBOX", [rule("STEP", "1")])

    def test_min_max_only_on_measurable_types(self):
        validate_item_validations("TEXTBOX", [rule("MAX", "200")])
        with pytest.raises(SemanticError):
            validate_item_validations("RADIO", [rule("MIN", "1")])

    def test_min_below_max(self):
        with pytest.raises(SemanticError):
            validate_item_validations("NUMBERBOX", [rule("MIN", "5"), rule("MAX", "5")])

    @pytest.mark.parametrize("argument", ["1.5", "one", ""])
    def test_numeric_arguments_must_be_integers(self, argument):
        with pytest.raises(SemanticError):
            validate_item_validations("NUMBERBOX", [rule("MIN", argument)])

    def test_mandatory_argument_is_a_literal_boolean(self):
        validate_item_validations("TEXTBOX", [rule("MANDATORY", "true")])
        with pytest.raises(SemanticError):
            validate_item_validations("TEXTBOX", [rule("MANDATORY", "yes")])

    def test_one_rule_per_kind(self):
        with pytest.raises(SemanticError):
            validate_item_validations("NUMBERBOX", [rule("MIN", "1"), rule("MIN", "2")])


class TestDependencies:
    def test_page_may_reference_an_earlier_page(self):
        validate_dependencies([page([group([item(1)])]), page([group([item(2)])], placement=2, dependencies=[dependency(1)])])

    def test_page_may_not_reference_a_later_page(self):
        pages = [page([group([item(1)])], dependencies=[dependency(2)]), page([group([item(2)])], placement=2)]
        with pytest.raises(SemanticError):
            validate_dependencies(pages)

    def test_order_follows_placement_not_payload_position(self):
        pages = [page([group([item(2)])], placement=2, dependencies=[dependency(1)]), page([group([item(1)])])]
        validate_dependencies(pages)

    def test_group_may_reference_an_earlier_group_of_the_same_page(self):
        groups = [group([item(1)]), group([item(2)], placement=2, dependencies=[dependency(1)])]
        validate_dependencies([page(groups)])

    def test_group_may_not_reference_its_own_items(self):
        with pytest.raises(SemanticError):
            validate_dependencies([page([group([item(1)], dependencies=[dependency(1)])])])

    def test_undeclared_temp_id_is_a_reference_error(self):
        with pytest.raises(DanglingReferenceError):
            validate_dependencies([page([group([item(1)])]), page([group([item(2)])], placement=2, dependencies=[dependency(99)])])

    def test_type_compatibility(self):
        pages = [
            page([group([item(1, type="RADIO")])]),
            page([group([item(2)])], placement=2, dependencies=[dependency(1, "EXACT_ANSWER")]),
        ]
        with pytest.raises(SemanticError):
            validate_dependencies(pages)
        pages[1]["dependencies"] = [dependency(1, "OPTION_SELECTED", "A")]
        validate_dependencies(pages)

    def test_inverted_min_max_pair(self):
        pages = [
            page([group([item(1, type="NUMBERBOX")])]),
            page(
                [group([item(2)])],
                placement=2,
                dependencies=[dependency(1, "MIN", "10"), dependency(1, "MAX", "3")],
            ),
        ]
        with pytest.raises(SemanticError):
            validate_dependencies(pages)

    def test_inverted_pair_across_pages_and_groups(self):
        pages = [
            page([group([item(1, type="NUMBERBOX")])]),
            page([group([item(2)])], placement=2, dependencies=[dependency(1, "MIN", "10")]),
            page(
                [group([item(3)]), group([item(4)], placement=2, dependencies=[dependency(1, "MAX", "3")])],
                placement=3,
            ),
        ]
        with pytest.raises(SemanticError):
            validate_dependencies(pages)
        pages[2]["item_groups"][1]["dependencies"] = [dependency(1, "MAX", "20")]
        validate_dependencies(pages)

    def test_repeated_bounds_on_one_item_are_allowed(self):
        pages = [
            page([group([item(1, type="NUMBERBOX")])]),
            page([group([item(2)])], placement=2, dependencies=[dependency(1, "MIN", "1"), dependency(1, "MAX", "9")]),
            page([group([item(3)])], placement=3, dependencies=[dependency(1, "MIN", "5")]),
        ]
        validate_dependencies(pages)
        pages[2]["dependencies"].append(dependency(1, "MAX", "5"))
        with pytest.raises(SemanticError):
            validate_dependencies(pages)

    def test_min_argument_must_be_integer(self):
        pages = [
            page([group([item(1, type="NUMBERBOX")])]),
            page([group([item(2)])], placement=2, dependencies=[dependency(1, "MIN", "2.5")]),
        ]
        with pytest.raises(SemanticError):
            validate_dependencies(pages)


class TestProtocolTree:
    def test_duplicate_temp_ids(self):
        with pytest.raises(SemanticError):
            validate_protocol_tree({"pages": [page([group([item(1), item(1, placement=2)])])]})

    def test_nested_placements_are_checked(self):
        options = [{"text": "A", "placement": 1}, {"text": "B", "placement": 3}]
        with pytest.raises(SemanticError):
            validate_protocol_tree({"pages": [page([group([item(1, type="RADIO", item_options=options)])])]})

    def test_valid_tree(self):
        options = [{"text": "A", "placement": 1}, {"text": "B", "placement": 2}]
        validate_protocol_tree({"pages": [page([group([item(7, type="RADIO", item_options=options)])])]})
