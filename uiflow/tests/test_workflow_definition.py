"""
Tests for WorkflowDefinition
"""

import pytest

from uiflow.workflows import EXAMPLES_DIR
from uiflow.workflows.definition import (
    OperationSpec,
    StepDefinition,
    WorkflowDefinition,
    WorkflowInput,
)


def workflow_from_steps(steps, inputs=None):
    return WorkflowDefinition.from_dict({"name": "wf", "inputs": inputs or {}, "steps": steps})


class TestWorkflowInput:
    """Tests for WorkflowInput."""

    def test_from_dict_with_default(self):
        inp = WorkflowInput.from_dict("format", {"type": "string", "default": "Paperback"})

        assert inp.name == "format"
        assert inp.required is False
        assert inp.default == "Paperback"

    def test_from_none(self):
        inp = WorkflowInput.from_dict("search_term", None)

        assert inp.type == "string"
        assert inp.default is None


class TestOperationSpec:
    """Tests for OperationSpec."""

    def test_from_mapping(self):
        spec = OperationSpec.from_item({"click": "#nav-cart"})

        assert spec.name == "click"
        assert spec.args == "#nav-cart"
        assert spec.to_item() == {"click": "#nav-cart"}

    def test_rejects_multi_key_mapping(self):
        with pytest.raises(ValueError):
            OperationSpec.from_item({"click": "#a", "type": "#b"})

    def test_shorthand_builds_operation(self):
        operation = OperationSpec.from_item({"click": "#nav-cart"}).build()

        assert operation.args == {"locator": "#nav-cart"}

    def test_bare_locator_mapping_builds_operation(self):
        operation = OperationSpec.from_item(
            {"is_displayed": {"query": "Kindle", "by": "link_text", "scope": "topResult"}}
        ).build()

        assert operation.locator.by == "link_text"
        assert operation.reads() == {"topResult"}


class TestStepDefinition:
    """Tests for StepDefinition."""

    def test_from_dict(self):
        step = StepDefinition.from_dict(
            {
                "name": "open_home",
                "ordinal": 1,
                "actions": [{"navigate": "{{ config.base_url }}"}],
                "assertions": [{"url_equals": "{{ config.base_url }}"}],
            },
            default_ordinal=5,
        )

        assert step.name == "open_home"
        assert step.ordinal == 1
        assert len(step.actions) == 1
        assert len(step.assertions) == 1

    def test_default_ordinal(self):
        step = StepDefinition.from_dict({"name": "s", "actions": ["navigate"]}, default_ordinal=4)

        assert step.ordinal == 4

    def test_is_immutable(self):
        step = StepDefinition(name="s", ordinal=1)
        with pytest.raises(Exception):
            step.ordinal = 2


class TestWorkflowDefinition:
    """Tests for WorkflowDefinition."""

    def test_from_yaml(self):
        yaml_str = """
workflow:
  name: cart-check
  inputs:
    format:
      default: Paperback
  steps:
    - name: open_cart
      ordinal: 1
      actions:
        - navigate: "{{ config.base_url }}cart"
      assertions:
        - url_starts_with: "{{ config.base_url }}cart"
    - name: check_count
      assertions:
        - text_equals:
            locator: "#nav-cart-count"
            expected: "1"
"""
        workflow = WorkflowDefinition.from_yaml(yaml_str)

        assert workflow.name == "cart-check"
        assert [s.ordinal for s in workflow.steps] == [1, 2]
        assert workflow.inputs["format"].default == "Paperback"
        assert workflow.validate() == []

    def test_from_yaml_invalid(self):
        with pytest.raises(ValueError, match="Invalid YAML"):
            WorkflowDefinition.from_yaml("workflow: [unclosed")

    def test_from_yaml_missing_root(self):
        with pytest.raises(ValueError, match="'workflow' key"):
            WorkflowDefinition.from_yaml("steps: []")

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WorkflowDefinition.from_file(str(tmp_path / "missing.yaml"))

    def test_bundled_example_is_valid(self):
        """Test that the shipped example workflow validates."""
        workflow = WorkflowDefinition.from_file(str(EXAMPLES_DIR / "book_search_checkout.yaml"))

        assert workflow.validate() == []
        ordinals = [step.ordinal for step in workflow.steps]
        assert ordinals == sorted(ordinals)
        siblings = [g for g in workflow.ordinal_groups() if len(g) > 1]
        assert [[s.name for s in g] for g in siblings] == [["top_result_title", "top_result_price"]]

    def test_empty_workflow(self):
        errors = workflow_from_steps([]).validate()

        assert "Workflow must have at least one step" in errors

    def test_duplicate_step_names(self):
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 1, "actions": [{"navigate": "https://x.test/"}]},
                {"name": "a", "ordinal": 2, "actions": [{"navigate": "https://x.test/"}]},
            ]
        ).validate()

        assert any("Duplicate step names" in e for e in errors)

    def test_ordinals_must_not_decrease(self):
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 2, "actions": [{"navigate": "https://x.test/"}]},
                {"name": "b", "ordinal": 1, "actions": [{"navigate": "https://x.test/"}]},
            ]
        ).validate()

        assert any("must be declared in order" in e for e in errors)

    def test_ordinal_must_be_positive_integer(self):
        errors = workflow_from_steps(
            [{"name": "a", "ordinal": 0, "actions": [{"navigate": "https://x.test/"}]}]
        ).validate()

        assert any("positive integer ordinal" in e for e in errors)

    def test_step_needs_operations(self):
        errors = workflow_from_steps([{"name": "a", "ordinal": 1}]).validate()

        assert any("no actions or assertions" in e for e in errors)

    def test_unknown_operation(self):
        errors = workflow_from_steps(
            [{"name": "a", "ordinal": 1, "actions": [{"hover": "#menu"}]}]
        ).validate()

        assert any("Unknown operation 'hover'" in e for e in errors)

    def test_missing_argument(self):
        errors = workflow_from_steps(
            [{"name": "a", "ordinal": 1, "actions": [{"capture": {"locator": "#x"}}]}]
        ).validate()

        assert any("missing argument(s): save_as" in e for e in errors)

    def test_assertion_listed_as_action(self):
        errors = workflow_from_steps(
            [{"name": "a", "ordinal": 1, "actions": [{"url_equals": "https://x.test/"}]}]
        ).validate()

        assert any("is an assertion, not an action" in e for e in errors)

    def test_read_before_capture(self):
        errors = workflow_from_steps(
            [
                {
                    "name": "a",
                    "ordinal": 1,
                    "assertions": [
                        {"text_equals": {"locator": {"query": ".t", "scope": "card"}, "expected": "x"}}
                    ],
                }
            ]
        ).validate()

        assert any("reads 'card' before any step captures it" in e for e in errors)

    def test_sibling_may_not_read_sibling_capture(self):
        """Test that steps sharing an ordinal stay independent."""
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 3, "actions": [{"capture": {"locator": ".card", "save_as": "card"}}]},
                {"name": "b", "ordinal": 3, "assertions": [{"state_equals": {"key": "card", "expected": "x"}}]},
            ]
        ).validate()

        assert any("written by sibling step 'a'" in e for e in errors)

    def test_siblings_may_not_change_the_page(self):
        """Test that steps sharing an ordinal cannot navigate or interact."""
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 1, "actions": [{"navigate": "https://x.test/"}]},
                {"name": "b", "ordinal": 2, "actions": [{"navigate": "https://x.test/other"}]},
                {"name": "c", "ordinal": 2, "actions": [{"click": "#go"}]},
            ]
        ).validate()

        assert any("'b': 'navigate' changes the page" in e for e in errors)
        assert any("'c': 'click' changes the page" in e for e in errors)

    def test_siblings_may_capture(self):
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 1, "actions": [{"navigate": "https://x.test/"}]},
                {"name": "b", "ordinal": 2, "assertions": [{"url_contains": "x"}]},
                {
                    "name": "c",
                    "ordinal": 2,
                    "actions": [
                        {"capture_text": {"locator": ".p", "save_as": "price"}},
                        {"set": {"value": "{{ state.price }}!", "save_as": "label"}},
                    ],
                },
            ]
        ).validate()

        assert errors == []

    def test_lone_step_may_change_the_page(self):
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 1, "actions": [{"navigate": "https://x.test/"}]},
                {"name": "b", "ordinal": 2, "actions": [{"type": {"locator": "#q", "text": "x"}}]},
            ]
        ).validate()

        assert errors == []

    def test_wait_timeout(self):
        workflow = workflow_from_steps(
            [
                {"name": "a", "ordinal": 1, "wait_timeout": 30, "actions": [{"click": "#go"}]},
                {"name": "b", "ordinal": 2, "wait_timeout": "soon", "actions": [{"click": "#go"}]},
            ]
        )

        assert workflow.steps[0].wait_timeout == 30
        assert workflow.steps[0].to_dict()["wait_timeout"] == 30
        assert workflow.validate() == ["Step 'b' wait_timeout must be a non-negative number"]

    def test_later_ordinal_may_read_capture(self):
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 3, "actions": [{"capture_text": {"locator": ".p", "save_as": "price"}}]},
                {"name": "b", "ordinal": 4, "assertions": [{"text_contains": {"locator": ".c", "expected": "{{ state.price }}"}}]},
            ]
        ).validate()

        assert errors == []

    def test_duplicate_writes(self):
        errors = workflow_from_steps(
            [
                {"name": "a", "ordinal": 1, "actions": [{"set": {"value": "1", "save_as": "k"}}]},
                {"name": "b", "ordinal": 2, "actions": [{"set": {"value": "2", "save_as": "k"}}]},
            ]
        ).validate()

        assert any("writes 'k' already written by step 'a'" in e for e in errors)

    def test_undeclared_input(self):
        errors = workflow_from_steps(
            [{"name": "a", "ordinal": 1, "actions": [{"click": {"query": "{{ inputs.format }}", "by": "link_text"}}]}]
        ).validate()

        assert any("undeclared input 'format'" in e for e in errors)

    def test_invalid_regex(self):
        errors = workflow_from_steps(
            [{"name": "a", "ordinal": 1, "assertions": [{"text_matches": {"locator": ".a", "expected": "(unclosed"}}]}]
        ).validate()

        assert any("invalid regular expression" in e for e in errors)

    def test_ordinal_groups(self):
        workflow = workflow_from_steps(
            [
                {"name": "a", "ordinal": 1, "actions": [{"navigate": "https://x.test/"}]},
                {"name": "b", "ordinal": 2, "assertions": [{"url_contains": "x"}]},
                {"name": "c", "ordinal": 2, "assertions": [{"url_contains": "test"}]},
                {"name": "d", "ordinal": 3, "assertions": [{"url_contains": "/"}]},
            ]
        )

        groups = [[s.name for s in g] for g in workflow.ordinal_groups()]

        assert groups == [["a"], ["b", "c"], ["d"]]

    def test_to_dict_round_trip(self):
        workflow = WorkflowDefinition.from_file(str(EXAMPLES_DIR / "book_search_checkout.yaml"))

        again = WorkflowDefinition.from_dict(workflow.to_dict())

        assert again.steps == workflow.steps
        assert again.steps[-1].name == "cart_count"
        assert again.steps[-1].ordinal == 13
