"""Server-side item filters: conditions, expression building and the editor."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel
from rich.console import Group
from rich.text import Text

from ...errors import ValidationError
from ...tui.widgets import TextInput
from .attributes import AttributeValue


class Operator(str, Enum):
    """Filter operators, valued with their persisted spelling."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    CONTAINS = "contains"
    STARTS_WITH = "startswith"
    ENDS_WITH = "endswith"


_OPERATOR_ALIASES: dict[str, Operator] = {
    "==": Operator.EQUALS,
    "=": Operator.EQUALS,
    "eq": Operator.EQUALS,
    "equals": Operator.EQUALS,
    "!=": Operator.NOT_EQUALS,
    "<>": Operator.NOT_EQUALS,
    "ne": Operator.NOT_EQUALS,
    "notequals": Operator.NOT_EQUALS,
    "not_equals": Operator.NOT_EQUALS,
    "contains": Operator.CONTAINS,
    "startswith": Operator.STARTS_WITH,
    "starts_with": Operator.STARTS_WITH,
    "begins_with": Operator.STARTS_WITH,
    "endswith": Operator.ENDS_WITH,
    "ends_with": Operator.ENDS_WITH,
}


def parse_operator(text: str) -> Operator:
    """Parse a user-typed operator.

    Raises:
        ValidationError: for anything outside the alias table.
    """
    try:
        return _OPERATOR_ALIASES[text.strip().lower()]
    except KeyError:
        raise ValidationError(f"unknown operator {text!r}") from None


class FilterCondition(BaseModel):
    column: str
    operator: Operator
    value: str

    def describe(self) -> str:
        return f"{self.column} {self.operator.value} {self.value}"


@dataclass
class FilterExpression:
    """A scan filter ready for the store.

    Attributes:
        expression: Clauses joined with AND, referencing placeholders only.
        names: ``#attrN`` -> attribute name.
        values: ``:valN`` -> string attribute value.
    """

    expression: str = ""
    names: dict[str, str] = field(default_factory=dict)
    values: dict[str, AttributeValue] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.expression)


def _clause(operator: Operator, name: str, value: str) -> str:
    if operator is Operator.EQUALS:
        return f"{name} = {value}"
    if operator is Operator.NOT_EQUALS:
        return f"{name} <> {value}"
    if operator is Operator.CONTAINS:
        return f"contains({name}, {value})"
    if operator is Operator.STARTS_WITH:
        return f"begins_with({name}, {value})"
    if operator is Operator.ENDS_WITH:
        # No suffix primitive in the store's filter language; approximated
        # by contains, so this also matches the value anywhere in the string.
        return f"contains({name}, {value})"
    raise ValidationError(f"unsupported operator {operator!r}")


def build_filter_expression(conditions: list[FilterCondition]) -> FilterExpression:
    """Turn conditions into one AND-joined filter expression.

    Each condition gets its own ``#attrN``/``:valN`` placeholder pair, indexed
    by position, so two conditions on the same column never collide and no
    user text is interpolated into the expression itself.
    """
    result = FilterExpression()
    clauses = []
    for i, cond in enumerate(conditions):
        name_key = f"#attr{i}"
        value_key = f":val{i}"
        result.names[name_key] = cond.column
        result.values[value_key] = AttributeValue.string(cond.value)
        clauses.append(_clause(cond.operator, name_key, value_key))
    result.expression = " AND ".join(clauses)
    return result


# ═══════════════════════════════════════════════════════════════════════════════
# EDITOR
# ═══════════════════════════════════════════════════════════════════════════════

class ItemFilterEditor:
    """Three-field form that accumulates filter conditions.

    ``tab``/``shift+tab`` cycle the focused field, ``enter`` adds a
    condition once all fields are filled, ``backspace`` with every field
    empty drops the last condition. Apply/clear/cancel keys are handled by
    the browser.
    """

    def __init__(self, conditions: list[FilterCondition] | None = None):
        self.conditions: list[FilterCondition] = list(conditions or [])
        self.inputs = [
            TextInput(placeholder="Column name (e.g., type)", char_limit=255),
            TextInput(placeholder="Operator (==, !=, contains)", char_limit=20),
            TextInput(placeholder="Value (e.g., consumer)", char_limit=1024),
        ]
        self.focus_index = 0
        self.hint = ""
        self._refocus()

    def _refocus(self) -> None:
        for i, field_input in enumerate(self.inputs):
            if i == self.focus_index:
                field_input.focus()
            else:
                field_input.blur()

    def _inputs_empty(self) -> bool:
        return all(not i.value for i in self.inputs)

    def add_current(self) -> bool:
        column, op_text, value = (i.value for i in self.inputs)
        if not (column and op_text and value):
            return False
        try:
            operator = parse_operator(op_text)
        except ValidationError as exc:
            self.hint = str(exc)
            return False
        self.conditions.append(FilterCondition(column=column, operator=operator, value=value))
        for i in self.inputs:
            i.set_value("")
        self.focus_index = 0
        self.hint = ""
        self._refocus()
        return True

    def handle_key(self, key: str) -> None:
        if key in ("tab", "shift+tab"):
            step = 1 if key == "tab" else -1
            self.focus_index = (self.focus_index + step) % len(self.inputs)
            self._refocus()
            return
        if key == "enter":
            self.add_current()
            return
        if key == "backspace" and self._inputs_empty() and self.conditions:
            self.conditions.pop()
            return
        self.inputs[self.focus_index].handle_key(key)

    def render(self) -> Group:
        parts: list = [Text("🔍 Filter Items", style="bold #5f5fff"), Text("")]
        if self.conditions:
            parts.append(Text("Active Filters:"))
            for n, cond in enumerate(self.conditions, start=1):
                parts.append(Text(f"  {n}. ") + Text(cond.describe(), style="bold green"))
            parts.append(Text(""))
        parts.append(Text("Add Filter Condition:"))
        parts.append(Text(""))
        for label, field_input in zip(("Column:   ", "Operator: ", "Value:    "), self.inputs):
            parts.append(Text(label) + field_input.render())
        if self.hint:
            parts.append(Text(self.hint, style="yellow"))
        parts.append(Text(""))
        parts.append(Text("Operators: == (equals), != (not equals), contains, startswith, endswith", style="dim"))
        parts.append(Text(
            "Tab: Next field • Enter: Add condition • Backspace: Remove last • "
            "Ctrl+S: Apply • Ctrl+X: Clear all • Esc: Cancel",
            style="dim",
        ))
        return Group(*parts)
