"""Build an ordered, grouped render plan from the field schema.

The plan stops at directives; drawing widgets is left to the client. Effective
visibility uses the same dependency evaluation as the validator, so a field
the form hides is exactly a field whose required flag the validator waives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from shipment_desk_app.schema.dependencies import evaluate
from shipment_desk_app.schema.fields import (
    ChoiceField,
    FieldDefinition,
    FieldType,
    FieldWidth,
    sort_definitions,
)

GRID_COLUMNS = 3


class WidgetKind(str, Enum):
    TEXT_INPUT = "text_input"
    NUMBER_INPUT = "number_input"
    DATE_PICKER = "date_picker"
    TIME_PICKER = "time_picker"
    DATETIME_PICKER = "datetime_picker"
    SELECT = "select"
    CHECKBOX = "checkbox"
    CHECKBOX_GROUP = "checkbox_group"
    RADIO_GROUP = "radio_group"
    EMAIL_INPUT = "email_input"
    PHONE_INPUT = "phone_input"
    URL_INPUT = "url_input"
    TEXTAREA = "textarea"
    FILE_UPLOAD = "file_upload"
    PASSWORD_INPUT = "password_input"
    COLOR_PICKER = "color_picker"
    SLIDER = "slider"


WIDGET_BY_TYPE: dict[FieldType, WidgetKind] = {
    FieldType.TEXT: WidgetKind.TEXT_INPUT,
    FieldType.NUMBER: WidgetKind.NUMBER_INPUT,
    FieldType.DATE: WidgetKind.DATE_PICKER,
    FieldType.TIME: WidgetKind.TIME_PICKER,
    FieldType.DATETIME: WidgetKind.DATETIME_PICKER,
    FieldType.ENUM: WidgetKind.SELECT,
    FieldType.BOOLEAN: WidgetKind.CHECKBOX,
    FieldType.CHECKBOX_GROUP: WidgetKind.CHECKBOX_GROUP,
    FieldType.RADIO_GROUP: WidgetKind.RADIO_GROUP,
    FieldType.EMAIL: WidgetKind.EMAIL_INPUT,
    FieldType.PHONE: WidgetKind.PHONE_INPUT,
    FieldType.URL: WidgetKind.URL_INPUT,
    FieldType.MULTILINE_TEXT: WidgetKind.TEXTAREA,
    FieldType.FILE: WidgetKind.FILE_UPLOAD,
    FieldType.SECRET_TEXT: WidgetKind.PASSWORD_INPUT,
    FieldType.COLOR: WidgetKind.COLOR_PICKER,
    FieldType.RANGE: WidgetKind.SLIDER,
}
_TYPES_WITHOUT_WIDGET = set(FieldType) - set(WIDGET_BY_TYPE)
if _TYPES_WITHOUT_WIDGET:
    raise RuntimeError(f"Field types without a widget: {sorted(t.value for t in _TYPES_WITHOUT_WIDGET)}")

COLUMN_SPAN_BY_WIDTH: dict[FieldWidth, int] = {
    FieldWidth.FULL: 3,
    FieldWidth.HALF: 2,
    FieldWidth.THIRD: 1,
    FieldWidth.QUARTER: 1,
}


@dataclass(frozen=True)
class RenderDirective:
    key: str
    label: str
    field_type: FieldType
    widget: WidgetKind
    order: int
    visible: bool
    active: bool
    required: bool
    readonly: bool
    width: FieldWidth
    column_span: int
    group: str = ""
    placeholder: str = ""
    help_text: str = ""
    icon: str = ""
    options: tuple[str, ...] = ()
    value: Any = None
    constraints: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "type": self.field_type.value,
            "widget": self.widget.value,
            "order": self.order,
            "visible": self.visible,
            "active": self.active,
            "required": self.required,
            "readonly": self.readonly,
            "width": self.width.value,
            "columnSpan": self.column_span,
            "group": self.group,
            "placeholder": self.placeholder,
            "helpText": self.help_text,
            "icon": self.icon,
            "options": list(self.options),
            "value": self.value,
            "constraints": dict(self.constraints),
        }


@dataclass(frozen=True)
class FormSection:
    name: str
    directives: tuple[RenderDirective, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "grouped": bool(self.name),
            "fields": [directive.to_dict() for directive in self.directives],
        }


@dataclass(frozen=True)
class FormPlan:
    sections: tuple[FormSection, ...]
    columns: int = GRID_COLUMNS

    @property
    def directives(self) -> list[RenderDirective]:
        return [directive for section in self.sections for directive in section.directives]

    def directive(self, key: str) -> RenderDirective | None:
        for item in self.directives:
            if item.key == key:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"columns": self.columns, "sections": [section.to_dict() for section in self.sections]}


def build_directive(definition: FieldDefinition, values: Mapping[str, Any]) -> RenderDirective:
    active = evaluate(definition.dependencies, values)
    visible = definition.visible and active
    options = definition.enum_values if isinstance(definition, ChoiceField) else ()
    return RenderDirective(
        key=definition.key,
        label=definition.label,
        field_type=definition.type,
        widget=WIDGET_BY_TYPE[definition.type],
        order=definition.order,
        visible=visible,
        active=active,
        required=definition.required and visible,
        readonly=definition.readonly,
        width=definition.width,
        column_span=COLUMN_SPAN_BY_WIDTH[definition.width],
        group=definition.group,
        placeholder=definition.placeholder,
        help_text=definition.help_text,
        icon=definition.icon,
        options=tuple(options),
        value=values[definition.key] if definition.key in values else definition.default_value,
        constraints=definition.validation_rule(),
    )


def assemble(schema: Iterable[FieldDefinition], values: Mapping[str, Any] | None = None) -> FormPlan:
    """Partition the schema into an ungrouped section followed by groups in first-seen order."""
    current = dict(values or {})
    ungrouped: list[RenderDirective] = []
    grouped: dict[str, list[RenderDirective]] = {}
    for definition in sort_definitions(list(schema)):
        directive = build_directive(definition, current)
        if definition.group:
            grouped.setdefault(definition.group, []).append(directive)
        else:
            ungrouped.append(directive)
    sections: list[FormSection] = []
    if ungrouped:
        sections.append(FormSection(name="", directives=tuple(ungrouped)))
    sections.extend(FormSection(name=name, directives=tuple(items)) for name, items in grouped.items())
    return FormPlan(sections=tuple(sections))
