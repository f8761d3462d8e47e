"""
TypeScript types generator from a client shape.

Generates:
- Enum union types
- Custom type interfaces
- Model interfaces
- Create/Update input types
- Custom operation signatures
- Model name union and type map

Output depends only on the shape, so equal shapes render identical text.
"""

from __future__ import annotations

from .shape import ClientShape, CustomTypeShape, FieldShape, ModelShape, OperationShape
from .utils import capitalize

SCALAR_TYPES = {
    "id": "string",
    "string": "string",
    "integer": "number",
    "float": "number",
    "boolean": "boolean",
    "date": "string",
    "time": "string",
    "datetime": "string",
    "timestamp": "number",
    "email": "string",
    "json": "unknown",
    "phone": "string",
    "url": "string",
    "ipAddress": "string",
}


def map_field_type(field: FieldShape) -> str:
    """Map a field shape to a TypeScript type."""
    if field.kind == "scalar":
        base_type = SCALAR_TYPES.get(field.type, "unknown")
    else:
        base_type = field.type

    if field.array:
        base_type = f"Array<{base_type}>"
    return base_type if field.required else f"{base_type} | null"


def _property(field: FieldShape, optional: bool = False) -> str:
    readonly = "readonly " if field.readonly else ""
    marker = "?" if optional or not field.required else ""
    return f"  {readonly}{field.name}{marker}: {map_field_type(field)}"


def generate_enum_type(name: str, values: tuple[str, ...]) -> str:
    """Generate union type of enum values."""
    if not values:
        return f"export type {name} = never"
    return f"export type {name} = {' | '.join(repr(v) for v in values)}"


def generate_custom_type_interface(custom_type: CustomTypeShape) -> list[str]:
    lines = [f"export interface {custom_type.name} {{"]
    for field in custom_type.fields.values():
        lines.append(_property(field))
    lines.append("}")
    return lines


def generate_model_interface(model: ModelShape) -> list[str]:
    """Generate TypeScript interface for a model."""
    lines = [f"export interface {model.name} {{"]

    for field in model.fields.values():
        lines.append(_property(field))

    if model.relationships:
        lines.append("  // Relations")
        for rel in model.relationships.values():
            if rel.many:
                lines.append(f"  {rel.name}?: {rel.target}[]")
            else:
                lines.append(f"  {rel.name}?: {rel.target} | null")

    lines.append("}")
    return lines


def generate_create_input_type(model: ModelShape) -> list[str]:
    """Generate create input interface."""
    if not model.create_fields:
        return []
    lines = [f"export interface {model.name}CreateInput {{"]
    for name in model.create_fields:
        field = model.fields.get(name)
        if field is None:
            continue
        # Identifier fields may be generated by the backend
        optional = name in model.identifier and field.type == "id"
        lines.append(_property(field, optional=optional))
    lines.append("}")
    return lines


def generate_update_input_type(model: ModelShape) -> list[str]:
    """Generate update input interface; identifier fields are mandatory."""
    if not model.update_fields:
        return []
    lines = [f"export interface {model.name}UpdateInput {{"]
    for name in model.identifier:
        field = model.fields.get(name)
        if field is not None:
            lines.append(_property(field))
    for name in model.update_fields:
        field = model.fields.get(name)
        if field is None or name in model.identifier:
            continue
        lines.append(_property(field, optional=True))
    lines.append("}")
    return lines


def generate_operation_type(operation: OperationShape) -> list[str]:
    """Generate argument and return types for a custom operation."""
    type_name = capitalize(operation.name)
    lines = [f"export interface {type_name}Arguments {{"]
    for field in operation.arguments.values():
        lines.append(_property(field))
    lines.append("}")
    returns = map_field_type(operation.returns) if operation.returns else "void"
    lines.append(f"export type {type_name}Result = {returns}")
    return lines


def _section(title: str) -> list[str]:
    return ["// " + "=" * 76, f"// {title}", "// " + "=" * 76, ""]


def generate_typescript(shape: ClientShape) -> str:
    """
    Generate TypeScript types from a client shape.

    Args:
        shape: Shape produced by derive_client_shape()

    Returns:
        TypeScript source code as string
    """
    lines: list[str] = [
        "// Auto-generated TypeScript types from schemagraph",
        "// Do not edit manually",
        "",
    ]

    if shape.enums:
        lines.extend(_section("Enums"))
        for name, values in shape.enums.items():
            lines.append(generate_enum_type(name, values))
        lines.append("")

    if shape.custom_types:
        lines.extend(_section("Custom Types"))
        for custom_type in shape.custom_types.values():
            lines.extend(generate_custom_type_interface(custom_type))
            lines.append("")

    model_names = list(shape.models)
    lines.extend(_section("Model Names"))
    if model_names:
        lines.append(f"export type ModelName = {' | '.join(repr(n) for n in model_names)}")
    else:
        lines.append("export type ModelName = never")
    lines.append("")

    for model in shape.models.values():
        lines.extend(_section(model.name))

        lines.extend(generate_model_interface(model))
        lines.append("")

        create_input = generate_create_input_type(model)
        if create_input:
            lines.extend(create_input)
            lines.append("")

        update_input = generate_update_input_type(model)
        if update_input:
            lines.extend(update_input)
            lines.append("")

    if shape.custom_operations:
        lines.extend(_section("Custom Operations"))
        for operation in shape.custom_operations.values():
            lines.extend(generate_operation_type(operation))
            lines.append("")

    # Type map
    lines.extend(
        [
            "// Type maps for generic usage",
            "export type ModelTypeMap = {",
        ]
    )
    for name in model_names:
        lines.append(f"  {name}: {name}")
    lines.extend(["}", ""])

    return "\n".join(lines)
