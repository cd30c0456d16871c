"""
Configuration Schema.

This module declares the bot configuration schema and validates values
against it.

Key features:
- Typed field definitions with min/max constraints
- Element typing for list fields (e.g. administrator ids)
- Default filling and unknown-field rejection
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class ValidationError(SchemaError):
    """Raised when a configuration value fails validation."""

    pass


def _type_matches(value: Any, type_: type) -> bool:
    # bool is a subclass of int; a flag is never a valid number here
    if isinstance(value, bool) and type_ is not bool:
        return False
    return isinstance(value, type_)


@dataclass
class ConfigField:
    """
    A single configuration field.

    Attributes:
        type_: Expected type of the value
        default: Value used when the field is absent
        description: Human-readable description, written as a TOML comment
        min: Minimum value (numbers) or minimum length (str/list)
        max: Maximum value (numbers) or maximum length (str/list)
        item_type: Element type for list fields
    """

    type_: type
    default: Any
    description: str = ""
    min: Any = None
    max: Any = None
    item_type: type | None = None

    def __post_init__(self):
        if not _type_matches(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )

        if (self.min is not None or self.max is not None) and self.type_ not in (
            int,
            float,
            str,
            list,
        ):
            raise SchemaError(
                f"min/max constraints only supported for int, float, str, list. Got {self.type_.__name__}"
            )

        if self.item_type is not None and self.type_ is not list:
            raise SchemaError("item_type is only supported for list fields")

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field.

        Raises:
            ValidationError: If validation fails
        """
        if not _type_matches(value, self.type_):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.type_ in (int, float):
            if self.min is not None and value < self.min:
                raise ValidationError(f"Value {value} is less than minimum {self.min}")
            if self.max is not None and value > self.max:
                raise ValidationError(
                    f"Value {value} is greater than maximum {self.max}"
                )
            return

        if self.type_ in (str, list):
            kind = "String" if self.type_ is str else "List"
            if self.min is not None and len(value) < self.min:
                raise ValidationError(
                    f"{kind} length {len(value)} is less than minimum {self.min}"
                )
            if self.max is not None and len(value) > self.max:
                raise ValidationError(
                    f"{kind} length {len(value)} is greater than maximum {self.max}"
                )

        if self.item_type is not None:
            for item in value:
                if not _type_matches(item, self.item_type):
                    raise ValidationError(
                        f"List item {item!r} is not of type {self.item_type.__name__}"
                    )


# Schema for the [bot] section of the configuration file
BOT_SCHEMA: dict[str, ConfigField] = {
    "token": ConfigField(str, "", "Transport authentication token", min=1),
    "playing": ConfigField(str, "", "Status text shown as the bot's activity"),
    "prefix": ConfigField(str, "!", "Prefix marking a message as a command", min=1),
    "admins": ConfigField(list, [], "User ids allowed to run private commands", item_type=str),
    "debug": ConfigField(bool, False, "Report plugin load failures"),
    "transport": ConfigField(str, "", "Transport factory as 'module:attribute'"),
    "commands_dir": ConfigField(str, "src/commands", "Directory scanned for commands"),
    "lib_dir": ConfigField(str, "src/lib", "Directory scanned for library modules"),
    "feathers_dir": ConfigField(str, "src/feathers", "Directory scanned for feathers"),
}


def validate_config(
    config: dict[str, Any], schema: dict[str, ConfigField]
) -> dict[str, Any]:
    """
    Validate a configuration section, filling in defaults for absent fields.

    Args:
        config: Section read from the configuration file
        schema: Field name -> ConfigField

    Returns:
        A new dictionary holding every schema field

    Raises:
        ValidationError: On unknown fields or invalid values
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    resolved = generate_default_config(schema)
    resolved.update(config)

    for field_name, field in schema.items():
        try:
            field.validate(resolved[field_name])
        except ValidationError as e:
            raise ValidationError(f"Field '{field_name}': {e}") from e

    return resolved


def generate_default_config(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """Build a dictionary of default values for every field in *schema*."""
    return {
        field_name: list(field.default) if isinstance(field.default, list) else field.default
        for field_name, field in schema.items()
    }
