"""Tool definitions and their parameter schemas."""

import inspect
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, model_validator

from ..core.exceptions import ValidationError
from ..models.base import AstreusBaseModel

_MISSING = object()


class BaseParameter(AstreusBaseModel):
    """Fields shared by every parameter schema node."""

    description: str = Field(default="", description="Human readable description")
    required: bool = Field(default=False, description="Whether the parameter must be supplied")
    default: Any = Field(default=None, description="Value used when the parameter is omitted")
    enum: Optional[List[Any]] = Field(default=None, description="Allowed values")

    def _check_enum(self, value: Any, path: str) -> Any:
        if self.enum is not None and value not in self.enum:
            allowed = ", ".join(repr(v) for v in self.enum)
            raise ValidationError(f"{path} must be one of: {allowed}", path)
        return value

    def to_json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.default is not None:
            schema["default"] = self.default
        return schema


class StringParameter(BaseParameter):
    type: Literal["string"] = "string"

    def validate_value(self, value: Any, path: str) -> str:
        if not isinstance(value, str):
            raise ValidationError(f"{path} must be a string", path)
        return self._check_enum(value, path)


class NumberParameter(BaseParameter):
    type: Literal["number"] = "number"
    minimum: Optional[float] = Field(default=None, description="Inclusive lower bound")
    maximum: Optional[float] = Field(default=None, description="Inclusive upper bound")

    def validate_value(self, value: Any, path: str) -> Union[int, float]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{path} must be a number", path)
        if self.minimum is not None and value < self.minimum:
            raise ValidationError(f"{path} must be >= {self.minimum}", path)
        if self.maximum is not None and value > self.maximum:
            raise ValidationError(f"{path} must be <= {self.maximum}", path)
        return self._check_enum(value, path)

    def to_json_schema(self) -> Dict[str, Any]:
        schema = super().to_json_schema()
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema


class BooleanParameter(BaseParameter):
    type: Literal["boolean"] = "boolean"

    def validate_value(self, value: Any, path: str) -> bool:
        if not isinstance(value, bool):
            raise ValidationError(f"{path} must be a boolean", path)
        return self._check_enum(value, path)


class ArrayParameter(BaseParameter):
    type: Literal["array"] = "array"
    items: Optional["ParameterSchema"] = Field(default=None, description="Schema of every item")

    def validate_value(self, value: Any, path: str) -> List[Any]:
        if not isinstance(value, list):
            raise ValidationError(f"{path} must be an array", path)
        if self.items is not None:
            value = [self.items.validate_value(item, f"{path}[{i}]") for i, item in enumerate(value)]
        return self._check_enum(value, path)

    def to_json_schema(self) -> Dict[str, Any]:
        schema = super().to_json_schema()
        if self.items is not None:
            schema["items"] = self.items.to_json_schema()
        return schema


class ObjectParameter(BaseParameter):
    type: Literal["object"] = "object"
    properties: Dict[str, "ParameterSchema"] = Field(default_factory=dict)

    def validate_value(self, value: Any, path: str) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise ValidationError(f"{path} must be an object", path)
        # No declared properties means a free-form object
        if not self.properties:
            return self._check_enum(dict(value), path)
        return self._check_enum(validate_properties(self.properties, value, path), path)

    def to_json_schema(self) -> Dict[str, Any]:
        schema = super().to_json_schema()
        schema["properties"] = {name: p.to_json_schema() for name, p in self.properties.items()}
        required = [name for name, p in self.properties.items() if p.required]
        if required:
            schema["required"] = required
        return schema


ParameterSchema = Annotated[
    Union[StringParameter, NumberParameter, BooleanParameter, ArrayParameter, ObjectParameter],
    Field(discriminator="type"),
]

ArrayParameter.model_rebuild()
ObjectParameter.model_rebuild()


def validate_properties(
    properties: Dict[str, BaseParameter], values: Dict[str, Any], path: str = ""
) -> Dict[str, Any]:
    """Validate ``values`` against named parameters, filling in defaults.

    Unknown keys are rejected. A value of ``None`` counts as omitted.
    """
    unknown = sorted(set(values) - set(properties))
    if unknown:
        field = f"{path}.{unknown[0]}" if path else unknown[0]
        raise ValidationError(f"Unknown parameter: {field}", field)

    result: Dict[str, Any] = {}
    for name, parameter in properties.items():
        field = f"{path}.{name}" if path else name
        value = values.get(name, _MISSING)
        if value is _MISSING or value is None:
            if parameter.default is not None:
                result[name] = parameter.default
            elif parameter.required:
                raise ValidationError(f"Missing required parameter: {field}", field)
            continue
        result[name] = parameter.validate_value(value, field)
    return result


class ToolResult(AstreusBaseModel):
    """Outcome of a tool call: an output on success, an error message otherwise."""

    success: bool
    output: Any = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_error(self) -> "ToolResult":
        if not self.success and not self.error:
            raise ValueError("A failed result needs an error message")
        return self

    @classmethod
    def ok(cls, output: Any = None) -> "ToolResult":
        return cls(success=True, output=output)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)


class ToolDefinition(AstreusBaseModel):
    """A callable tool as seen by the surrounding agent."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1, pattern=r"^[A-Za-z_][A-Za-z0-9_.-]*$")
    description: str = Field(default="")
    parameters: Dict[str, ParameterSchema] = Field(default_factory=dict)
    execute: Callable[..., Any] = Field(exclude=True)

    def validate_params(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return validate_properties(self.parameters, params or {})

    async def run(self, params: Dict[str, Any]) -> Any:
        """Call ``execute`` with validated params, awaiting it if needed."""
        output = self.execute(params)
        if inspect.isawaitable(output):
            output = await output
        return output

    def to_schema(self) -> Dict[str, Any]:
        """JSON-schema style description for function-calling models."""
        parameters = ObjectParameter(properties=dict(self.parameters)).to_json_schema()
        return {"name": self.name, "description": self.description, "parameters": parameters}
