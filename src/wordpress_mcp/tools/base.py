from __future__ import annotations as _annotations

from collections.abc import Awaitable, Callable
from typing import Any

import jsonschema
from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from wordpress_mcp import types
from wordpress_mcp.exceptions import InvalidArgumentsError, ToolError

ToolHandler = Callable[[Any], Awaitable[Any]]


class Tool(BaseModel):
    """Internal tool registration info: the contract the dispatcher enforces."""

    name: str = Field(description="Name of the tool")
    description: str = Field(description="Description of what the tool does")
    input_schema: dict[str, Any] = Field(description="JSON schema for tool arguments")
    handler: ToolHandler = Field(exclude=True)
    arguments_model: type[BaseModel] | None = Field(
        default=None,
        exclude=True,
        description="Pydantic model the arguments are parsed into before the handler runs",
    )

    @model_validator(mode="after")
    def _check_input_schema(self) -> Tool:
        # A broken raw schema fails at registration, not on the first call.
        if self.arguments_model is None:
            jsonschema.validators.validator_for(self.input_schema).check_schema(self.input_schema)
        return self

    @classmethod
    def from_model(
        cls,
        name: str,
        description: str,
        arguments_model: type[BaseModel],
        handler: ToolHandler,
    ) -> Tool:
        """Create a Tool whose schema is derived from a pydantic model."""
        return cls(
            name=name,
            description=description,
            input_schema=arguments_model.model_json_schema(by_alias=True),
            handler=handler,
            arguments_model=arguments_model,
        )

    def validate_arguments(self, arguments: dict[str, Any]) -> Any:
        """Check arguments against the schema and return what the handler receives.

        Model-backed tools get a model instance; schema-only tools get the
        validated dict.

        Raises:
            InvalidArgumentsError: the arguments violate the schema
            jsonschema.SchemaError: the raw schema itself is invalid
        """
        if self.arguments_model is not None:
            try:
                return self.arguments_model.model_validate(arguments)
            except PydanticValidationError as e:
                raise InvalidArgumentsError(self.name, _format_pydantic_errors(e)) from e

        try:
            jsonschema.validate(instance=arguments, schema=self.input_schema)
        except jsonschema.ValidationError as e:
            location = ".".join(str(part) for part in e.absolute_path)
            detail = f"{location}: {e.message}" if location else e.message
            raise InvalidArgumentsError(self.name, detail) from e
        return arguments

    async def run(self, arguments: Any) -> Any:
        """Run the handler with already validated arguments."""
        try:
            return await self.handler(arguments)
        except Exception as e:
            raise ToolError(f"Error executing tool {self.name}: {e}") from e

    def to_listing(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, input_schema=self.input_schema)


def _format_pydantic_errors(error: PydanticValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)
