"""Tool registry for exposing agent_patch tools to an agent loop."""
from typing import Any, Callable, Dict, Literal


class ToolRegistry:
    """Registry for tool functions and their schemas.

    Tools are plain callables carrying an Anthropic-style schema in their
    ``__tool_schema__`` attribute (see ``ApplyPatchTool.get_tool``).
    """

    def __init__(self):
        """Initialize an empty tool registry."""
        self.tools: Dict[str, Callable] = {}
        self.schemas: list[dict] = []

    def register(self, name: str, func: Callable, schema: dict) -> None:
        """Register a tool with its function and schema.

        Args:
            name: Name of the tool
            func: The function to execute
            schema: Anthropic-compliant tool schema

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if name in self.tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self.tools[name] = func
        self.schemas.append(schema)

    def register_tools(self, tools: list[Callable]) -> None:
        """Register several schema-carrying functions at once.

        Raises:
            ValueError: If a function is missing the __tool_schema__ attribute

        Example:
            >>> registry = ToolRegistry()
            >>> registry.register_tools([ApplyPatchTool(StaticApprover("y")).get_tool()])
        """
        for func in tools:
            if not hasattr(func, '__tool_schema__'):
                raise ValueError(
                    f"Function '{func.__name__}' is missing __tool_schema__ attribute. "
                    f"Build it with a tool class such as ApplyPatchTool."
                )
            schema = func.__tool_schema__
            self.register(schema['name'], func, schema)

    def execute(self, tool_name: str, tool_input: Dict[str, Any]) -> str:
        """Execute a registered tool by name.

        Exceptions raised by the tool are reported as text so the model can
        react to them instead of ending the agent loop.
        """
        if tool_name not in self.tools:
            return f"Error: Unknown tool '{tool_name}'"

        try:
            return self.tools[tool_name](**tool_input)
        except Exception as e:
            return f"Error executing {tool_name}: {str(e)}"

    def get_schemas(self, schema_type: Literal["anthropic", "openai"] = "anthropic") -> list[dict]:
        """Get registered tool schemas in the requested format.

        Args:
            schema_type: Output format.
                - ``anthropic`` returns the raw schema dictionaries (default)
                - ``openai`` converts each schema into OpenAI's function-call payload
        """
        if schema_type == "anthropic":
            return self.schemas.copy()

        if schema_type == "openai":
            return [
                {
                    "type": "function",
                    "function": {
                        "name": schema["name"],
                        "description": schema["description"],
                        "parameters": schema["input_schema"],
                    },
                }
                for schema in self.schemas
            ]

        raise ValueError(f"Unsupported schema_type '{schema_type}'. Expected 'anthropic' or 'openai'.")
