"""
Tool system — @tool decorator + ToolRegistry.

Design:
- @tool decorator auto-generates JSON schema from type annotations + docstring
- ToolRegistry: register / lookup / validate / dispatch
- Supports sync and async handlers
- Dispatch failures are raised (UnknownTool, InvalidArguments), never
  turned into strings; handler errors propagate unchanged
- Built-in tools: get_crypto_price
"""

from __future__ import annotations

import inspect
import json
from typing import Any, Callable, get_args, get_origin, get_type_hints

from loguru import logger

from ultron.errors import InvalidArguments, UnknownTool
from ultron.prices import PriceClient


# ---------------------------------------------------------------------------
# Tool dataclass
# ---------------------------------------------------------------------------

class Tool:
    """A callable capability the model may ask for."""

    def __init__(
        self,
        name: str,
        description: str,
        handler: Callable,
        parameters: dict[str, Any] | None = None,
        required: list[str] | None = None,
    ) -> None:
        self.name = name
        self.description = description
        self.handler = handler
        self.parameters = parameters or {}
        self.required = required or []

    def to_schema(self) -> dict[str, Any]:
        """Return the OpenAI-compatible tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": self.parameters,
                    "required": self.required,
                },
            },
        }

    def validate(self, arguments: dict[str, Any]) -> list[str]:
        """Check arguments against the declared schema; return the problems found."""
        errors: list[str] = []
        for key in self.required:
            if key not in arguments:
                errors.append(f"missing required {key}")
        for key, value in arguments.items():
            prop = self.parameters.get(key)
            if prop is not None:
                errors.extend(_check_value(value, prop, key))
        return errors

    async def __call__(self, **kwargs: Any) -> Any:
        result = self.handler(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"


_JSON_CHECKS: dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
}


def _check_value(value: Any, prop: dict[str, Any], path: str) -> list[str]:
    expected = prop.get("type")
    check = _JSON_CHECKS.get(expected or "")
    if check is not None and not check(value):
        return [f"{path} should be {expected}"]

    errors: list[str] = []
    if expected == "array":
        min_items = prop.get("minItems")
        if min_items is not None and len(value) < min_items:
            errors.append(f"{path} must have at least {min_items} item(s)")
        items = prop.get("items")
        if items:
            for i, item in enumerate(value):
                errors.extend(_check_value(item, items, f"{path}[{i}]"))
    return errors


# ---------------------------------------------------------------------------
# @tool decorator
# ---------------------------------------------------------------------------

_PY_TO_JSON: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


def _json_schema_for(hint: Any) -> dict[str, Any]:
    origin = get_origin(hint)
    if origin is list:
        schema: dict[str, Any] = {"type": "array"}
        args = get_args(hint)
        if args:
            schema["items"] = _json_schema_for(args[0])
        return schema
    if origin is dict:
        return {"type": "object"}
    return {"type": _PY_TO_JSON.get(hint, "string")}


def tool(
    name: str | None = None,
    description: str | None = None,
    overrides: dict[str, dict[str, Any]] | None = None,
) -> Callable:
    """Decorator that wraps a function as a Tool with auto-generated schema.

    ``overrides`` merges extra JSON-schema keywords into individual
    parameters, e.g. ``{"symbols": {"minItems": 1}}``.

    Usage::

        @tool()
        async def get_weather(city: str, days: int = 1) -> dict:
            \"\"\"Forecast for a city.

            city: City name.
            \"\"\"
            ...
    """
    def decorator(fn: Callable) -> Tool:
        tool_name = name or fn.__name__
        doc = inspect.getdoc(fn) or ""
        tool_desc = description or doc.split("\n")[0]

        sig = inspect.signature(fn)
        hints = get_type_hints(fn)

        properties: dict[str, Any] = {}
        required_params: list[str] = []

        for param_name, param in sig.parameters.items():
            if param_name in ("self", "cls"):
                continue

            prop = _json_schema_for(hints.get(param_name, str))

            # Per-param description from the docstring ("name: text")
            for line in doc.splitlines():
                stripped = line.strip()
                if stripped.startswith(f"{param_name}:"):
                    desc_part = stripped.split(":", 1)[-1].strip()
                    if desc_part:
                        prop["description"] = desc_part
                    break

            if overrides and param_name in overrides:
                prop.update(overrides[param_name])

            properties[param_name] = prop

            if param.default is inspect.Parameter.empty:
                required_params.append(param_name)

        return Tool(
            name=tool_name,
            description=tool_desc,
            handler=fn,
            parameters=properties,
            required=required_params,
        )

    return decorator


# ---------------------------------------------------------------------------
# ToolRegistry
# ---------------------------------------------------------------------------

class ToolRegistry:
    """Closed set of tools, looked up by name."""

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for t in tools or []:
            self.register(t)

    def register(self, t: Tool) -> None:
        if t.name in self._tools:
            raise ValueError(f"Tool {t.name!r} is already registered")
        self._tools[t.name] = t
        logger.debug(f"Registered tool: {t.name!r}")

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def schemas(self) -> list[dict[str, Any]]:
        return [t.to_schema() for t in self._tools.values()]

    def parse_arguments(self, name: str, raw_args: str | dict[str, Any] | None) -> dict[str, Any]:
        """Decode raw model arguments and validate them against the tool schema."""
        t = self._tools.get(name)
        if t is None:
            raise UnknownTool(name)

        if raw_args is None or raw_args == "":
            arguments: Any = {}
        elif isinstance(raw_args, str):
            try:
                arguments = json.loads(raw_args)
            except json.JSONDecodeError as exc:
                raise InvalidArguments(name, [f"arguments are not valid JSON: {exc.msg}"]) from exc
        else:
            arguments = raw_args

        if not isinstance(arguments, dict):
            raise InvalidArguments(name, ["arguments should be object"])

        errors = t.validate(arguments)
        if errors:
            raise InvalidArguments(name, errors)
        return arguments

    async def dispatch(self, name: str, raw_args: str | dict[str, Any] | None) -> Any:
        """Invoke a tool by name.

        Raises:
            UnknownTool: no tool with that name.
            InvalidArguments: arguments do not match the declared schema.
            Whatever the handler raises, unchanged.
        """
        arguments = self.parse_arguments(name, raw_args)
        t = self._tools[name]

        logger.info(f"Tool: {name}({json.dumps(arguments, ensure_ascii=False)[:120]})")
        known = {k: v for k, v in arguments.items() if k in t.parameters}
        return await t(**known)

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={self.names()})"


# ---------------------------------------------------------------------------
# Built-in tools
# ---------------------------------------------------------------------------

def price_lookup_tool(client: PriceClient) -> Tool:
    """Build the crypto price tool around a PriceClient."""

    @tool(
        name="get_crypto_price",
        overrides={"symbols": {"minItems": 1}},
    )
    async def get_crypto_price(symbols: list[str]) -> dict[str, Any]:
        """Get the current USD price, 24h change and market cap for cryptocurrencies.

        symbols: Ticker symbols to look up, e.g. ["BTC", "ETH"].
        """
        return await client.get_prices(symbols)

    return get_crypto_price


def get_builtin_tools(price_client: PriceClient) -> list[Tool]:
    """Return all built-in tools."""
    return [price_lookup_tool(price_client)]


def default_registry(price_client: PriceClient) -> ToolRegistry:
    return ToolRegistry(get_builtin_tools(price_client))
