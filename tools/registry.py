from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from langchain_core.utils.function_calling import convert_to_openai_tool
from pydantic import BaseModel

from orchestrator.errors import ToolHandlerError


@dataclass(frozen=True)
class ToolSpec:
    """
    A tool the agent may call: wire name, argument model and handler.
    """

    name: str
    description: str
    args_model: type[BaseModel]
    handler: Callable[[Any], Any]

    def definition(self) -> dict[str, Any]:
        tool = convert_to_openai_tool(self.args_model)
        tool["function"]["name"] = self.name
        tool["function"]["description"] = self.description
        return tool

    def parse_args(self, raw: str | None) -> BaseModel:
        try:
            data = json.loads(raw) if raw else {}
        except json.JSONDecodeError as e:
            raise ToolHandlerError(f"invalid arguments for {self.name}: {e}") from e
        if not isinstance(data, dict):
            raise ToolHandlerError(f"arguments for {self.name} must be a JSON object")
        return self.args_model.model_validate(data)

    def invoke(self, raw_args: str | None) -> Any:
        return self.handler(self.parse_args(raw_args))


class ToolRegistry:
    def __init__(self, specs: list[ToolSpec] | None = None) -> None:
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._specs[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        return self._specs.get(name)

    def names(self) -> list[str]:
        return sorted(self._specs)

    def definitions(self) -> list[dict[str, Any]]:
        return [self._specs[name].definition() for name in self.names()]

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._specs.values())
