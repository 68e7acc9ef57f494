"""Language model client."""

from .runner import AgentRunner, parse_json_object, strip_code_fences

__all__ = ["AgentRunner", "parse_json_object", "strip_code_fences"]
