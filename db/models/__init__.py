from db.models.mint_request import MintRequest
from db.models.tool_call import ToolCall

__all__ = ["MintRequest", "ToolCall"]
