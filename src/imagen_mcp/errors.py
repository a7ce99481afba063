from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData


def method_not_found(message: str) -> McpError:
    return McpError(ErrorData(code=METHOD_NOT_FOUND, message=message))


def invalid_params(message: str) -> McpError:
    return McpError(ErrorData(code=INVALID_PARAMS, message=message))


def internal_error(message: str) -> McpError:
    return McpError(ErrorData(code=INTERNAL_ERROR, message=message))


ERROR_KINDS = {
    METHOD_NOT_FOUND: "MethodNotFound",
    INVALID_PARAMS: "InvalidParams",
    INTERNAL_ERROR: "InternalError",
}


def error_kind(error: McpError) -> str:
    return ERROR_KINDS.get(error.error.code, str(error.error.code))
