from typing import Any, Dict, Optional

class BizError(Exception):
    """
    通用业务异常
    """
    def __init__(
        self, 
        message: str, 
        code: int = 400, 
        payload: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.payload = payload or {}
        super().__init__(self.message)

class ExternalApiError(BizError):
    """
    第三方API调用失败 (如 HERE)
    """
    def __init__(self, message: str, original_error: str = "", code: int = 502):
        super().__init__(
            message=message, 
            code=code, 
            payload={"original_error": str(original_error)}
        )

class PolylineDecodeError(BizError, ValueError):
    """
    Flexible polyline 解码失败（上游数据格式错误）
    """
    def __init__(self, message: str, index: int):
        self.index = index
        super().__init__(message=message, code=400, payload={"index": index})

class InvalidCharacterError(PolylineDecodeError):
    """
    编码字符串中出现字母表以外的字符
    """
    def __init__(self, char: str, index: int):
        self.char = char
        super().__init__(f"Invalid character {char!r} at index {index}", index)

class TruncatedVarintError(PolylineDecodeError):
    """
    输入在 varint 结束前被截断
    """
    def __init__(self, index: int):
        super().__init__(f"Incomplete varint at index {index}", index)
