"""Payment 异常体系

网关层异常不直接暴露给调用方，由服务层包装为 ExternalServiceFailure。
"""


class PaymentError(Exception):
    """Payments 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可由调用方稍后重试
        """
        super().__init__(message)
        self.recoverable = recoverable


class GatewayUnreachableError(PaymentError):
    """支付网关不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, api_base: str, original_error: Exception) -> None:
        """
        Args:
            api_base: 尝试连接的网关地址
            original_error: 原始异常
        """
        super().__init__(
            f"支付网关不可达: {api_base} -- {original_error}",
            recoverable=True,
        )
        self.api_base = api_base
        self.original_error = original_error


class GatewayResponseError(PaymentError):
    """支付网关返回错误 payload（参数错误、卡被拒、鉴权失败等）"""

    def __init__(self, status_code: int, error_type: str, message: str) -> None:
        super().__init__(
            f"支付网关返回错误 {status_code} ({error_type}): {message}",
            recoverable=status_code >= 500,
        )
        self.status_code = status_code
        self.error_type = error_type
