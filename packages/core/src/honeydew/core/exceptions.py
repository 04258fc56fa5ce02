"""Core 异常体系

所有领域错误都继承 HoneydewError，携带稳定的 code 和建议的 HTTP 状态码，
由 gateway 统一渲染为 {"error": {"code", "message"}}。
任何异常都不会被核心层自动重试。
"""


class HoneydewError(Exception):
    """Honeydew 领域异常基类"""

    code: str = "HONEYDEW_ERROR"
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(HoneydewError):
    """输入不合法（金额、评分格式错误或缺少必填字段）"""

    code = "INVALID_INPUT"
    status_code = 422


class InvalidInterval(InvalidInput):
    """计费区间非法：end_time 早于 start_time"""

    code = "INVALID_INTERVAL"


class InvalidTransition(HoneydewError):
    """任务生命周期守卫条件不满足"""

    code = "INVALID_TRANSITION"
    status_code = 409


class BidNotAllowed(HoneydewError):
    """任务当前不接受出价"""

    code = "BID_NOT_ALLOWED"
    status_code = 409


class DuplicateReview(HoneydewError):
    """同一任务已存在评价"""

    code = "DUPLICATE_REVIEW"
    status_code = 409


class ExternalServiceFailure(HoneydewError):
    """外部服务（存储、支付、持久化）调用失败

    对调用方只暴露通用信息，细节写入服务端日志。
    """

    code = "EXTERNAL_SERVICE_FAILURE"
    status_code = 502

    def __init__(self, service: str, message: str = "") -> None:
        super().__init__(message or f"{service} is currently unavailable")
        self.service = service


class TaskNotFound(HoneydewError):
    """任务不存在"""

    code = "TASK_NOT_FOUND"
    status_code = 404

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class ProfileNotFound(HoneydewError):
    """用户资料不存在"""

    code = "PROFILE_NOT_FOUND"
    status_code = 404

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Profile with id {user_id} does not exist")
        self.user_id = user_id


class PaymentNotFound(HoneydewError):
    """任务尚未发起支付"""

    code = "PAYMENT_NOT_FOUND"
    status_code = 404

    def __init__(self, task_id: str) -> None:
        super().__init__(f"No payment has been started for task {task_id}")
        self.task_id = task_id


class PermissionDenied(HoneydewError):
    """当前身份无权执行该操作"""

    code = "PERMISSION_DENIED"
    status_code = 403


class Unauthenticated(HoneydewError):
    """缺少或无法识别的身份信息"""

    code = "UNAUTHENTICATED"
    status_code = 401
