"""统一异常体系

所有业务异常继承 ADSError。每类异常的消息固定，code 稳定，
CLI 层据此输出友好提示和退出码，Web 层据 http_status 映射响应状态。
"""

from __future__ import annotations


class ADSError(Exception):
    """ADS 基础异常"""

    code: str = "UNKNOWN"
    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(ADSError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"
    http_status = 500


class ValidationError(ADSError):
    """输入数据校验失败（负载结构不符等）"""

    code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class UnknownCommandError(ADSError):
    """命令类型不在已知集合中"""

    code = "UNKNOWN_COMMAND"
    http_status = 400

    def __init__(self, command_type: object) -> None:
        super().__init__(f"命令不存在: {command_type}")
        self.command_type = command_type


class RestrictedAccessError(ADSError):
    """非维护者调用受保护命令"""

    code = "RESTRICTED_ACCESS"
    http_status = 403

    def __init__(self, command_type: object, user: str = "") -> None:
        super().__init__(
            f"命令 '{command_type}' 仅限项目维护者执行，当前用户 '{user}' 无权限"
        )
        self.command_type = command_type
        self.user = user


class DependencyNotFoundError(ADSError):
    """依赖记录不存在"""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, name: str) -> None:
        super().__init__(f"依赖不存在: {name}")
        self.name = name


class VersionNotAllowedError(ADSError):
    """请求的版本不在允许的版本窗口内"""

    code = "VERSION_NOT_ALLOWED"
    http_status = 422

    def __init__(self, name: str, version: str, allowed: list[str]) -> None:
        super().__init__(
            f"版本 {name}@{version} 不在允许范围内，可选版本: {allowed}"
        )
        self.name = name
        self.version = version
        self.allowed = allowed


class LockedDependencyError(ADSError):
    """试图直接修改已锁定依赖的版本"""

    code = "DEPENDENCY_LOCKED"
    http_status = 409

    def __init__(self, name: str) -> None:
        super().__init__(f"依赖 {name} 已锁定，只能通过删除后重新添加来变更版本")
        self.name = name


class InvalidManifestError(ADSError):
    """清单文件缺失或无法解析"""

    code = "INVALID_MANIFEST"
    http_status = 422


class UnresolvableConflictError(ADSError):
    """冲突解析在放宽约束后仍无可用版本"""

    code = "UNRESOLVABLE_CONFLICT"
    http_status = 409

    def __init__(self, packages: list[str]) -> None:
        super().__init__(f"无法解析，存在冲突的声明: {', '.join(packages)}")
        self.packages = packages


class InstallBlockedError(ADSError):
    """策略要求 install 只能按清单执行，拒绝附加参数"""

    code = "INSTALL_BLOCKED"
    http_status = 403

    def __init__(self, args: list[str]) -> None:
        super().__init__(
            f"安装操作被 ADS 阻止: 不允许附加参数 {args}，请使用 ADS 命令管理依赖"
        )
        self.args_rejected = args


class ExecutionError(ADSError):
    """外部命令执行失败或超时"""

    code = "EXECUTION_ERROR"
    http_status = 502
