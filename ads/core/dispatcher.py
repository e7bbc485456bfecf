"""命令分发器

流程:
  1. 校验命令类型属于已知集合，否则 UnknownCommandError
  2. 受保护命令要求当前身份是项目维护者，否则 RestrictedAccessError（不执行任何操作）
  3. 调用该类型唯一绑定的处理器，返回其结果或原样传播其异常

处理器表在构造时显式建立，并检查覆盖全部命令类型。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from ads.core.commands import PROTECTED_COMMANDS, Command, CommandType
from ads.core.exceptions import RestrictedAccessError, UnknownCommandError
from ads.core.models import Identity

if TYPE_CHECKING:
    from ads.services.lifecycle import LifecycleService

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class CommandDispatcher:
    """按命令类型分发到生命周期服务"""

    def __init__(self, identity: Identity, lifecycle: LifecycleService, *, debug: bool = False) -> None:
        self.identity = identity
        self.lifecycle = lifecycle
        self.debug = debug
        self._handlers: dict[CommandType, Handler] = self._build_handlers()
        missing = set(CommandType) - set(self._handlers)
        if missing:
            raise RuntimeError(f"命令类型缺少处理器: {sorted(m.value for m in missing)}")

    def _build_handlers(self) -> dict[CommandType, Handler]:
        svc = self.lifecycle
        return {
            CommandType.INIT: lambda p: svc.init_ads(),
            CommandType.CHECK: lambda p: svc.common_check(),
            CommandType.RESOLVE: self._resolve,
            CommandType.ALLOWED_VERSIONS: lambda p: svc.get_allowed_versions(p.name),
            CommandType.CHANGE_VERSION: lambda p: svc.change_to_allowed_version(p.name, p.version),
            CommandType.INSTALL: lambda p: svc.install(p.args),
            CommandType.CLEAN_INSTALL: lambda p: svc.clean_install(),
            CommandType.BUILD: lambda p: svc.trigger_build(),
            CommandType.START: lambda p: svc.start(),
            CommandType.GET_MAINTAINER: lambda p: svc.get_maintainer(),
            CommandType.ADD: lambda p: svc.add(p.name, p.version),
            CommandType.REMOVE: lambda p: svc.remove(p.name),
            CommandType.REPLACE: lambda p: svc.replace(p.name, p.version),
        }

    def _resolve(self, payload: Any) -> dict[str, Any]:
        result = self.lifecycle.resolve_conflicts()
        written = self.lifecycle.write_back(result) if payload.write else []
        return {"result": result, "written": written}

    def handle(self, command: Command) -> Any:
        ctype = command.type
        if not isinstance(ctype, CommandType) or ctype not in self._handlers:
            raise UnknownCommandError(ctype)

        if self.debug:
            logger.info("分发命令: %s", command.describe(), extra={"ads_command": ctype.value})

        if ctype in PROTECTED_COMMANDS and not self.identity.is_package_maintainer:
            logger.warning(
                "用户 %s 不是项目维护者，拒绝执行受保护命令 %s",
                self.identity.name, ctype.value,
                extra={"ads_command": ctype.value},
            )
            raise RestrictedAccessError(ctype.value, self.identity.name)

        return self._handlers[ctype](command.payload)

    def dispatch(self, type_name: object, raw_payload: Any = None) -> Any:
        """从外部输入（CLI / HTTP）解析并分发"""
        return self.handle(Command.parse(type_name, raw_payload))
