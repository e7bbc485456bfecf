"""包管理器进程封装

install 策略: install_manifest_only 开启时，install 只能按清单执行，
附加任何参数（等价于 `npm install <pkg>` 这类绕过 ADS 的变更）直接拒绝。
"""

from __future__ import annotations

import logging
import sys
from typing import Sequence

from ads.core.exceptions import InstallBlockedError
from ads.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

# 长驻进程不设超时
_NO_TIMEOUT_COMMANDS = frozenset({"start"})


def default_executable() -> str:
    return "npm.cmd" if sys.platform == "win32" else "npm"


class PackageManager:
    """npm 子进程调用"""

    def __init__(
        self,
        executor: CommandExecutor,
        *,
        executable: str | None = None,
        timeout: float = 1800.0,
        install_manifest_only: bool = True,
        cwd: str = ".",
    ) -> None:
        self.executor = executor
        self.executable = executable or default_executable()
        self.timeout = timeout
        self.install_manifest_only = install_manifest_only
        self.cwd = cwd

    def ensure_allowed(self, command: str, args: Sequence[str] = ()) -> None:
        if command == "install" and args and self.install_manifest_only:
            logger.error("install 附加参数被拒绝: %s", list(args))
            raise InstallBlockedError(list(args))

    def run(self, command: str, args: Sequence[str] = ()) -> int:
        """执行 `npm <command> [args]`，输出直接继承终端，返回退出码

        Raises:
            InstallBlockedError: install 附加参数被策略拒绝
            ExecutionError: 超时或可执行文件不存在
        """
        self.ensure_allowed(command, args)
        cmd = [self.executable, command, *args]
        timeout = None if command in _NO_TIMEOUT_COMMANDS else self.timeout
        logger.info("执行: %s", " ".join(cmd))
        result = self.executor.execute(cmd, cwd=self.cwd, timeout=timeout, capture=False)
        if result.success:
            logger.info("%s 完成", command)
        else:
            logger.warning("%s 退出码 %d", command, result.returncode)
        return result.returncode
