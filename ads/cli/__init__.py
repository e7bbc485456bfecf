"""ads 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
所有命令经分发器执行；业务异常统一输出 `错误 [<code>]: <message>` 并以非零码退出。
"""

import os
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from ads import __version__
from ads.core.config import DEFAULT_CONFIG_FILE, init_config
from ads.core.exceptions import ADSError, InstallBlockedError
from ads.services.container import get_container
from ads.utils.logger import setup_logging

# install 被策略拒绝时的退出码
EXIT_BLOCKED = 2


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _fail(error: ADSError, code: int = 1) -> NoReturn:
    click.echo(f"错误 [{error.code}]: {error}", err=True)
    sys.exit(code)


def _dispatch(command_type: str, payload: Any = None) -> Any:
    """经分发器执行命令，业务异常转换为退出码"""
    try:
        return _svc().dispatcher.dispatch(command_type, payload)
    except InstallBlockedError as e:
        _fail(e, EXIT_BLOCKED)
    except ADSError as e:
        _fail(e)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
def main(config_path: str) -> None:
    """ads - 自动化依赖治理"""
    setup_logging(
        level=os.getenv("ADS_LOG_LEVEL", "INFO"),
        json_output=os.getenv("ADS_LOG_JSON", "") == "1",
    )
    if Path(config_path).is_file():
        try:
            init_config(config_path)
        except ADSError as e:
            _fail(e)


# 注册各领域子命令
from ads.cli.cmd_deps import register as _reg_deps  # noqa: E402
from ads.cli.cmd_lifecycle import register as _reg_lifecycle  # noqa: E402
from ads.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_lifecycle(main)
_reg_deps(main)
_reg_misc(main)
