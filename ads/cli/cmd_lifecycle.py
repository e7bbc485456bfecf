"""CLI - 同步、检查与包管理器命令"""

from __future__ import annotations

import sys

import click

from ads.cli import _dispatch


def register(group: click.Group) -> None:
    group.add_command(init)
    group.add_command(check)
    group.add_command(install)
    group.add_command(clean_install)
    group.add_command(build)
    group.add_command(start)


def _exit_with(returncode: int) -> None:
    if returncode:
        sys.exit(returncode)


@click.command()
def init() -> None:
    """从清单同步依赖记录"""
    added = _dispatch("init")
    if added:
        click.echo(f"已登记 {len(added)} 个依赖: {', '.join(added)}")
    else:
        click.echo("没有新的依赖需要登记。")


@click.command()
def check() -> None:
    """执行通用检查（清理 → 漏洞修复 → 冲突解析 → 同步 → 锁定）"""
    report = _dispatch("check")
    for line in report.summary():
        click.echo(line)


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def install(args: tuple[str, ...]) -> None:
    """按清单安装依赖（不允许附加参数）"""
    _exit_with(_dispatch("install", list(args)))


@click.command(name="clean-install")
def clean_install() -> None:
    """检查后执行 npm ci"""
    _exit_with(_dispatch("clean-install"))


@click.command()
def build() -> None:
    """检查后执行 npm run build"""
    _exit_with(_dispatch("build"))


@click.command()
def start() -> None:
    """启动应用 (npm start)"""
    _exit_with(_dispatch("start"))
