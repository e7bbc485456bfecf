"""CLI - 依赖记录管理命令"""

from __future__ import annotations

import click

from ads.cli import _dispatch, _fail
from ads.core.exceptions import UnresolvableConflictError


def register(group: click.Group) -> None:
    group.add_command(add)
    group.add_command(remove)
    group.add_command(replace)
    group.add_command(change_version)
    group.add_command(allowed_versions)
    group.add_command(resolve)
    group.add_command(maintainer)


@click.command()
@click.argument("name")
@click.argument("version")
def add(name: str, version: str) -> None:
    """新增依赖（仅维护者）"""
    if _dispatch("add", {"name": name, "version": version}):
        click.echo(f"依赖已添加并锁定: {name}@{version}")
    else:
        click.echo(f"依赖 {name} 已存在或在忽略列表中，未做修改")


@click.command()
@click.argument("name")
def remove(name: str) -> None:
    """删除依赖（仅维护者）"""
    _dispatch("remove", {"name": name})
    click.echo(f"依赖已删除: {name}")


@click.command()
@click.argument("name")
@click.argument("version")
def replace(name: str, version: str) -> None:
    """替换依赖版本（仅维护者）"""
    dep = _dispatch("replace", {"name": name, "version": version})
    click.echo(f"依赖已替换: {dep.name}@{dep.version}")


@click.command(name="change-version")
@click.argument("name")
@click.argument("version")
def change_version(name: str, version: str) -> None:
    """切换到允许版本窗口内的版本"""
    dep = _dispatch("change-version", {"name": name, "version": version})
    click.echo(f"依赖已切换: {dep.name}@{dep.version}")


@click.command(name="allowed-versions")
@click.argument("name")
def allowed_versions(name: str) -> None:
    """列出允许使用的最近版本"""
    versions = _dispatch("allowed-versions", {"name": name})
    if not versions:
        click.echo(f"没有可用版本: {name}")
        return
    for v in versions:
        click.echo(f"  {v}")


@click.command()
@click.option("--write", is_flag=True, help="可解析时把推荐版本写回清单")
def resolve(write: bool) -> None:
    """解析版本冲突"""
    outcome = _dispatch("resolve", {"write": write})
    result = outcome["result"]
    for name, version in sorted(result.recommended.items()):
        click.echo(f"  {name:30s} {version}")
    for name, entry in sorted(result.conflicts.items()):
        click.echo(f"冲突 {name}: {entry.current} -> {entry.suggested_range}")
        click.echo(f"  建议: {entry.suggestion}")
    if result.failed:
        click.echo(f"获取失败（已跳过）: {', '.join(result.failed)}")
    if outcome["written"]:
        click.echo(f"清单已更新: {', '.join(outcome['written'])}")
    if result.unresolvable:
        _fail(UnresolvableConflictError(result.unresolvable))


@click.command()
def maintainer() -> None:
    """显示当前用户是否为项目维护者"""
    info = _dispatch("maintainer")
    role = "维护者" if info["isPackageMaintainer"] else "非维护者"
    click.echo(f"{info['user']}: {role}")
