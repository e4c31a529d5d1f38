"""Device-group construction from "module:function" factory paths.

The server names each group's factory by path so that group packages are only
imported when the JIG actually uses them. Every way a group can fail to come
up before its factory runs (bad path, missing package, missing or
non-callable factory, factory returning something that cannot answer
checks) is reported as a single ``GroupLoadError`` naming the group.

Example:
    group = build_group(GroupId.ETHERNET, "jigtest_ethernet.group:create_group",
                        interface="eth0")
"""

from __future__ import annotations

import importlib
from typing import Any, Callable

from jigtest_core.dispatcher import DeviceGroup, GroupId
from jigtest_core.errors import GroupLoadError


def load_group_factory(factory_path: str) -> Callable[..., Any]:
    """Resolve a group factory path.

    Args:
        factory_path: Path in "module:function" format
            (e.g., "jigtest_ethernet.group:create_group").

    Returns:
        The factory function.

    Raises:
        GroupLoadError: If the path is malformed, the module cannot be
            imported, or the attribute is missing or not callable.
    """
    module_path, sep, func_name = factory_path.rpartition(":")
    if not sep or not module_path or not func_name:
        raise GroupLoadError(f"group factory '{factory_path}' is not in 'module:function' form")

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise GroupLoadError(f"group package '{module_path}' is not installed: {exc}") from exc

    factory = getattr(module, func_name, None)
    if factory is None:
        raise GroupLoadError(f"'{module_path}' has no group factory '{func_name}'")
    if not callable(factory):
        raise GroupLoadError(f"group factory '{factory_path}' is not callable")
    return factory


def build_group(gid: GroupId, factory_path: str, **kwargs: Any) -> DeviceGroup:
    """Load a group factory and create the group with it.

    Exceptions raised by the factory itself propagate unchanged.

    Raises:
        GroupLoadError: If the factory cannot be resolved or returns an
            object without a ``check`` method.
    """
    group = load_group_factory(factory_path)(**kwargs)
    if not isinstance(group, DeviceGroup):
        raise GroupLoadError(
            f"{gid.name} factory '{factory_path}' returned {type(group).__name__}, "
            "not a device group"
        )
    return group
