"""Builds the dispatcher from group factory paths.

Each device group is created by a ``module:function`` factory so new groups
can be added without touching the server. A group whose factory cannot be
loaded or fails is logged and left unregistered; its requests then answer
FAIL like any other unimplemented group.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from jigtest_core.dispatcher import Dispatcher, GroupId
from jigtest_core.loader import build_group

logger = logging.getLogger(__name__)

DEFAULT_GROUPS: dict[GroupId, str] = {
    GroupId.ETHERNET: "jigtest_ethernet.group:create_group",
}


def build_dispatcher(
    group_paths: Mapping[GroupId, str] | None = None,
    group_kwargs: Mapping[str, Any] | None = None,
) -> Dispatcher:
    """Create every configured group and register it.

    Args:
        group_paths: Factory path per group ID; defaults to ``DEFAULT_GROUPS``.
        group_kwargs: Keyword arguments passed to every factory.

    Returns:
        Dispatcher with the groups that were created successfully.
    """
    paths = DEFAULT_GROUPS if group_paths is None else group_paths
    kwargs = dict(group_kwargs or {})
    dispatcher = Dispatcher()

    for gid, path in paths.items():
        try:
            group = build_group(gid, path, **kwargs)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Failed to create %s group from %s", gid.name, path)
            continue
        dispatcher.register(gid, group)

    if not dispatcher.groups:
        logger.warning("No device groups registered, every check will fail")
    return dispatcher
