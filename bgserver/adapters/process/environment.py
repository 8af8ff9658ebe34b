"""Baseline environment for supervised processes.

A supervised server does not inherit the caller's whole environment. It gets
the invoking user's identity and PATH, with any caller-supplied variables
taking precedence.
"""

import logging
import os
import pwd
from collections.abc import Callable, Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserIdentity:
    """OS identity of the user a supervised process runs as.

    Attributes:
        username: Login name
        uid: Numeric user ID
        gid: Numeric primary group ID
        home: Home directory
    """

    username: str
    uid: int
    gid: int
    home: str


IdentityLookup = Callable[[], UserIdentity | None]


def current_identity() -> UserIdentity | None:
    """Look up the identity of the current process' user.

    Returns:
        UserIdentity, or None if the user has no passwd entry
    """
    uid = os.getuid()
    try:
        entry = pwd.getpwuid(uid)
    except KeyError:
        logger.debug(f"No passwd entry for uid {uid}")
        return None
    return UserIdentity(
        username=entry.pw_name,
        uid=entry.pw_uid,
        gid=entry.pw_gid,
        home=entry.pw_dir,
    )


def default_env(
    base: Mapping[str, str] | None = None,
    identity: IdentityLookup = current_identity,
) -> dict[str, str]:
    """Resolve the environment for a supervised process.

    Fills USER, UID, GID and HOME from the OS identity and PATH from the
    current environment. Keys already present in base are never overwritten.
    If the identity cannot be resolved, the identity keys are omitted.

    Args:
        base: Caller-supplied variables (take precedence)
        identity: Identity lookup; tests inject a fixed identity here

    Returns:
        New dict with the resolved environment
    """
    env = dict(base or {})

    try:
        user = identity()
    except (KeyError, OSError) as e:
        logger.debug(f"Could not resolve user identity: {e}")
        user = None

    if user is not None:
        env.setdefault("USER", user.username)
        env.setdefault("UID", str(user.uid))
        env.setdefault("GID", str(user.gid))
        env.setdefault("HOME", user.home)

    env.setdefault("PATH", os.environ.get("PATH", ""))
    return env
