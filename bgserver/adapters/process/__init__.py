"""OS process supervision.

Architecture:
- server.py: ProcessServer, the real BackgroundServer (spawn/wait/stop)
- environment.py: baseline environment for the spawned process
"""

from bgserver.adapters.process.environment import UserIdentity, default_env
from bgserver.adapters.process.server import ProcessServer

__all__ = ["ProcessServer", "UserIdentity", "default_env"]
