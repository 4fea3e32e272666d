from .app import create_app
from .lifecycle import HeartbeatMonitor, LivenessTracker, SessionLifecycle, ShutdownScheduler
from .supervisor import ServerSupervisor, run_server

__all__ = [
    "create_app",
    "run_server",
    "HeartbeatMonitor",
    "LivenessTracker",
    "ServerSupervisor",
    "SessionLifecycle",
    "ShutdownScheduler",
]
