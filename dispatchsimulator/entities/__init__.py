from dispatchsimulator.entities.bounded_queue import BoundedQueue
from dispatchsimulator.entities.server import Server, ServerState

__all__ = ["BoundedQueue", "Server", "ServerState"]
