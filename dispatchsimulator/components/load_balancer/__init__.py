"""Request dispatch across the server fleet.

Example:
    from dispatchsimulator.components.load_balancer import (
        Dispatcher,
        RoundRobinCursor,
        select_server,
    )

    index = select_server(BalancingMode.ROUND_ROBIN, servers, cursor=cursor, rng=rng)
"""

from dispatchsimulator.components.load_balancer.dispatcher import Dispatcher, DispatcherStats
from dispatchsimulator.components.load_balancer.policies import (
    QueueDepthSource,
    RoundRobinCursor,
    select_server,
    smallest_queue_index,
)

__all__ = [
    "Dispatcher",
    "DispatcherStats",
    "QueueDepthSource",
    "RoundRobinCursor",
    "select_server",
    "smallest_queue_index",
]
