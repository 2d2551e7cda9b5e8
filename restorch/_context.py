import logging
from collections.abc import Mapping
from typing import Any

from restorch._profiling import ProfilingEntry, ProfilingLog
from restorch._queue import RequestQueue

logger = logging.getLogger(__name__)


class ClientContext:
    '''
    State shared by every RestClient built with it: the service
    configuration, the profiling log and the request queue.

    Clients created without a context get a private one. Hand the same
    context to several clients to batch their requests together and
    profile them in one log. A context belongs to a single event loop.
    '''

    def __init__(
        self,
        *,
        profiling_max: int = 20,
        services: Mapping[str, Any] | None = None,
    ) -> None:
        self.profiling: ProfilingLog = ProfilingLog(profiling_max)
        self.queue: RequestQueue = RequestQueue(self.profiling)
        self._services: dict[str, Any] = dict(services or {})

    def load_config(self, services: Mapping[str, Any]) -> None:
        '''
        Replace the service configuration, a mapping of service name to
        whatever settings the caller keeps for it (base url, credentials...).
        '''
        self._services = dict(services)

    def get_service_config(self, service_name: str) -> Any | None:
        return self._services.get(service_name)

    def init_queue(self) -> None:
        if len(self.queue):
            logger.debug(f'discarding {len(self.queue)} queued requests')
        self.queue.reset()

    async def process_queue(self) -> bool:
        return await self.queue.process()

    def get_profiling(self) -> list[ProfilingEntry]:
        return self.profiling.entries
