'''
**restorch**
---------

REST orchestration over httpx: single requests with retries on transport
failure, batches of requests run concurrently with per-request callbacks,
and a bounded profiling log of recent requests.
'''
from restorch._context import ClientContext
from restorch._options import (
    DEFAULT_OPTIONS,
    RequestOptions,
    array_to_url_params,
    merge_options,
)
from restorch._profiling import ProfilingEntry, ProfilingLog
from restorch._queue import QueueEntry, RequestQueue
from restorch._response import Response, parse_header
from restorch.client import RestClient
from restorch.http import ClientConfig, NoAttemptsLeftError, RetryPolicy

__all__ = [
    'ClientContext',
    'DEFAULT_OPTIONS',
    'RequestOptions',
    'array_to_url_params',
    'merge_options',
    'ProfilingEntry',
    'ProfilingLog',
    'QueueEntry',
    'RequestQueue',
    'Response',
    'parse_header',
    'RestClient',
    'ClientConfig',
    'NoAttemptsLeftError',
    'RetryPolicy',
]
