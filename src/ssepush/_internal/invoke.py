"""Invoke helpers — call sync or async handlers uniformly.

Stream handlers can be ``def`` or ``async def``. Any code that calls
a user-provided handler must handle both cases. This module provides
a single helper so the sync/async check lives in exactly one place.

Usage::

    from ssepush._internal.invoke import invoke

    result = await invoke(handler, *args)
"""

import functools
import inspect
from typing import Any

import anyio.to_thread


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result.

    Coroutine functions are awaited on the event loop. Plain functions run
    in a worker thread so a blocking handler cannot stall other streams::

        # sync: runs via anyio.to_thread
        def stream(request, client):
            threading.Thread(target=produce, args=(client,)).start()

        # async: awaited directly
        async def stream(request, client):
            asyncio.create_task(produce(client))
    """
    if inspect.iscoroutinefunction(handler):
        return await handler(*args, **kwargs)
    result = await anyio.to_thread.run_sync(functools.partial(handler, *args, **kwargs))
    if inspect.isawaitable(result):
        result = await result
    return result
