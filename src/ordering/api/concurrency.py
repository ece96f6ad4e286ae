"""Run blocking service calls from async route handlers."""

import functools

from fastapi.concurrency import run_in_threadpool

from ordering.domain import ordering


def _in_domain_context(func, *args, **kwargs):
    with ordering.domain_context():
        return func(*args, **kwargs)


async def run_blocking(func, *args, **kwargs):
    """Await ``func(*args, **kwargs)`` on the threadpool.

    Gateway calls, ledger writes and repository access all block. The worker
    thread gets its own ordering domain context, since Protean's context is
    not guaranteed to follow the call across threads.
    """
    return await run_in_threadpool(functools.partial(_in_domain_context, func, *args, **kwargs))
