# SPDX-License-Identifier: GPL-3.0-or-later
"""Run the per-file calls of one logical edit in parallel and join them."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Mapping

from easyresx.services.errors import PartialFanoutFailure

log = logging.getLogger(__name__)


class FanOut:
    """A small thread pool used as "start all, wait for all, fail if any fails"."""

    def __init__(self, max_workers: int = 8):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="easyresx-fanout")

    def run(self, calls: Mapping[str, Callable[[], Any]]) -> Dict[str, Any]:
        """Run every call concurrently and return path → result.

        A single call re-raises its own exception. With several calls, any
        failure raises :class:`PartialFanoutFailure` once all of them have
        finished; the calls that did succeed are listed on the exception.
        """
        if not calls:
            return {}
        futures: Dict[str, Future] = {path: self._pool.submit(call) for path, call in calls.items()}
        wait(futures.values())

        succeeded: Dict[str, Any] = {}
        failures: Dict[str, Exception] = {}
        for path, future in futures.items():
            error = future.exception()
            if error is None:
                succeeded[path] = future.result()
            else:
                failures[path] = error

        if failures:
            log.warning("Fan-out: %d of %d call(s) failed", len(failures), len(futures))
            if len(futures) == 1:
                raise next(iter(failures.values()))
            raise PartialFanoutFailure(succeeded, failures)
        log.debug("Fan-out: %d call(s) joined", len(futures))
        return succeeded

    def shutdown(self):
        self._pool.shutdown(wait=True)
