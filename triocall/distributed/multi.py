"""Run per-sample tasks concurrently on the local machine and join on completion.

Each task wraps external tools, so work happens in subprocesses and a thread
backed joblib pool is enough to keep them running side by side. All tasks are
launched together and every one of them is waited on: a failing sample never
cancels its siblings, and the failures are reported together once the whole
set has resolved.
"""
import collections

import joblib

from triocall.log import logger
from triocall.pipeline.exceptions import ParallelStageError

TaskResult = collections.namedtuple("TaskResult", ["item", "value", "error"])

def _label(item):
    return getattr(item, "sample", None) or getattr(item, "name", item)

def _capture(fn, item):
    """Resolve a task to a TaskResult rather than letting errors escape the pool.
    """
    try:
        return TaskResult(item, fn(item), None)
    except Exception as e:
        return TaskResult(item, None, e)

def run_tasks(fn, items, num_jobs=None):
    """Launch `fn` on every item and wait for all of them, returning TaskResults in item order.
    """
    items = list(items)
    if len(items) == 0:
        return []
    num_jobs = num_jobs or len(items)
    return joblib.Parallel(n_jobs=num_jobs, backend="threading", batch_size=1)(
        joblib.delayed(_capture)(fn, x) for x in items)

def run_parallel(fn, items, num_jobs=None, name=None):
    """Fan out `fn` over items, join, and fail the stage if any task failed.

    Returns task values in item order. On failure every failing item is
    logged and a ParallelStageError raised whose cause is the first failure
    in item order.
    """
    name = name or getattr(fn, "__name__", "parallel stage")
    items = list(items)
    logger.debug("Running %s in parallel on %s items" % (name, len(items)))
    results = run_tasks(fn, items, num_jobs)
    failures = [(_label(r.item), r.error) for r in results if r.error is not None]
    if failures:
        for label, error in failures:
            logger.error("%s failed for %s: %s" % (name, label, error))
        logger.info("%s: %s succeeded, %s failed" % (name, len(results) - len(failures), len(failures)))
        raise ParallelStageError(name, failures) from failures[0][1]
    return [r.value for r in results]
