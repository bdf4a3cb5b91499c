"""Estimate cores available to pipeline stages.

The core budget is computed once per run from the host and the configured
ceiling, then split between concurrently running jobs so the sum of their
allocations never exceeds it.
"""
import multiprocessing

import toolz as tz

from triocall.log import logger

# Cap taken when no ceiling is configured, avoids over-subscribing shared machines
DEFAULT_MAX_CORES = 10

def calculate_budget(host_cores=None, ceiling=None):
    """Total cores for the run: host cores clamped to the ceiling, at least 1.
    """
    if host_cores is None:
        host_cores = multiprocessing.cpu_count()
    cores = int(host_cores)
    if ceiling is not None and int(ceiling) > 0:
        cores = min(cores, int(ceiling))
    return max(cores, 1)

def cores_per_job(budget, num_jobs):
    """Split a core budget additively across concurrently launched jobs.
    """
    return max(1, int(budget) // max(1, int(num_jobs)))

def subtask_cores(cores, fraction=0.5):
    """Share of a job's cores given to an expensive inner step.

    Used for GATK's paired HMM threads, which run inside a job that already
    holds `cores`, so the share never exceeds them.
    """
    return min(int(cores), max(1, int(int(cores) * float(fraction))))

def get_ceiling(config):
    return tz.get_in(["resources", "cores", "max"], config, DEFAULT_MAX_CORES)

def plan(config, num_jobs, host_cores=None):
    """Determine cores and workers to use for a fan-out stage.
    """
    budget = calculate_budget(host_cores, get_ceiling(config))
    out = {"cores": budget,
           "num_jobs": max(1, int(num_jobs)),
           "cores_per_job": cores_per_job(budget, num_jobs)}
    logger.debug("Resource plan: %s total cores, %s jobs with %s cores each" %
                 (out["cores"], out["num_jobs"], out["cores_per_job"]))
    return out
