import pytest

from triocall.distributed import resources


@pytest.mark.parametrize("host", [1, 2, 4, 6, 10, 12, 64])
@pytest.mark.parametrize("ceiling", [1, 3, 10, 16])
def test_budget_is_host_clamped_to_ceiling(host, ceiling):
    assert resources.calculate_budget(host, ceiling) == min(host, ceiling)


@pytest.mark.parametrize(("host", "ceiling", "expected"), [
    (0, 10, 1),
    (8, None, 8),
    (8, 0, 8),
    (1, None, 1),
])
def test_budget_edge_cases(host, ceiling, expected):
    assert resources.calculate_budget(host, ceiling) == expected


def test_budget_defaults_to_host_cores(mocker):
    mocker.patch("triocall.distributed.resources.multiprocessing.cpu_count", return_value=24)
    assert resources.calculate_budget(ceiling=10) == 10


@pytest.mark.parametrize(("budget", "jobs", "expected"), [
    (10, 3, 3),
    (3, 3, 1),
    (2, 3, 1),
    (12, 2, 6),
    (1, 1, 1),
])
def test_cores_per_job(budget, jobs, expected):
    assert resources.cores_per_job(budget, jobs) == expected


@pytest.mark.parametrize("budget", range(3, 20))
def test_parallel_jobs_stay_within_budget(budget):
    assert resources.cores_per_job(budget, 3) * 3 <= budget


@pytest.mark.parametrize(("cores", "fraction", "expected"), [
    (6, 0.5, 3),
    (3, 0.5, 1),
    (1, 0.5, 1),
    (4, 1.0, 4),
    (4, 2.0, 4),
    (5, 0.25, 1),
])
def test_subtask_cores(cores, fraction, expected):
    assert resources.subtask_cores(cores, fraction) == expected


def test_plan_uses_configured_ceiling():
    config = {"resources": {"cores": {"max": 6}}}
    assert resources.plan(config, 3, host_cores=32) == {"cores": 6, "num_jobs": 3,
                                                         "cores_per_job": 2}


def test_plan_default_ceiling():
    assert resources.plan({}, 3, host_cores=32)["cores"] == resources.DEFAULT_MAX_CORES
