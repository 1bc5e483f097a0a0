"""Tests for JobStore: creation, lifecycle writes and the terminal guard."""
import json

import pytest

from model_builder.api.jobs.models import JobStatus, MetricSample


def _samples(n):
    return [MetricSample(step=i, loss=1.0 / i, accuracy=0.5, elapsed_ms=i * 500) for i in range(1, n + 1)]


@pytest.mark.asyncio
async def test_create_and_get_job(job_store, project):
    job_id = await job_store.create_queued_job(project.id, None, "train", {"epochs": 3})
    rec = await job_store.get_job(job_id)
    assert rec.id == job_id
    assert rec.project_id == project.id
    assert rec.status == JobStatus.queued
    assert rec.progress == 0
    assert rec.metrics == []
    assert rec.config == {"epochs": 3}
    assert rec.error is None


@pytest.mark.asyncio
async def test_get_nonexistent_job(job_store):
    assert await job_store.get_job(9999) is None


@pytest.mark.asyncio
async def test_set_running_only_from_queued(job_store, queued_job):
    job_id = await queued_job()
    assert await job_store.set_running(job_id) is True
    assert (await job_store.get_job(job_id)).status == JobStatus.running
    assert await job_store.set_running(job_id) is False


@pytest.mark.asyncio
async def test_update_progress_persists_metrics(job_store, queued_job):
    job_id = await queued_job()
    await job_store.set_running(job_id)
    assert await job_store.update_progress(job_id, 10, _samples(2)) is True
    rec = await job_store.get_job(job_id)
    assert rec.progress == 10
    assert [m.step for m in rec.metrics] == [1, 2]
    assert rec.metrics[1].elapsed_ms == 1000


@pytest.mark.asyncio
async def test_set_terminal_keeps_unspecified_fields(job_store, queued_job):
    job_id = await queued_job()
    await job_store.set_running(job_id)
    await job_store.update_progress(job_id, 20, _samples(4))
    assert await job_store.set_terminal(job_id, JobStatus.canceled, progress=20) is True
    rec = await job_store.get_job(job_id)
    assert rec.status == JobStatus.canceled
    assert rec.progress == 20
    assert len(rec.metrics) == 4


@pytest.mark.asyncio
async def test_set_terminal_records_error(job_store, queued_job):
    job_id = await queued_job()
    await job_store.set_terminal(job_id, JobStatus.failed, error="disk full")
    rec = await job_store.get_job(job_id)
    assert rec.status == JobStatus.failed
    assert rec.error == "disk full"


@pytest.mark.asyncio
async def test_terminal_rows_are_never_rewritten(job_store, queued_job):
    job_id = await queued_job()
    await job_store.set_running(job_id)
    await job_store.set_terminal(job_id, JobStatus.completed, progress=100, metrics=_samples(3))

    assert await job_store.update_progress(job_id, 50, _samples(1)) is False
    assert await job_store.set_terminal(job_id, JobStatus.canceled, progress=0) is False
    assert await job_store.set_running(job_id) is False

    rec = await job_store.get_job(job_id)
    assert rec.status == JobStatus.completed
    assert rec.progress == 100
    assert len(rec.metrics) == 3


@pytest.mark.asyncio
async def test_set_terminal_rejects_live_status(job_store, queued_job):
    job_id = await queued_job()
    with pytest.raises(ValueError):
        await job_store.set_terminal(job_id, JobStatus.running)


@pytest.mark.asyncio
async def test_list_jobs_scoped_to_project_newest_first(job_store, catalog, project):
    other = await catalog.create_project("Other")
    first = await job_store.create_queued_job(project.id)
    second = await job_store.create_queued_job(project.id)
    await job_store.create_queued_job(other.id)

    jobs = await job_store.list_jobs(project.id)
    assert [j.id for j in jobs] == [second, first]


@pytest.mark.asyncio
async def test_fail_orphaned(job_store, queued_job):
    queued = await queued_job()
    running = await queued_job()
    done = await queued_job()
    await job_store.set_running(running)
    await job_store.set_terminal(done, JobStatus.completed, progress=100)

    assert await job_store.fail_orphaned() == 2
    assert (await job_store.get_job(queued)).status == JobStatus.failed
    assert (await job_store.get_job(running)).error == "interrupted by server restart"
    assert (await job_store.get_job(done)).status == JobStatus.completed
    assert await job_store.count_active() == 0


@pytest.mark.asyncio
async def test_metrics_stored_with_wire_field_names(job_store, db, queued_job):
    job_id = await queued_job()
    await job_store.set_running(job_id)
    await job_store.update_progress(job_id, 5, _samples(1))

    async with db.connection.execute("SELECT metrics_json FROM jobs WHERE id = ?", (job_id,)) as cur:
        raw = (await cur.fetchone())[0]
    assert json.loads(raw) == [{"step": 1, "loss": 1.0, "accuracy": 0.5, "elapsedMs": 500}]
    rec = await job_store.get_job(job_id)
    assert rec.metrics[0].elapsed_ms == 500
    assert rec.model_dump(mode="json", by_alias=True)["metrics"][0]["elapsedMs"] == 500


def test_metric_sample_accepts_both_spellings():
    a = MetricSample(step=1, loss=0.1, accuracy=0.9, elapsed_ms=10)
    b = MetricSample.model_validate({"step": 1, "loss": 0.1, "accuracy": 0.9, "elapsedMs": 10})
    assert a == b
