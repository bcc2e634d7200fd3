from __future__ import annotations

from dazzle_panel.reconcile import upsert_job
from dazzle_panel.state import PrintJob


def make_job(job_id: str, status: str = "completed", **kw) -> PrintJob:
    return PrintJob(id=job_id, printer="Zebra ZD420", timestamp=1700000000, status=status, **kw)


def test_new_job_goes_to_front():
    jobs = [make_job("b"), make_job("a")]
    result = upsert_job(jobs, make_job("c"))
    assert [j.id for j in result] == ["c", "b", "a"]
    # input list is left untouched
    assert [j.id for j in jobs] == ["b", "a"]


def test_known_job_updates_in_place():
    jobs = [make_job("c"), make_job("b", status="printing"), make_job("a")]
    result = upsert_job(jobs, make_job("b", status="failed", error="out of paper"))
    assert [j.id for j in result] == ["c", "b", "a"]
    assert result[1].status == "failed"
    assert result[1].error == "out of paper"


def test_full_list_evicts_oldest():
    jobs = [make_job(f"job-{i}") for i in range(100)]
    result = upsert_job(jobs, make_job("new"))
    assert len(result) == 100
    assert result[0].id == "new"
    assert result[-1].id == "job-98"
    assert "job-99" not in {j.id for j in result}


def test_update_on_full_list_keeps_length_and_position():
    jobs = [make_job(f"job-{i}") for i in range(100)]
    result = upsert_job(jobs, make_job("job-99", status="failed"))
    assert len(result) == 100
    assert result[99].id == "job-99"
    assert result[99].status == "failed"


def test_custom_limit():
    jobs = [make_job("a"), make_job("b")]
    assert [j.id for j in upsert_job(jobs, make_job("c"), limit=2)] == ["c", "a"]
