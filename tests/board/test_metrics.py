"""Tests for flow metrics."""

from datetime import timedelta

import pytest

from kanban_md.board.metrics import compute_metrics
from kanban_md.model.task import Task


def _t(id_, status, **fields):
    return Task(id=id_, title=f"Task {id_}", status=status, priority="medium", **fields)


@pytest.fixture
def tasks(now):
    return [
        _t(
            1,
            "done",
            created=now - timedelta(days=10),
            started=now - timedelta(days=5),
            completed=now - timedelta(days=2),
            updated=now - timedelta(days=2),
        ),
        _t(
            2,
            "done",
            created=now - timedelta(days=20),
            started=now - timedelta(days=20),
            completed=now - timedelta(days=10),
            updated=now - timedelta(days=10),
        ),
        _t(3, "in-progress", created=now - timedelta(days=1), updated=now - timedelta(hours=3)),
        _t(4, "backlog", created=now - timedelta(hours=1), updated=now - timedelta(hours=1)),
        _t(5, "archived", created=now - timedelta(days=40), updated=now - timedelta(days=40)),
    ]


def test_throughput(cfg, tasks, now):
    metrics = compute_metrics(cfg, tasks, now)
    assert metrics.throughput_7d == 1
    assert metrics.throughput_30d == 2


def test_lead_and_cycle_times(cfg, tasks, now):
    metrics = compute_metrics(cfg, tasks, now)
    assert metrics.avg_lead_time_hours == 216.0
    assert metrics.avg_cycle_time_hours == 156.0
    assert metrics.median_lead_time_hours == 216.0
    assert metrics.median_cycle_time_hours == 156.0
    assert metrics.flow_efficiency == pytest.approx(0.6875, abs=1e-3)


def test_aging_items_oldest_first(cfg, tasks, now):
    aging = compute_metrics(cfg, tasks, now).aging_items
    assert [(a.id, a.age_hours) for a in aging] == [(3, 3.0), (4, 1.0)]


def test_empty_board(cfg, now):
    assert compute_metrics(cfg, [], now).to_dict() == {"throughput_7d": 0, "throughput_30d": 0, "aging_items": []}


def test_metrics_are_pure(cfg, tasks, now):
    assert compute_metrics(cfg, tasks, now) == compute_metrics(cfg, list(tasks), now)
