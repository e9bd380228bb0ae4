"""Flow metrics: throughput, lead and cycle time, flow efficiency, aging work."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from statistics import mean, median

from kanban_md.model.config import Config
from kanban_md.model.task import Task


@dataclass
class AgingItem:
    id: int
    title: str
    status: str
    age_hours: float


@dataclass
class Metrics:
    throughput_7d: int = 0
    throughput_30d: int = 0
    avg_lead_time_hours: float | None = None
    avg_cycle_time_hours: float | None = None
    median_lead_time_hours: float | None = None
    median_cycle_time_hours: float | None = None
    flow_efficiency: float | None = None
    aging_items: list[AgingItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


def _hours(delta: timedelta) -> float:
    return round(delta.total_seconds() / 3600, 1)


def compute_metrics(cfg: Config, tasks: list[Task], now: datetime) -> Metrics:
    """Pure function of the task set and now."""
    metrics = Metrics()
    leads: list[timedelta] = []
    cycles: list[timedelta] = []
    efficiencies: list[float] = []

    for task in tasks:
        if task.completed is None:
            continue
        age = now - task.completed
        if timedelta(0) <= age < timedelta(days=7):
            metrics.throughput_7d += 1
        if timedelta(0) <= age < timedelta(days=30):
            metrics.throughput_30d += 1
        if task.created is None:
            continue
        lead = task.completed - task.created
        cycle = task.completed - task.started if task.started else timedelta(0)
        leads.append(lead)
        cycles.append(cycle)
        if lead > timedelta(0):
            efficiencies.append(cycle / lead)

    if leads:
        metrics.avg_lead_time_hours = _hours(sum(leads, timedelta(0)) / len(leads))
        metrics.avg_cycle_time_hours = _hours(sum(cycles, timedelta(0)) / len(cycles))
        metrics.median_lead_time_hours = _hours(timedelta(seconds=median(d.total_seconds() for d in leads)))
        metrics.median_cycle_time_hours = _hours(timedelta(seconds=median(d.total_seconds() for d in cycles)))
    if efficiencies:
        metrics.flow_efficiency = round(mean(efficiencies), 3)

    aging = [
        t for t in tasks if not cfg.is_terminal_status(t.status) and not cfg.is_archived_status(t.status) and t.updated
    ]
    aging.sort(key=lambda t: (now - t.updated, -t.id), reverse=True)
    metrics.aging_items = [
        AgingItem(id=t.id, title=t.title, status=t.status, age_hours=_hours(now - t.updated)) for t in aging
    ]
    return metrics
