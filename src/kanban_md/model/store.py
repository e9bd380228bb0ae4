"""Task files on disk: read, write, enumerate, look up and repair."""

import logging
import os
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from kanban_md.dates import utcnow
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.ids import pad_id
from kanban_md.model.config import Config, atomic_write
from kanban_md.model.task import Task, TaskFileError, file_mtime
from kanban_md.parser import FrontMatterError, join_front_matter, split_document

logger = logging.getLogger(__name__)

TASK_FILE_EXT = ".md"
MAX_SLUG_LENGTH = 50

_ID_PREFIX = re.compile(r"^(\d+)-")


@dataclass
class ReadWarning:
    """A task file that could not be read, or that clashes with another file."""

    file: Path
    message: str

    def __str__(self) -> str:
        return f"{self.file.name}: {self.message}"


@dataclass
class ConsistencyReport:
    warnings: list[ReadWarning] = field(default_factory=list)
    repairs: list[str] = field(default_factory=list)


def generate_slug(title: str) -> str:
    """Convert a title to a filename slug.

    ASCII-folds, lowercases, turns every run of other characters into a single
    dash and trims to MAX_SLUG_LENGTH at a dash boundary where possible.
    """
    folded = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", folded.lower()).strip("-")
    if len(slug) > MAX_SLUG_LENGTH:
        cut = slug[:MAX_SLUG_LENGTH]
        if slug[MAX_SLUG_LENGTH] != "-" and "-" in cut:
            cut = cut.rsplit("-", 1)[0]
        slug = cut.strip("-")
    return slug or "task"


def generate_filename(id_: int, slug: str) -> str:
    return f"{pad_id(id_)}-{slug}{TASK_FILE_EXT}"


def task_filename(task: Task) -> str:
    return generate_filename(task.id, generate_slug(task.title))


def extract_id_from_filename(name: str) -> int | None:
    match = _ID_PREFIX.match(name)
    return int(match.group(1)) if match else None


def read(path: Path) -> Task:
    """Read one task file. Raises TaskFileError naming the file when it is malformed."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    try:
        meta, body, gap = split_document(text)
        task = Task.from_meta(meta, body, path)
        task.body_gap = gap or not body
    except (FrontMatterError, TaskFileError) as e:
        raise TaskFileError(f"{path.name}: {e}") from e
    if task.created is None or task.updated is None:
        mtime = file_mtime(path)
        task.created = task.created or mtime
        task.updated = task.updated or mtime
    return task


def write(path: Path, task: Task) -> None:
    """Atomically write a task to path.

    A task read from disk keeps its separator between front-matter and body;
    new tasks get a blank line there.
    """
    path = Path(path)
    atomic_write(path, join_front_matter(task.to_meta(), task.body, task.body_gap))
    task.file = path
    logger.debug("wrote task #%d to %s", task.id, path.name)


def _task_files(tasks_dir: Path) -> list[Path]:
    tasks_dir = Path(tasks_dir)
    if not tasks_dir.is_dir():
        return []
    return sorted(p for p in tasks_dir.iterdir() if p.is_file() and p.suffix == TASK_FILE_EXT)


def read_all(tasks_dir: Path) -> list[Task]:
    """Read every task file, failing on the first malformed one."""
    return [read(path) for path in _task_files(tasks_dir)]


def read_all_lenient(tasks_dir: Path) -> tuple[list[Task], list[ReadWarning]]:
    """Read every task file, collecting a warning per file that fails.

    Two files carrying the same id are both returned, with a warning.
    """
    tasks: list[Task] = []
    warnings: list[ReadWarning] = []
    seen: dict[int, Path] = {}
    for path in _task_files(tasks_dir):
        try:
            task = read(path)
        except (OSError, UnicodeDecodeError, TaskFileError) as e:
            warnings.append(ReadWarning(path, str(e)))
            continue
        if task.id in seen:
            warnings.append(ReadWarning(path, f"duplicate task ID {task.id} (also in {seen[task.id].name})"))
        else:
            seen[task.id] = path
        tasks.append(task)
    return tasks, warnings


def find_by_id(tasks_dir: Path, id_: int) -> Path:
    """Path of the file holding task id. Raises TASK_NOT_FOUND."""
    pattern = re.compile(rf"^0*{id_}-.*\.md$")
    for path in _task_files(tasks_dir):
        if pattern.match(path.name):
            return path
    raise KanbanError(ErrorCode.TASK_NOT_FOUND, f"task not found: #{id_}", {"id": id_})


def load_task(tasks_dir: Path, id_: int) -> Task:
    return read(find_by_id(tasks_dir, id_))


def save_task(tasks_dir: Path, task: Task) -> Path:
    """Write task at its canonical filename, retiring the old file if the title moved it.

    When the target name is free the old file is renamed onto it before the
    write, so the id never has two files. If the target is taken the task is
    written first and the old file removed after; a crash in between leaves
    two files, which the next lenient read reports as a duplicate id.
    """
    tasks_dir = Path(tasks_dir)
    new_path = tasks_dir / task_filename(task)
    old_path = Path(task.file) if task.file else None

    if old_path is None or old_path == new_path or not old_path.exists():
        write(new_path, task)
        return new_path

    if not new_path.exists():
        os.replace(old_path, new_path)
        logger.debug("renamed %s -> %s", old_path.name, new_path.name)
        write(new_path, task)
        return new_path

    write(new_path, task)
    old_path.unlink()
    logger.debug("replaced %s with %s", old_path.name, new_path.name)
    return new_path


def update_timestamps(task: Task, old_status: str, new_status: str, cfg: Config, now: datetime) -> None:
    """Maintain started/completed across a status change."""
    if old_status == cfg.first_status() and new_status != old_status and task.started is None:
        task.started = now
    if cfg.is_terminal_status(new_status) and not cfg.is_terminal_status(old_status):
        task.completed = now
        if task.started is None:
            task.started = now
    if cfg.is_terminal_status(old_status) and not cfg.is_terminal_status(new_status):
        task.completed = None


def ensure_consistency(cfg: Config) -> ConsistencyReport:
    """Repair duplicate ids and id/filename mismatches, and advance next_id past every id in use."""
    tasks, warnings = read_all_lenient(cfg.tasks_path)
    report = ConsistencyReport(warnings=[w for w in warnings if "duplicate task ID" not in w.message])
    if not tasks:
        return report

    tasks.sort(key=lambda t: str(t.file))
    used = {t.id for t in tasks}
    next_id = max(cfg.next_id, max(used) + 1)

    by_id: dict[int, list[Task]] = {}
    for task in tasks:
        by_id.setdefault(task.id, []).append(task)
    for id_, group in sorted(by_id.items()):
        if len(group) < 2:
            continue
        keeper = next((t for t in group if extract_id_from_filename(t.file.name) == id_), group[0])
        for task in group:
            if task is keeper:
                continue
            while next_id in used:
                next_id += 1
            used.add(next_id)
            report.repairs.append(f"reassigned duplicate ID {task.id} in {task.file.name} to {next_id}")
            task.id = next_id
            task.updated = utcnow()
            next_id += 1

    occupied = {p for p in _task_files(cfg.tasks_path)}
    for task in tasks:
        if extract_id_from_filename(task.file.name) == task.id:
            continue
        old_path = task.file
        target = _free_path(cfg.tasks_path, task, occupied)
        write(target, task)
        if target != old_path:
            old_path.unlink()
            occupied.discard(old_path)
        occupied.add(target)
        report.repairs.append(f"renamed {old_path.name} to {target.name} to match task ID {task.id}")

    desired = max(cfg.next_id, max(t.id for t in tasks) + 1, next_id)
    if desired != cfg.next_id:
        report.repairs.append(f"updated next_id from {cfg.next_id} to {desired}")
        cfg.next_id = desired
        cfg.save()

    for repair in report.repairs:
        logger.info("consistency: %s", repair)
    return report


def _free_path(tasks_dir: Path, task: Task, occupied: set[Path]) -> Path:
    slug = generate_slug(task.title)
    candidate = tasks_dir / generate_filename(task.id, slug)
    suffix = 1
    while candidate in occupied and candidate != task.file:
        candidate = tasks_dir / f"{pad_id(task.id)}-{slug}-{suffix}{TASK_FILE_EXT}"
        suffix += 1
    return candidate
