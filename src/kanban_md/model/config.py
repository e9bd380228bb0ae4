"""Board configuration: load, validate, save and lookup helpers."""

import copy
import logging
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

import yaml

from kanban_md.dates import parse_duration
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.defaults import (
    ARCHIVED_STATUS,
    CONFIG_FILE_NAME,
    CURRENT_VERSION,
    DEFAULT_AGE_THRESHOLDS,
    DEFAULT_CLAIM_TIMEOUT,
    DEFAULT_CLASS,
    DEFAULT_CLASSES,
    DEFAULT_DIR,
    DEFAULT_PRIORITIES,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    DEFAULT_STATUSES,
    DEFAULT_TASKS_DIR,
    DEFAULT_TITLE_LINES,
    LOG_FILE_NAME,
    NO_DURATION_STATUSES,
)
from kanban_md.model.migrate import migrate

logger = logging.getLogger(__name__)


@dataclass
class StatusConfig:
    name: str
    require_claim: bool = False
    show_duration: bool | None = None

    def to_dict(self) -> dict:
        data: dict = {"name": self.name}
        if self.require_claim:
            data["require_claim"] = True
        if self.show_duration is not None:
            data["show_duration"] = self.show_duration
        return data


@dataclass
class ClassConfig:
    name: str
    wip_limit: int = 0
    bypass_column_wip: bool = False

    def to_dict(self) -> dict:
        data: dict = {"name": self.name}
        if self.wip_limit:
            data["wip_limit"] = self.wip_limit
        if self.bypass_column_wip:
            data["bypass_column_wip"] = True
        return data


@dataclass
class AgeThreshold:
    after: str
    color: str


@dataclass
class TUIConfig:
    title_lines: int = DEFAULT_TITLE_LINES
    age_thresholds: list[AgeThreshold] = field(default_factory=list)


@dataclass
class Config:
    """In-memory board configuration. ``dir`` is the absolute board directory and is never saved."""

    board_name: str
    board_description: str = ""
    version: int = CURRENT_VERSION
    tasks_dir: str = DEFAULT_TASKS_DIR
    statuses: list[StatusConfig] = field(default_factory=list)
    priorities: list[str] = field(default_factory=list)
    default_status: str = DEFAULT_STATUS
    default_priority: str = DEFAULT_PRIORITY
    default_class: str = ""
    wip_limits: dict[str, int] = field(default_factory=dict)
    classes: list[ClassConfig] = field(default_factory=list)
    claim_timeout: str = ""
    tui: TUIConfig = field(default_factory=TUIConfig)
    next_id: int = 1
    dir: Path | None = field(default=None, repr=False, compare=False)

    # -- construction --

    @classmethod
    def new_default(cls, name: str) -> "Config":
        return cls(
            board_name=name,
            statuses=[
                StatusConfig(s, show_duration=False if s in NO_DURATION_STATUSES else None) for s in DEFAULT_STATUSES
            ],
            priorities=list(DEFAULT_PRIORITIES),
            default_class=DEFAULT_CLASS,
            classes=[ClassConfig(**c) for c in DEFAULT_CLASSES],
            claim_timeout=DEFAULT_CLAIM_TIMEOUT,
            tui=TUIConfig(
                title_lines=DEFAULT_TITLE_LINES,
                age_thresholds=[AgeThreshold(**a) for a in DEFAULT_AGE_THRESHOLDS],
            ),
        )

    @classmethod
    def from_dict(cls, raw: dict) -> "Config":
        """Build from a current-version mapping. Raises INVALID_CONFIG on malformed fields."""
        try:
            board = raw.get("board") or {}
            defaults = raw.get("defaults") or {}
            tui = raw.get("tui") or {}
            return cls(
                version=raw["version"],
                board_name=str(board.get("name") or ""),
                board_description=str(board.get("description") or ""),
                tasks_dir=str(raw.get("tasks_dir") or ""),
                statuses=[
                    StatusConfig(
                        name=str(s["name"]),
                        require_claim=bool(s.get("require_claim", False)),
                        show_duration=s.get("show_duration"),
                    )
                    for s in raw.get("statuses") or []
                ],
                priorities=[str(p) for p in raw.get("priorities") or []],
                default_status=str(defaults.get("status") or ""),
                default_priority=str(defaults.get("priority") or ""),
                default_class=str(defaults.get("class") or ""),
                wip_limits={str(k): int(v) for k, v in (raw.get("wip_limits") or {}).items()},
                classes=[
                    ClassConfig(
                        name=str(c.get("name") or ""),
                        wip_limit=int(c.get("wip_limit") or 0),
                        bypass_column_wip=bool(c.get("bypass_column_wip", False)),
                    )
                    for c in raw.get("classes") or []
                ],
                claim_timeout=str(raw.get("claim_timeout") or ""),
                tui=TUIConfig(
                    title_lines=int(tui.get("title_lines") or DEFAULT_TITLE_LINES),
                    age_thresholds=[
                        AgeThreshold(after=str(a["after"]), color=str(a["color"]))
                        for a in tui.get("age_thresholds") or []
                    ],
                ),
                next_id=int(raw.get("next_id") or 0),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise KanbanError(ErrorCode.INVALID_CONFIG, f"invalid config: {e}") from e

    def to_dict(self) -> dict:
        board: dict = {"name": self.board_name}
        if self.board_description:
            board["description"] = self.board_description
        defaults: dict = {"status": self.default_status, "priority": self.default_priority}
        if self.default_class:
            defaults["class"] = self.default_class
        data: dict = {
            "version": self.version,
            "board": board,
            "tasks_dir": self.tasks_dir,
            "statuses": [s.to_dict() for s in self.statuses],
            "priorities": list(self.priorities),
            "defaults": defaults,
        }
        if self.wip_limits:
            data["wip_limits"] = dict(self.wip_limits)
        if self.claim_timeout:
            data["claim_timeout"] = self.claim_timeout
        if self.classes:
            data["classes"] = [c.to_dict() for c in self.classes]
        tui: dict = {"title_lines": self.tui.title_lines}
        if self.tui.age_thresholds:
            tui["age_thresholds"] = [{"after": a.after, "color": a.color} for a in self.tui.age_thresholds]
        data["tui"] = tui
        data["next_id"] = self.next_id
        return data

    # -- paths --

    @property
    def tasks_path(self) -> Path:
        return Path(self.dir) / self.tasks_dir

    @property
    def config_path(self) -> Path:
        return Path(self.dir) / CONFIG_FILE_NAME

    @property
    def log_path(self) -> Path:
        return Path(self.dir) / LOG_FILE_NAME

    # -- validation --

    def validate(self) -> None:
        """Raise INVALID_CONFIG describing the first problem found."""

        def fail(msg: str) -> None:
            raise KanbanError(ErrorCode.INVALID_CONFIG, f"invalid config: {msg}")

        if self.version != CURRENT_VERSION:
            fail(f"unsupported version {self.version} (expected {CURRENT_VERSION})")
        if not self.board_name:
            fail("board.name is required")
        if not self.tasks_dir:
            fail("tasks_dir is required")
        names = self.status_names()
        if len(names) < 2:
            fail("at least 2 statuses are required")
        if any(not n for n in names):
            fail("status name is required")
        if len(set(names)) != len(names):
            fail("statuses contain duplicates")
        if len(self.priorities) < 1:
            fail("at least 1 priority is required")
        if len(set(self.priorities)) != len(self.priorities):
            fail("priorities contain duplicates")
        if self.default_status not in names:
            fail(f"default status {self.default_status!r} not in statuses list")
        if self.default_priority not in self.priorities:
            fail(f"default priority {self.default_priority!r} not in priorities list")
        for status, limit in self.wip_limits.items():
            if status not in names:
                fail(f"wip_limits references unknown status {status!r}")
            if limit < 0:
                fail(f"wip_limits for {status!r} must be >= 0")
        seen: set[str] = set()
        for cl in self.classes:
            if not cl.name:
                fail("class name is required")
            if cl.name in seen:
                fail(f"duplicate class name {cl.name!r}")
            seen.add(cl.name)
            if cl.wip_limit < 0:
                fail(f"class {cl.name!r} wip_limit must be >= 0")
        if self.default_class and self.default_class not in seen:
            fail(f"default class {self.default_class!r} not in classes list")
        if self.claim_timeout:
            try:
                parse_duration(self.claim_timeout)
            except ValueError:
                fail(f"invalid claim_timeout {self.claim_timeout!r}")
        if self.tui.title_lines not in (1, 2, 3):
            fail("tui.title_lines must be between 1 and 3")
        for threshold in self.tui.age_thresholds:
            try:
                parse_duration(threshold.after)
            except ValueError:
                fail(f"invalid age threshold {threshold.after!r}")
            if not threshold.color:
                fail(f"age threshold {threshold.after!r} has no color")
        if self.next_id < 1:
            fail("next_id must be >= 1")

    # -- lookups --

    def status_names(self) -> list[str]:
        return [s.name for s in self.statuses]

    def board_statuses(self) -> list[str]:
        """Status names shown as board columns: everything except archived."""
        return [s for s in self.status_names() if s != ARCHIVED_STATUS]

    def status_index(self, status: str) -> int:
        names = self.status_names()
        return names.index(status) if status in names else -1

    def priority_index(self, priority: str) -> int:
        return self.priorities.index(priority) if priority in self.priorities else -1

    def class_index(self, name: str) -> int:
        for i, cl in enumerate(self.classes):
            if cl.name == name:
                return i
        return -1

    def class_names(self) -> list[str]:
        return [c.name for c in self.classes]

    def class_by_name(self, name: str) -> ClassConfig | None:
        for cl in self.classes:
            if cl.name == name:
                return cl
        return None

    def status_config(self, status: str) -> StatusConfig | None:
        for s in self.statuses:
            if s.name == status:
                return s
        return None

    def is_archived_status(self, status: str) -> bool:
        return status == ARCHIVED_STATUS

    def is_terminal_status(self, status: str) -> bool:
        """True for the last non-archived status and for archived itself."""
        if status == ARCHIVED_STATUS:
            return True
        board = self.board_statuses()
        return bool(board) and status == board[-1]

    def first_status(self) -> str:
        board = self.board_statuses()
        return board[0] if board else ""

    def active_statuses(self) -> list[str]:
        """Statuses a task can be picked from: not terminal and not archived."""
        return [s for s in self.status_names() if not self.is_terminal_status(s)]

    def status_requires_claim(self, status: str) -> bool:
        sc = self.status_config(status)
        return bool(sc and sc.require_claim)

    def status_show_duration(self, status: str) -> bool:
        sc = self.status_config(status)
        if sc is None or sc.show_duration is None:
            return True
        return bool(sc.show_duration)

    def wip_limit(self, status: str) -> int:
        """WIP limit for a status; 0 means unlimited."""
        return self.wip_limits.get(status, 0)

    def claim_timeout_duration(self) -> timedelta:
        """Parsed claim timeout; zero means claims never expire."""
        if not self.claim_timeout:
            return timedelta(0)
        try:
            return parse_duration(self.claim_timeout)
        except ValueError:
            return timedelta(0)

    def age_thresholds_durations(self) -> list[tuple[timedelta, str]]:
        """(after, color) pairs sorted by duration, skipping unparseable entries."""
        result = []
        for threshold in self.tui.age_thresholds:
            try:
                result.append((parse_duration(threshold.after), threshold.color))
            except ValueError:
                continue
        return sorted(result, key=lambda pair: pair[0])

    # -- persistence --

    def save(self) -> None:
        """Validate and atomically rewrite config.yml."""
        self.validate()
        text = yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
        atomic_write(self.config_path, text)
        logger.debug("saved config %s", self.config_path)


def atomic_write(path: Path, text: str) -> None:
    """Write text to a temp file beside path, then rename it into place."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def load(board_dir: str | Path) -> Config:
    """Load, migrate and validate a board's config.

    When a migration ran, the upgraded config is written back; a failure to
    write it fails the load.
    """
    abs_dir = Path(board_dir).resolve()
    path = abs_dir / CONFIG_FILE_NAME
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise KanbanError(
            ErrorCode.BOARD_NOT_FOUND,
            "no kanban board found (run 'kanban-md init' to create one)",
            {"dir": str(abs_dir)},
        ) from None

    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise KanbanError(ErrorCode.INVALID_CONFIG, f"invalid config: parsing {path.name}: {e}") from e
    if not isinstance(raw, dict):
        raise KanbanError(ErrorCode.INVALID_CONFIG, f"invalid config: {path.name} must be a mapping")

    raw = copy.deepcopy(raw)
    migrated = migrate(raw)

    cfg = Config.from_dict(raw)
    cfg.validate()
    cfg.dir = abs_dir

    if migrated:
        logger.info("config upgraded to version %d", cfg.version)
        try:
            cfg.save()
        except OSError as e:
            raise KanbanError(
                ErrorCode.INVALID_CONFIG, f"invalid config: writing migrated config: {e}", {"path": str(path)}
            ) from e

    return cfg


def find_dir(start: str | Path) -> Path:
    """Walk upward from start looking for a board directory.

    At each level a ``kanban/config.yml`` wins over a ``config.yml`` in the
    directory itself.
    """
    current = Path(start).resolve()
    while True:
        if (current / DEFAULT_DIR / CONFIG_FILE_NAME).is_file():
            return current / DEFAULT_DIR
        if (current / CONFIG_FILE_NAME).is_file():
            return current
        if current.parent == current:
            raise KanbanError(
                ErrorCode.BOARD_NOT_FOUND,
                "no kanban board found (run 'kanban-md init' to create one)",
                {"start": str(start)},
            )
        current = current.parent


def init_board(
    board_dir: str | Path,
    name: str,
    statuses: list[str] | None = None,
    wip_limits: dict[str, int] | None = None,
) -> Config:
    """Create a new board directory with a default config and empty tasks dir.

    Custom statuses replace the default columns; the reserved ``archived``
    status is appended when missing.
    """
    abs_dir = Path(board_dir).resolve()
    if (abs_dir / CONFIG_FILE_NAME).exists():
        raise KanbanError(
            ErrorCode.BOARD_ALREADY_EXISTS,
            f"board already exists at {abs_dir}",
            {"dir": str(abs_dir)},
        )
    cfg = Config.new_default(name)
    if statuses:
        names = list(dict.fromkeys(s.strip() for s in statuses if s.strip()))
        if ARCHIVED_STATUS not in names:
            names.append(ARCHIVED_STATUS)
        cfg.statuses = [StatusConfig(s) for s in names]
        cfg.default_status = names[0]
    if wip_limits:
        cfg.wip_limits = dict(wip_limits)
    cfg.validate()
    cfg.dir = abs_dir
    cfg.tasks_path.mkdir(parents=True, exist_ok=True)
    cfg.save()
    return cfg


# -- config get/set accessors --


@dataclass(frozen=True)
class ConfigAccessor:
    get: Callable[[Config], object]
    set: Callable[[Config, str], None] | None = None


def _set_default_status(cfg: Config, value: str) -> None:
    if value not in cfg.status_names():
        raise KanbanError(
            ErrorCode.INVALID_STATUS,
            f"invalid status {value!r} (allowed: {', '.join(cfg.status_names())})",
            {"value": value, "allowed": cfg.status_names()},
        )
    cfg.default_status = value


def _set_default_priority(cfg: Config, value: str) -> None:
    if value not in cfg.priorities:
        raise KanbanError(
            ErrorCode.INVALID_PRIORITY,
            f"invalid priority {value!r} (allowed: {', '.join(cfg.priorities)})",
            {"value": value, "allowed": cfg.priorities},
        )
    cfg.default_priority = value


def _set_default_class(cfg: Config, value: str) -> None:
    if value and cfg.class_by_name(value) is None:
        raise KanbanError(
            ErrorCode.INVALID_CLASS,
            f"invalid class {value!r} (allowed: {', '.join(cfg.class_names())})",
            {"value": value, "allowed": cfg.class_names()},
        )
    cfg.default_class = value


def _set_claim_timeout(cfg: Config, value: str) -> None:
    if value:
        try:
            parse_duration(value)
        except ValueError:
            raise KanbanError(ErrorCode.INVALID_INPUT, f"invalid duration {value!r} (e.g. 1h, 30m)") from None
    cfg.claim_timeout = value


def _set_title_lines(cfg: Config, value: str) -> None:
    try:
        lines = int(value)
    except ValueError:
        lines = 0
    if lines not in (1, 2, 3):
        raise KanbanError(ErrorCode.INVALID_INPUT, "tui.title_lines must be 1, 2 or 3", {"value": value})
    cfg.tui.title_lines = lines


def _set_board_name(cfg: Config, value: str) -> None:
    if not value:
        raise KanbanError(ErrorCode.INVALID_INPUT, "board.name cannot be empty")
    cfg.board_name = value


CONFIG_ACCESSORS: dict[str, ConfigAccessor] = {
    "version": ConfigAccessor(lambda c: c.version),
    "board.name": ConfigAccessor(lambda c: c.board_name, _set_board_name),
    "board.description": ConfigAccessor(
        lambda c: c.board_description, lambda c, v: setattr(c, "board_description", v)
    ),
    "tasks_dir": ConfigAccessor(lambda c: c.tasks_dir),
    "statuses": ConfigAccessor(lambda c: [s.to_dict() for s in c.statuses]),
    "priorities": ConfigAccessor(lambda c: list(c.priorities)),
    "defaults.status": ConfigAccessor(lambda c: c.default_status, _set_default_status),
    "defaults.priority": ConfigAccessor(lambda c: c.default_priority, _set_default_priority),
    "defaults.class": ConfigAccessor(lambda c: c.default_class, _set_default_class),
    "wip_limits": ConfigAccessor(lambda c: dict(c.wip_limits)),
    "classes": ConfigAccessor(lambda c: [cl.to_dict() for cl in c.classes]),
    "claim_timeout": ConfigAccessor(lambda c: c.claim_timeout, _set_claim_timeout),
    "tui.title_lines": ConfigAccessor(lambda c: c.tui.title_lines, _set_title_lines),
    "tui.age_thresholds": ConfigAccessor(
        lambda c: [{"after": a.after, "color": a.color} for a in c.tui.age_thresholds]
    ),
    "next_id": ConfigAccessor(lambda c: c.next_id),
}


def _accessor(key: str) -> ConfigAccessor:
    accessor = CONFIG_ACCESSORS.get(key)
    if accessor is None:
        raise KanbanError(
            ErrorCode.INVALID_INPUT,
            f"unknown config key {key!r} (available: {', '.join(CONFIG_ACCESSORS)})",
            {"key": key},
        )
    return accessor


def get_value(cfg: Config, key: str):
    """Read a config value by dotted key."""
    return _accessor(key).get(cfg)


def set_value(cfg: Config, key: str, value: str) -> None:
    """Set a writable config value by dotted key and save."""
    accessor = _accessor(key)
    if accessor.set is None:
        raise KanbanError(ErrorCode.INVALID_INPUT, f"config key {key!r} is read-only", {"key": key})
    accessor.set(cfg, value)
    cfg.save()
