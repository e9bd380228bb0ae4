"""Sequential config schema migrations.

Each migration upgrades a raw config mapping by exactly one version. It fills
new fields with defaults, never invents user data, and bumps ``version``.
Migrations work on the raw YAML mapping so every historical shape stays
representable without keeping old dataclasses around.
"""

import copy
import logging
from collections.abc import Callable

from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.defaults import (
    ARCHIVED_STATUS,
    CURRENT_VERSION,
    DEFAULT_AGE_THRESHOLDS,
    DEFAULT_CLAIM_TIMEOUT,
    DEFAULT_CLASS,
    DEFAULT_CLASSES,
    DEFAULT_TITLE_LINES,
)

logger = logging.getLogger(__name__)


def _v1_to_v2(raw: dict) -> None:
    # wip_limits appeared; absent means unlimited
    raw.setdefault("wip_limits", {})


def _v2_to_v3(raw: dict) -> None:
    if not raw.get("claim_timeout"):
        raw["claim_timeout"] = DEFAULT_CLAIM_TIMEOUT
    if not raw.get("classes"):
        raw["classes"] = copy.deepcopy(DEFAULT_CLASSES)
    defaults = raw.setdefault("defaults", {})
    if not defaults.get("class"):
        defaults["class"] = DEFAULT_CLASS


def _v3_to_v4(raw: dict) -> None:
    tui = raw.get("tui") or {}
    if not tui.get("title_lines"):
        tui["title_lines"] = DEFAULT_TITLE_LINES
    raw["tui"] = tui


def _v4_to_v5(raw: dict) -> None:
    tui = raw.get("tui") or {}
    if not tui.get("age_thresholds"):
        tui["age_thresholds"] = copy.deepcopy(DEFAULT_AGE_THRESHOLDS)
    raw["tui"] = tui


def _v5_to_v6(raw: dict) -> None:
    statuses = raw.get("statuses") or []
    if ARCHIVED_STATUS not in statuses:
        statuses.append(ARCHIVED_STATUS)
    raw["statuses"] = statuses


def _v6_to_v7(raw: dict) -> None:
    statuses = []
    for entry in raw.get("statuses") or []:
        if isinstance(entry, dict):
            statuses.append(entry)
        else:
            statuses.append({"name": str(entry)})
    raw["statuses"] = statuses


def _v7_to_v8(raw: dict) -> None:
    statuses = raw.get("statuses") or []
    names = [s.get("name") for s in statuses]
    non_archived = [n for n in names if n != ARCHIVED_STATUS]
    quiet = {ARCHIVED_STATUS}
    if non_archived:
        quiet.add(non_archived[0])
        quiet.add(non_archived[-1])
    for status in statuses:
        if status.get("name") in quiet and "show_duration" not in status:
            status["show_duration"] = False


MIGRATIONS: dict[int, Callable[[dict], None]] = {
    1: _v1_to_v2,
    2: _v2_to_v3,
    3: _v3_to_v4,
    4: _v4_to_v5,
    5: _v5_to_v6,
    6: _v6_to_v7,
    7: _v7_to_v8,
}


def config_version(raw: dict) -> int:
    """Read and range-check the version of a raw config mapping."""
    version = raw.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise KanbanError(ErrorCode.INVALID_CONFIG, f"invalid config: version {version!r} is not an integer")
    if version > CURRENT_VERSION:
        raise KanbanError(
            ErrorCode.INVALID_CONFIG,
            f"invalid config: config version {version} is newer than supported version "
            f"{CURRENT_VERSION} (upgrade kanban-md)",
            {"version": version, "supported": CURRENT_VERSION},
        )
    if version < 1:
        raise KanbanError(ErrorCode.INVALID_CONFIG, f"invalid config: config version {version} is invalid")
    return version


def migrate(raw: dict) -> bool:
    """Upgrade raw in place to CURRENT_VERSION. Returns True if anything ran."""
    version = config_version(raw)
    migrated = False
    while version < CURRENT_VERSION:
        fn = MIGRATIONS.get(version)
        if fn is None:
            raise KanbanError(ErrorCode.INVALID_CONFIG, f"invalid config: no migration path from version {version}")
        try:
            fn(raw)
        except (AttributeError, TypeError) as e:
            raise KanbanError(
                ErrorCode.INVALID_CONFIG, f"invalid config: migrating from v{version}: {e}"
            ) from e
        logger.debug("migrated config v%d -> v%d", version, version + 1)
        version += 1
        raw["version"] = version
        migrated = True
    return migrated
