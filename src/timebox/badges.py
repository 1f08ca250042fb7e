"""Badge definitions and checking for timebox."""

from __future__ import annotations

from dataclasses import dataclass

from timebox.streaks import StreakSnapshot


@dataclass(frozen=True)
class Badge:
    id: str
    label: str
    icon: str
    description: str


@dataclass(frozen=True)
class BadgeDef:
    badge: Badge
    threshold: int
    check_field: str

    @property
    def id(self) -> str:
        return self.badge.id


@dataclass
class BadgeStatus:
    definition: BadgeDef
    progress: float  # 0.0 to 1.0
    unlocked: bool


BADGES: list[BadgeDef] = [
    BadgeDef(
        badge=Badge("first_day", "First Day", "\U0001f331", "Complete your first productive day"),
        threshold=1,
        check_field="current_streak",
    ),
    BadgeDef(
        badge=Badge("streak_3", "3-Day Streak", "\U0001f525", "3 days in a row!"),
        threshold=3,
        check_field="current_streak",
    ),
    BadgeDef(
        badge=Badge("streak_7", "Week Warrior", "⚡", "7-day streak!"),
        threshold=7,
        check_field="current_streak",
    ),
    BadgeDef(
        badge=Badge("streak_14", "Fortnight Focus", "\U0001f48e", "14-day streak!"),
        threshold=14,
        check_field="current_streak",
    ),
    BadgeDef(
        badge=Badge("streak_30", "Monthly Master", "\U0001f3c6", "30-day streak achieved!"),
        threshold=30,
        check_field="longest_streak",
    ),
    BadgeDef(
        badge=Badge("blocks_10", "Getting Productive", "✅", "Completed 10 time blocks"),
        threshold=10,
        check_field="completed_count",
    ),
    BadgeDef(
        badge=Badge("blocks_100", "Century Club", "\U0001f4af", "Completed 100 time blocks!"),
        threshold=100,
        check_field="completed_count",
    ),
    BadgeDef(
        badge=Badge("tasks_5", "Task Creator", "\U0001f4cb", "Created 5 tasks"),
        threshold=5,
        check_field="tasks_created",
    ),
]


def badge_stats(snapshot: StreakSnapshot, completed_count: int, tasks_created: int) -> dict[str, int]:
    """Build the stats dict that badge thresholds are checked against."""
    return {
        "current_streak": snapshot.current_streak,
        "longest_streak": snapshot.longest_streak,
        "completed_count": completed_count,
        "tasks_created": tasks_created,
    }


def check_badges(stats: dict) -> list[BadgeStatus]:
    """Check every badge against stats.

    stats keys match check_field values (current_streak, longest_streak,
    completed_count, tasks_created); missing keys count as 0.
    """
    results: list[BadgeStatus] = []
    for badge_def in BADGES:
        value = stats.get(badge_def.check_field, 0)
        progress = min(value / badge_def.threshold, 1.0)
        results.append(
            BadgeStatus(definition=badge_def, progress=progress, unlocked=value >= badge_def.threshold)
        )
    return results


def compute_badges(snapshot: StreakSnapshot, completed_count: int, tasks_created: int) -> list[Badge]:
    """Return every badge whose threshold is met, in table order."""
    stats = badge_stats(snapshot, completed_count, tasks_created)
    return [s.definition.badge for s in check_badges(stats) if s.unlocked]


def get_newly_unlocked(previous: list[Badge], current: list[Badge]) -> list[Badge]:
    """Badges present in current but not in previous."""
    prev_ids = {b.id for b in previous}
    return [b for b in current if b.id not in prev_ids]


def get_closest_badges(statuses: list[BadgeStatus], n: int = 3) -> list[BadgeStatus]:
    """Return the N locked badges closest to being unlocked."""
    in_progress = [s for s in statuses if not s.unlocked]
    in_progress.sort(key=lambda s: s.progress, reverse=True)
    return in_progress[:n]
