from __future__ import annotations

import argparse
import random
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Final

from drive_log.models import DriveSession, UserContext
from drive_log.store import SessionStore
from drive_log.timeutils import local_datetime

TZ: Final[str] = "America/Chicago"


@dataclass(frozen=True, slots=True)
class DriveSlot:
    name: str
    start: time
    minutes: tuple[int, int]


def generate_sessions(
    *,
    drives: int,
    seed: int,
    first_day: date,
    user_id: str,
    slots: list[DriveSlot],
) -> list[DriveSession]:
    """Generate fake drives spread over the weeks after first_day."""

    rng = random.Random(seed)
    drivers = ["Sam", "Alex"]
    out: list[DriveSession] = []
    day = first_day
    for _ in range(drives):
        # Usually drive again within a few days, sometimes the same day
        day = day + timedelta(days=rng.choice([0, 1, 1, 2, 3]))
        slot = rng.choice(slots)
        jitter = timedelta(minutes=rng.randint(-20, 20))
        started = local_datetime(day, slot.start, TZ) + jitter
        ended = started + timedelta(minutes=rng.randint(*slot.minutes), seconds=rng.randint(0, 59))
        out.append(
            DriveSession(
                id="",
                user_id=user_id,
                driver_name=rng.choice(drivers),
                started_at=started,
                ended_at=ended,
                notes=f"{slot.name} practice" if rng.random() < 0.3 else None,
            )
        )
    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a demo drive log store.")
    p.add_argument("--out", type=str, default="sample_data/drive_log.json", help="Output store path")
    p.add_argument("--drives", type=int, default=40, help="Number of drives")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--user", type=str, default="me")
    p.add_argument("--start", type=str, default="2025-01-01", help="First day (America/Chicago)")
    args = p.parse_args()

    slots = [
        DriveSlot("school run", time(7, 15), (20, 45)),
        DriveSlot("afternoon", time(15, 30), (30, 90)),
        DriveSlot("evening", time(19, 0), (45, 120)),
        DriveSlot("weekend trip", time(10, 0), (90, 240)),
    ]
    user = UserContext(user_id=args.user, tz_name=TZ)
    sessions = generate_sessions(
        drives=args.drives,
        seed=args.seed,
        first_day=datetime.fromisoformat(args.start).date(),
        user_id=args.user,
        slots=slots,
    )

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    store = SessionStore(out_path)
    for s in sessions:
        store.create(s, user)
    store.flush()

    night = sum(1 for s in store.list_for_user(args.user) if s.is_night_drive)
    print(f"Generated: {out_path} (drives={len(sessions)}, night={night}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
