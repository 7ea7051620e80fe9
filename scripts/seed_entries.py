#!/usr/bin/env python3
"""
Seed the tracker SQLite database with sample history.

Writes journal, gratitude, mood and habit entries for the last N days so the
API has streaks, summaries and trends to show.

Usage:
    python scripts/seed_entries.py
    python scripts/seed_entries.py --days 60 --seed 7
    python scripts/seed_entries.py --data-path /tmp/tracker
"""
import argparse
import random
import sys
from datetime import date, timedelta
from pathlib import Path

from dotenv import load_dotenv

# Base directory (project root)
BASE_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BASE_DIR / "src"))

# Load environment variables before settings read them
load_dotenv()

from devotion_tracker.config import TrackerSettings  # noqa: E402
from devotion_tracker.models import (  # noqa: E402
    Entry,
    GratitudeCategory,
    JournalMood,
    MoodLevel,
    SpiritualHabit,
)
from devotion_tracker.session import TrackerSession  # noqa: E402

GRATITUDE_SAMPLES = {
    GratitudeCategory.PEOPLE: ["A call from Mom", "Coffee with a friend", "My neighbor's help"],
    GratitudeCategory.EXPERIENCES: ["A quiet walk", "Laughing at dinner", "A good book"],
    GratitudeCategory.BLESSINGS: ["A warm home", "Answered prayer", "Unexpected kindness"],
    GratitudeCategory.NATURE: ["The sunrise", "Rain on the roof", "Birdsong this morning"],
    GratitudeCategory.HEALTH: ["A good night's sleep", "Strength for the day"],
    GratitudeCategory.PROVISION: ["Food on the table", "Steady work"],
    GratitudeCategory.SPIRITUAL: ["Peace in prayer", "A verse that stayed with me"],
}

JOURNAL_TITLES = [
    "Morning reflection",
    "Thoughts on Psalm 23",
    "A hard day",
    "Learning to wait",
    "Grace in small things",
]

VERSES = ["Psalm 23:1", "John 3:16", "Philippians 4:6", "Romans 8:28", "Isaiah 40:31"]


def seed_day(session: TrackerSession, day: date, rng: random.Random) -> int:
    """
    Log a plausible set of entries for one day.

    Trackers that already hold an entry for the day are left alone, so the
    script can be re-run against an existing database.

    Returns:
        Number of entries written
    """
    written = 0

    def log(key: str, entry: Entry) -> None:
        nonlocal written
        store = session.store(key)
        if store.entry_for_day(day) is None:
            store.insert(entry)
            written += 1

    if rng.random() < 0.8:
        mood = rng.choices(list(MoodLevel), weights=[1, 2, 4, 5, 3])[0]
        log("mood", Entry.create(day, category=mood))

    if rng.random() < 0.7:
        categories = rng.sample(list(GRATITUDE_SAMPLES), k=rng.randint(1, 3))
        items = [(rng.choice(GRATITUDE_SAMPLES[c]), c) for c in categories]
        log("gratitude", Entry.create(day, items=items))

    if rng.random() < 0.4:
        log(
            "journal",
            Entry.create(
                day,
                category=rng.choice(list(JournalMood)),
                title=rng.choice(JOURNAL_TITLES),
                note="Spent some time in the Word and wrote down what stood out.",
                favorite=rng.random() < 0.2,
                linked_refs=[rng.choice(VERSES)],
            ),
        )

    for habit in (SpiritualHabit.PRAYER, SpiritualHabit.BIBLE_READING):
        if rng.random() < 0.75:
            log(f"habit:{habit.value}", Entry.create(day, tracked=habit.value))

    return written


def main():
    parser = argparse.ArgumentParser(description="Seed the tracker database with sample entries")
    parser.add_argument("--days", type=int, default=45, help="Days of history to generate")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for repeatable data")
    parser.add_argument("--data-path", type=str, default=None, help="Directory for entries.db")
    args = parser.parse_args()

    settings = TrackerSettings(data_path=args.data_path) if args.data_path else TrackerSettings()
    session = TrackerSession.with_sqlite(settings)
    rng = random.Random(args.seed)

    print("=" * 60)
    print("Devotion Tracker Seed Script")
    print("=" * 60)
    print(f"\nDatabase: {settings.db_path}\n")

    today = date.today()
    total = 0
    for offset in range(args.days - 1, -1, -1):
        total += seed_day(session, today - timedelta(days=offset), rng)

    print(f"Entries written: {total}")
    for key in session.open_trackers:
        streak = session.streak(key)
        print(f"  {key:<22} {len(session.store(key)):>4} entries, current streak {streak.current_streak}")

    if session.persistence_errors:
        print(f"\n[ERROR] {len(session.persistence_errors)} write(s) failed")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("Complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
