"""
Seed Data Generator — fills the ledger with realistic fake study history.

Run: python scripts/seed_data.py [days]
"""

import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from studyfocus.config import load_config
from studyfocus.data.database import Database
from studyfocus.data.repository import Repository
from studyfocus.services.study_context import StudyContext


def seed(days: int = 60) -> None:
    config = load_config()
    config["background_saves"] = False

    db = Database(Path(config["db_path"]))
    db.connect()
    repo = Repository(db.conn)
    context = StudyContext.from_config(config, repo)

    # ── Subjects, chapters & topics ─────────────────────────────────────
    syllabus = {
        "Physics": {
            "Mechanics": ["Kinematics", "Newton's Laws", "Work & Energy"],
            "Electromagnetism": ["Electrostatics", "Circuits"],
        },
        "Chemistry": {
            "Organic": ["Hydrocarbons", "Alcohols"],
            "Physical": ["Thermodynamics", "Equilibrium"],
        },
        "Mathematics": {
            "Calculus": ["Limits", "Derivatives", "Integrals"],
            "Algebra": ["Matrices", "Complex Numbers"],
        },
    }

    targets = []
    for subject_name, chapters in syllabus.items():
        subject = context.add_subject(subject_name)
        for chapter_name, topics in chapters.items():
            chapter = context.add_chapter(subject.id, chapter_name)
            for topic_name in topics:
                topic = context.add_topic(subject.id, chapter.id, topic_name)
                targets.append((subject.id, chapter.id, topic.id))

    # ── Timed sessions ──────────────────────────────────────────────────
    now = datetime.now(timezone.utc)
    sessions = 0
    for day in range(days):
        for _ in range(random.randint(0, 3)):
            sid, cid, tid = random.choice(targets)
            start = now - timedelta(days=day, hours=random.randint(0, 10),
                                    minutes=random.randint(0, 59))
            duration = random.randint(15, 120) * 60
            context.ledger.apply_session(sid, cid, tid, duration, at=start)
            sessions += 1

    # ── A few hand-logged chapters ──────────────────────────────────────
    for sid, cid, _ in random.sample(targets, 3):
        context.log_manual_time(sid, cid, random.randint(0, 2), random.randint(0, 59))

    context.checkpoint()
    context.shutdown()
    db.close()
    print(f"Seeded {sessions} sessions across {len(targets)} topics.")


if __name__ == "__main__":
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 60
    seed(count)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this script does:
#   Generates a believable study history so the Stats tab has something to
#   show: a small syllabus, 0-3 sessions per day over the last N days, and
#   some hand-logged time.
#
# Key points:
#   - Sessions are backdated with apply_session(at=...), which goes through
#     the same rollup code as the real timer, so totals stay consistent.
#   - background_saves is switched off so every write has finished before
#     the script exits.
#
# Interviewer-friendly talking points:
#   1. Seed data is essential for demos. You can't test a stats chart with
#      an empty database.
#   2. The script uses the same StudyContext interface as the real app,
#      no raw SQL duplication.
