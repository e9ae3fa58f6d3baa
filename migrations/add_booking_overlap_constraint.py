"""
Add a database-level overlap guard to meeting_room_bookings (PostgreSQL only)

Migration to add:
- btree_gist extension
- no_meeting_room_overlap exclusion constraint: two non-cancelled bookings
  of the same room may not share any instant of [start, end)

The application already serialises writers per room; this constraint is the
second line. A violation is reported to clients as an overlapping booking.

Run with: python migrations/add_booking_overlap_constraint.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from app.database import engine

CONSTRAINT_NAME = "no_meeting_room_overlap"


def upgrade():
    """Add the exclusion constraint"""
    if engine.dialect.name != "postgresql":
        print(f"ℹ️  Skipping: exclusion constraints need PostgreSQL (found {engine.dialect.name})")
        return

    with engine.connect() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
        print("✅ btree_gist extension available")

        result = conn.execute(
            text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
            {"name": CONSTRAINT_NAME},
        )
        if result.first():
            print(f"ℹ️  {CONSTRAINT_NAME} constraint already exists")
        else:
            conn.execute(text(f"""
                ALTER TABLE meeting_room_bookings
                ADD CONSTRAINT {CONSTRAINT_NAME}
                EXCLUDE USING gist (
                    room_id WITH =,
                    tsrange(booking_date + start_time, booking_date + end_time, '[)') WITH &&
                )
                WHERE (status <> 'CANCELLED')
            """))
            print(f"✅ Added {CONSTRAINT_NAME} constraint")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove the exclusion constraint"""
    if engine.dialect.name != "postgresql":
        print("ℹ️  Nothing to roll back outside PostgreSQL")
        return

    with engine.connect() as conn:
        conn.execute(
            text(f"ALTER TABLE meeting_room_bookings DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME}")
        )
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage meeting room overlap constraint migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
