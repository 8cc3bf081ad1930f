#!/usr/bin/env python3
"""Creates the competing houses if they are missing. From the project root: python3 scripts/seed_houses.py [names...]"""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import Session, select  # noqa: E402

from komsai.core.database import engine, init_db  # noqa: E402
from komsai.models import House  # noqa: E402
from komsai.services import scoring  # noqa: E402

DEFAULT_HOUSES = ("Red", "Blue", "Green", "Yellow")


def main(names: list[str]):
    init_db()
    with Session(engine) as db:
        existing = {h.name for h in db.exec(select(House)).all()}
        for name in names:
            if name in existing:
                print(f"exists: {name}")
                continue
            house = scoring.create_house(db, name)
            print(f"created: {house.name} (id={house.id})")


if __name__ == "__main__":
    main(sys.argv[1:] or list(DEFAULT_HOUSES))
