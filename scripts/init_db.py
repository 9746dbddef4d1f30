from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, inspect, select

from meetdraw.db.engine import get_sessionmaker, make_engine
from meetdraw.models import LotteryWinner, Prize


def upgrade_db(target_revision: str = "head") -> None:
    """Apply the lottery schema migrations up to ``target_revision``."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def print_summary() -> None:
    """Print the tables present and the prize stock currently available."""
    engine = make_engine()
    print("Tables:", ", ".join(sorted(inspect(engine).get_table_names())))
    Session = get_sessionmaker(engine)
    with Session() as session:
        in_stock = session.scalar(
            select(func.coalesce(func.sum(Prize.remaining_quantity), 0))
        )
        winners = session.scalar(select(func.count(LotteryWinner.id)))
    print(f"Prize units in stock: {in_stock}; winners recorded: {winners}")


def main() -> None:
    upgrade_db()
    print_summary()


if __name__ == "__main__":
    main()
