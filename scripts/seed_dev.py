from datetime import datetime, timezone

from meetdraw.db.engine import get_sessionmaker, make_engine
from meetdraw.lottery import today_meeting_date
from meetdraw.models import Base, Checkin, Member
from meetdraw.workflows import create_prize


def main() -> None:
    """Seed the development database with members, check-ins and prizes."""
    engine = make_engine()

    # Drop and recreate every table so repeated runs start from a clean state.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    meeting_date = today_meeting_date()
    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        members = [
            Member(id=101, name="Alice Chen", profession="Accountant"),
            Member(id=102, name="Bob Lin", profession="Architect"),
            Member(id=103, name="Carol Wu", profession="Dentist"),
            Member(id=104, name="David Huang", profession="Lawyer"),
            Member(id=105, name="Erin Tsai", profession="Photographer"),
        ]
        session.add_all(members)
        session.flush()

        statuses = ["present", "present", "late", "present", "absent"]
        session.add_all(
            Checkin(
                member_id=member.id,
                meeting_date=meeting_date,
                status=status,
                checkin_time=now,
            )
            for member, status in zip(members, statuses)
        )

        create_prize(session, name="Coffee voucher", total_quantity=5, weight=60)
        create_prize(session, name="Movie tickets", total_quantity=2, weight=30)
        create_prize(session, name="Wireless earbuds", total_quantity=1, weight=10)

    print(f"Seeded {len(members)} members and 3 prizes for {meeting_date}.")


if __name__ == "__main__":
    main()
