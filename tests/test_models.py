import unittest
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from meetdraw.models import Base, Checkin, LotteryWinner, Member, Prize


class DBTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def test_member_get_and_name_normalization(self):
        with self.Session() as session:
            session.add(Member(id=42, name="  Dana  ", profession="Engineer"))
            session.commit()

            found = Member.get(session, 42)
            assert found is not None
            self.assertEqual(found.name, "Dana")
            self.assertEqual(found.profession, "Engineer")
            self.assertIsNone(Member.get(session, 43))

    def test_member_blank_name_rejected(self):
        with self.assertRaises(ValueError):
            Member(id=1, name="   ")

    def test_prize_defaults_to_full_stock(self):
        prize = Prize(name="Mug", total_quantity=5, weight=2)
        self.assertEqual(prize.remaining_quantity, 5)
        self.assertEqual(prize.consumed_quantity, 0)
        self.assertTrue(prize.in_stock)

        empty = Prize(name="Sold out", total_quantity=5, remaining_quantity=0)
        self.assertEqual(empty.consumed_quantity, 5)
        self.assertFalse(empty.in_stock)

    def test_prize_stock_constraints(self):
        bad_prizes = [
            Prize(name="negative", total_quantity=1, remaining_quantity=-1),
            Prize(name="overfull", total_quantity=1, remaining_quantity=2),
            Prize(name="negative weight", total_quantity=1, weight=-1),
        ]
        for prize in bad_prizes:
            with self.subTest(prize=prize.name):
                with self.Session() as session:
                    session.add(prize)
                    with self.assertRaises(IntegrityError):
                        session.commit()

    def test_checkin_unique_per_member_and_date(self):
        with self.Session() as session:
            session.add(Member(id=1, name="Alice"))
            session.flush()
            session.add(Checkin(member_id=1, meeting_date="2025-06-05"))
            session.commit()

            session.add(Checkin(member_id=1, meeting_date="2025-06-05", status="late"))
            with self.assertRaises(IntegrityError):
                session.commit()
            session.rollback()

            session.add(Checkin(member_id=1, meeting_date="2025-06-12"))
            session.commit()

    def test_checkin_status_constraint(self):
        with self.Session() as session:
            session.add(Member(id=1, name="Alice"))
            session.flush()
            session.add(Checkin(member_id=1, meeting_date="2025-06-05", status="asleep"))
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_present_for_date_filters_status(self):
        with self.Session() as session:
            session.add_all([Member(id=i, name=f"m{i}") for i in (1, 2, 3)])
            session.flush()
            session.add_all(
                [
                    Checkin(member_id=3, meeting_date="2025-06-05"),
                    Checkin(member_id=1, meeting_date="2025-06-05"),
                    Checkin(member_id=2, meeting_date="2025-06-05", status="absent"),
                ]
            )
            session.commit()

            present = Checkin.present_for_date(session, "2025-06-05")
            self.assertEqual([c.member_id for c in present], [1, 3])

    def test_winner_unique_per_member_and_date(self):
        with self.Session() as session:
            session.add(Member(id=1, name="Alice"))
            prize = Prize(name="Mug", total_quantity=3, weight=1)
            session.add(prize)
            session.flush()
            session.add(
                LotteryWinner(meeting_date="2025-06-05", member_id=1, prize_id=prize.id)
            )
            session.commit()

            session.add(
                LotteryWinner(meeting_date="2025-06-05", member_id=1, prize_id=prize.id)
            )
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_winner_relationships(self):
        with self.Session() as session:
            member = Member(id=1, name="Alice")
            prize = Prize(name="Mug", total_quantity=3, weight=1)
            session.add_all([member, prize])
            session.flush()
            session.add(
                LotteryWinner(meeting_date="2025-06-05", member_id=1, prize_id=prize.id)
            )
            session.commit()

            winners = LotteryWinner.for_date(session, "2025-06-05")
            self.assertEqual(len(winners), 1)
            self.assertEqual(winners[0].member.name, "Alice")
            self.assertEqual(winners[0].prize.name, "Mug")
            self.assertEqual([w.meeting_date for w in member.wins], ["2025-06-05"])


class SerializationTests(DBTestCase):
    def test_prize_to_json(self):
        ts = datetime(2025, 6, 5, 12, 0, tzinfo=timezone.utc)
        with self.Session() as session:
            prize = Prize(
                name="Tote bag",
                total_quantity=4,
                remaining_quantity=3,
                weight=2.5,
                image_url="tote.png",
                created_at=ts,
                updated_at=ts,
            )
            session.add(prize)
            session.commit()

            self.assertEqual(
                prize.to_json(),
                {
                    "id": prize.id,
                    "name": "Tote bag",
                    "image_url": "tote.png",
                    "total_quantity": 4,
                    "remaining_quantity": 3,
                    "weight": 2.5,
                    "created_at": "2025-06-05T12:00:00+00:00",
                    "updated_at": "2025-06-05T12:00:00+00:00",
                },
            )

    def test_winner_to_json(self):
        ts = datetime(2025, 6, 5, 19, 15, tzinfo=timezone.utc)
        with self.Session() as session:
            session.add(Member(id=7, name="Gus"))
            prize = Prize(name="Mug", total_quantity=1, weight=1)
            session.add(prize)
            session.flush()
            winner = LotteryWinner(
                meeting_date="2025-06-05", member_id=7, prize_id=prize.id, created_at=ts
            )
            session.add(winner)
            session.commit()

            self.assertEqual(
                winner.to_json(),
                {
                    "id": winner.id,
                    "meeting_date": "2025-06-05",
                    "member_id": 7,
                    "prize_id": prize.id,
                    "created_at": "2025-06-05T19:15:00+00:00",
                },
            )


if __name__ == "__main__":
    unittest.main()
