import random
import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from meetdraw.config import DrawSettings
from meetdraw.lottery import (
    DrawCoordinator,
    PartialFailureError,
    ValidationError,
    WinnerRegistry,
)
from meetdraw.models import Base, Checkin, LotteryWinner, Member, Prize
from meetdraw.workflows import (
    create_prize,
    credit_prize_unit,
    delete_prize,
    list_prizes,
    list_winners,
    run_lottery_draw,
    update_prize,
)


class WorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()


class PrizeAdminWorkflowTests(WorkflowTestCase):
    def test_create_prize_starts_fully_stocked(self):
        with self.Session.begin() as session:
            prize = create_prize(
                session, name="  Gift card ", total_quantity=4, weight=25
            )
            self.assertIsNotNone(prize.id)
            self.assertEqual(prize.name, "Gift card")
            self.assertEqual(prize.remaining_quantity, 4)
            self.assertEqual(prize.weight, 25.0)

    def test_create_prize_rejects_bad_input(self):
        with self.Session() as session:
            with self.assertRaises(ValidationError):
                create_prize(session, name="", total_quantity=1)
            with self.assertRaises(ValidationError):
                create_prize(session, name="x" * 101, total_quantity=1)
            with self.assertRaises(ValidationError):
                create_prize(session, name="Mug", total_quantity=-1)
            with self.assertRaises(ValidationError):
                create_prize(session, name="Mug", total_quantity=1.5)  # type: ignore[arg-type]
            with self.assertRaises(ValidationError):
                create_prize(session, name="Mug", total_quantity=1, weight=101)
            with self.assertRaises(ValidationError):
                create_prize(session, name="Mug", total_quantity=1, weight="lots")  # type: ignore[arg-type]

    def test_update_prize_keeps_consumed_units(self):
        with self.Session.begin() as session:
            prize = create_prize(session, name="Mug", total_quantity=10, weight=5)
            prize.remaining_quantity = 7  # three already won
            session.flush()

            updated = update_prize(session, prize.id, total_quantity=12, weight=8)

            self.assertEqual(updated.total_quantity, 12)
            self.assertEqual(updated.remaining_quantity, 9)
            self.assertEqual(updated.weight, 8.0)

    def test_update_prize_shrinking_below_consumed_empties_stock(self):
        with self.Session.begin() as session:
            prize = create_prize(session, name="Mug", total_quantity=10)
            prize.remaining_quantity = 4
            session.flush()

            updated = update_prize(session, prize.id, total_quantity=3)

            self.assertEqual(updated.total_quantity, 3)
            self.assertEqual(updated.remaining_quantity, 0)

    def test_update_prize_only_touches_given_fields(self):
        with self.Session.begin() as session:
            prize = create_prize(
                session, name="Mug", total_quantity=2, weight=3, image_url="a.png"
            )
            updated = update_prize(session, prize.id, name="Big mug")
            self.assertEqual(updated.name, "Big mug")
            self.assertEqual(updated.total_quantity, 2)
            self.assertEqual(updated.remaining_quantity, 2)
            self.assertEqual(updated.image_url, "a.png")

    def test_update_missing_prize_raises(self):
        with self.Session() as session:
            with self.assertRaises(ValueError):
                update_prize(session, 404, name="Ghost")

    def test_credit_prize_unit_restores_one_unit(self):
        with self.Session.begin() as session:
            prize = create_prize(session, name="Mug", total_quantity=2)
            prize.remaining_quantity = 0
            session.flush()

            credited = credit_prize_unit(session, prize.id)

            self.assertEqual(credited.remaining_quantity, 1)

    def test_credit_prize_unit_never_exceeds_total(self):
        with self.Session.begin() as session:
            prize = create_prize(session, name="Mug", total_quantity=2)
            with self.assertRaises(ValueError):
                credit_prize_unit(session, prize.id)
            with self.assertRaises(ValueError):
                credit_prize_unit(session, 404)
            self.assertEqual(session.get(Prize, prize.id).remaining_quantity, 2)


class WinnerListingWorkflowTests(WorkflowTestCase):
    def _seed(self):
        with self.Session.begin() as session:
            session.add_all(
                [Member(id=1, name="Alice"), Member(id=2, name="Bob"), Member(id=3, name="Cara")]
            )
            session.flush()
            session.add_all(
                [
                    Checkin(member_id=1, meeting_date="2025-06-05"),
                    Checkin(member_id=2, meeting_date="2025-06-05"),
                    Checkin(member_id=3, meeting_date="2025-06-12"),
                ]
            )
            create_prize(
                session, name="Tote bag", total_quantity=5, weight=1, image_url="tote.png"
            )

    def test_list_winners_joins_member_and_prize(self):
        self._seed()
        settings = DrawSettings(max_attempts=3)
        first = run_lottery_draw(
            self.Session, "2025-06-05", rng=random.Random(1), settings=settings
        )
        second = run_lottery_draw(
            self.Session, "2025-06-05", rng=random.Random(2), settings=settings
        )

        with self.Session() as session:
            rows = list_winners(session, "2025-06-05")
            other_date = list_winners(session, "2025-06-12")

        self.assertEqual(
            [row["member_id"] for row in rows],
            [second.attendee_id, first.attendee_id],
        )
        self.assertEqual({row["member_name"] for row in rows}, {"Alice", "Bob"})
        self.assertEqual(rows[0]["prize_name"], "Tote bag")
        self.assertEqual(rows[0]["prize_image_url"], "tote.png")
        self.assertEqual(rows[0]["meeting_date"], "2025-06-05")
        self.assertTrue(rows[0]["created_at"].endswith("+00:00"))
        self.assertEqual(other_date, [])

    def test_list_winners_validates_date(self):
        with self.Session() as session:
            with self.assertRaises(ValidationError):
                list_winners(session, "June 5th")


class ReconciliationWorkflowTests(WorkflowTestCase):
    def test_partial_failure_can_be_reconciled_by_crediting(self):
        with self.Session.begin() as session:
            session.add(Member(id=1, name="Alice"))
            session.flush()
            session.add(Checkin(member_id=1, meeting_date="2025-06-05"))
            prize = create_prize(session, name="Mug", total_quantity=1, weight=1)
            prize_id = prize.id

        # Simulate a rival draw that recorded the member between our
        # eligibility read and our insert.
        class RivalRegistry(WinnerRegistry):
            def record_winner(self, meeting_date, attendee_id, prize_id):
                with self._session_factory.begin() as session:
                    session.add(
                        LotteryWinner(
                            meeting_date=meeting_date,
                            member_id=attendee_id,
                            prize_id=prize_id,
                        )
                    )
                return super().record_winner(meeting_date, attendee_id, prize_id)

        coordinator = DrawCoordinator(
            self.Session,
            registry=RivalRegistry(self.Session),
            settings=DrawSettings(max_attempts=1),
        )
        with self.assertRaises(PartialFailureError) as ctx:
            coordinator.draw("2025-06-05")
        self.assertEqual(ctx.exception.prize_id, prize_id)

        with self.Session.begin() as session:
            self.assertEqual(session.get(Prize, prize_id).remaining_quantity, 0)
            credited = credit_prize_unit(session, ctx.exception.prize_id)
            self.assertEqual(credited.remaining_quantity, 1)


class PrizeCatalogWorkflowTests(WorkflowTestCase):
    def test_list_prizes_newest_first(self):
        with self.Session.begin() as session:
            mug = create_prize(session, name="Mug", total_quantity=2, weight=1)
            tote = create_prize(
                session, name="Tote bag", total_quantity=1, weight=4, image_url="tote.png"
            )
            mug_id, tote_id = mug.id, tote.id

        with self.Session() as session:
            rows = list_prizes(session)

        self.assertEqual([row["id"] for row in rows], [tote_id, mug_id])
        self.assertEqual(rows[0]["name"], "Tote bag")
        self.assertEqual(rows[0]["image_url"], "tote.png")
        self.assertEqual(rows[1]["remaining_quantity"], 2)

    def test_list_prizes_includes_out_of_stock(self):
        with self.Session.begin() as session:
            prize = create_prize(session, name="Mug", total_quantity=0)
            prize_id = prize.id

        with self.Session() as session:
            self.assertEqual([row["id"] for row in list_prizes(session)], [prize_id])

    def test_delete_unwon_prize(self):
        with self.Session.begin() as session:
            prize_id = create_prize(session, name="Mug", total_quantity=3).id

        with self.Session.begin() as session:
            delete_prize(session, prize_id)

        with self.Session() as session:
            self.assertIsNone(session.get(Prize, prize_id))

    def test_delete_missing_prize_raises(self):
        with self.Session() as session:
            with self.assertRaises(ValueError):
                delete_prize(session, 404)

    def test_delete_won_prize_is_refused(self):
        with self.Session.begin() as session:
            session.add(Member(id=1, name="Alice"))
            prize = create_prize(session, name="Mug", total_quantity=3, weight=1)
            session.flush()
            session.add(
                LotteryWinner(meeting_date="2025-06-05", member_id=1, prize_id=prize.id)
            )
            prize_id = prize.id

        with self.Session() as session:
            with self.assertRaises(ValueError):
                delete_prize(session, prize_id)

        with self.Session() as session:
            self.assertIsNotNone(session.get(Prize, prize_id))


if __name__ == "__main__":
    unittest.main()
