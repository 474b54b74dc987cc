import unittest
from datetime import datetime

from categories import GoalStatus
from database import Goal, User
from factories import memory_sessionmaker
from goals import get_user_goals, goal_snapshots, months_until
from seed_db import seed_family

NOW = datetime(2026, 9, 15, 12, 0)


class TestGoals(unittest.TestCase):

    def setUp(self):
        self.db = memory_sessionmaker()()
        seed_family(self.db, NOW)
        self.ana = self.db.query(User).filter(User.email == "ana@finance.local").one()
        self.bruno = self.db.query(User).filter(User.email == "bruno@finance.local").one()

    def tearDown(self):
        self.db.close()

    def _goal(self, name, status=GoalStatus.ACTIVE, deadline=datetime(2027, 3, 1), user=None):
        goal = Goal(
            user_id=(user or self.bruno).id,
            name=name,
            target_amount=1200.0,
            current_amount=200.0,
            deadline=deadline,
            status=status,
        )
        self.db.add(goal)
        self.db.commit()
        return goal

    def test_family_goals_are_shared(self):
        goals = get_user_goals(self.db, self.bruno.id)
        self.assertEqual([g.name for g in goals], ["Reserva de emergência"])

        [snapshot] = goal_snapshots(goals, NOW, viewer_id=self.bruno.id)
        self.assertTrue(snapshot.is_shared)
        self.assertEqual(snapshot.current, 6500.0)
        self.assertEqual(snapshot.target, 20000.0)
        self.assertEqual(snapshot.required_monthly, 13500.0 / 12)
        self.assertFalse(goal_snapshots(goals, NOW, viewer_id=self.ana.id)[0].is_shared)

    def test_only_active_goals_nearest_deadline_first(self):
        self._goal("Viagem", deadline=datetime(2027, 1, 10))
        self._goal("Carro", status=GoalStatus.COMPLETED, deadline=datetime(2026, 10, 1))
        self._goal("Curso", status=GoalStatus.PAUSED, deadline=datetime(2026, 11, 1))
        self._goal("Notebook", deadline=datetime(2026, 12, 20))

        snapshots = goal_snapshots(get_user_goals(self.db, self.ana.id), NOW, viewer_id=self.ana.id)
        self.assertEqual([s.title for s in snapshots], ["Notebook", "Viagem", "Reserva de emergência"])

    def test_limit(self):
        for n in range(4):
            self._goal(f"Meta {n}", deadline=datetime(2026, 10 + n % 3, 1))
        self.assertEqual(len(goal_snapshots(get_user_goals(self.db, self.ana.id), NOW)), 3)
        self.assertEqual(len(goal_snapshots(get_user_goals(self.db, self.ana.id), NOW, limit=10)), 5)

    def test_goal_already_reached(self):
        goal = self._goal("Celular")
        goal.current_amount = 1500.0
        self.db.commit()
        [snapshot] = [s for s in goal_snapshots([goal], NOW) if s.title == "Celular"]
        self.assertEqual(snapshot.required_monthly, 0.0)

    def test_months_until(self):
        self.assertEqual(months_until(datetime(2027, 9, 1), NOW), 12)
        self.assertEqual(months_until(datetime(2026, 9, 30), NOW), 1)
        self.assertEqual(months_until(datetime(2025, 1, 1), NOW), 1)


if __name__ == "__main__":
    unittest.main()
