"""
Seed demo categories, habits and a week of completions for user_id=1.
Run:  python seed_test_data.py
"""
from datetime import timedelta

from habitxp.application.leveling import CompleteHabitUseCase, local_today
from habitxp.infrastructure.db.models import Category, HabitModel
from habitxp.infrastructure.db.session import get_session_factory

USER_ID = 1

CATEGORIES = [
    ("Health", "#10b981", "heart"),
    ("Fitness", "#ef4444", "dumbbell"),
    ("Mind", "#8b5cf6", "brain"),
    ("Learning", "#3b82f6", "book"),
    ("Productivity", "#f59e0b", "target"),
]

# (title, category, difficulty, cadence, target)
HABITS = [
    ("Drink water", "Health", "trivial", "daily", None),
    ("Morning run", "Fitness", "hard", "daily", 30.0),
    ("Meditate", "Mind", "easy", "daily", 10.0),
    ("Read a chapter", "Learning", "normal", "daily", None),
    ("Weekly review", "Productivity", "epic", "weekly", None),
]

db = get_session_factory()()

try:
    cats = {c.name: c.id for c in db.query(Category).all()}
    for name, color, icon in CATEGORIES:
        if name not in cats:
            category = Category(name=name, color=color, icon=icon)
            db.add(category)
            db.flush()
            cats[name] = category.id
    db.commit()

    if db.query(HabitModel).filter_by(user_id=USER_ID).count() > 0:
        print(f"Habits already exist for user {USER_ID}, skipping")
    else:
        habits = []
        for title, cat_name, difficulty, cadence, target in HABITS:
            habit = HabitModel(
                user_id=USER_ID, category_id=cats[cat_name], title=title,
                difficulty=difficulty, cadence=cadence, target=target, is_archived=False,
            )
            db.add(habit)
            habits.append(habit)
        db.commit()

        today = local_today()
        use_case = CompleteHabitUseCase(db)
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            for habit in habits:
                if habit.cadence == "weekly" and offset % 7 != 0:
                    continue
                amount = habit.target * 0.9 if habit.target else None
                result = use_case.execute(USER_ID, habit.id, amount=amount, today=day)
                print(f"{day} {habit.title}: +{result.breakdown.category_gain} XP "
                      f"(streak {result.streak_count})")

finally:
    db.close()
