"""
PostgreSQL store

PostgresStore implements every protocol in farmfocus.db.stores by
combining one query class per table group.

Module organization:
- base.py: connection/error plumbing shared by all query classes
- progression.py: user_stat (XP, gold, streaks, drought)
- activity.py: progress_log (append-only activity ledger)
- tasks.py: task and habit
- garden.py: seed catalog, user_seed, bed, user_plant
- shop.py: good
- user.py: users

Expected tables (migrations are managed outside this package):
users, user_stat, progress_log, task, habit, seed, user_seed, bed,
user_plant, good. bed is unique on (user_id, cell_number), user_seed on
(user_id, seed_id), good on (user_id, kind, ref_id).
"""

from farmfocus.db.connection import Database
from farmfocus.db.queries.activity import ActivityQueries
from farmfocus.db.queries.garden import GardenQueries
from farmfocus.db.queries.progression import ProgressionQueries
from farmfocus.db.queries.shop import ShopQueries
from farmfocus.db.queries.tasks import TaskQueries
from farmfocus.db.queries.user import UserQueries


class PostgresStore(
    ProgressionQueries,
    ActivityQueries,
    TaskQueries,
    GardenQueries,
    ShopQueries,
    UserQueries,
):
    """farmfocus.db.stores.Store backed by PostgreSQL"""

    def __init__(self, database: Database):
        super().__init__(database)


__all__ = [
    "PostgresStore",
    "ActivityQueries",
    "GardenQueries",
    "ProgressionQueries",
    "ShopQueries",
    "TaskQueries",
    "UserQueries",
]
