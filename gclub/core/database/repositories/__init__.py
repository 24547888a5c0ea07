"""
Database repository layer using SQLModel.

Each module provides async data access for its entities. Repositories flush
but never commit; services own the transaction.

Modules:
- base: BaseRepository interface and QueryBuilder utilities
- users: Users, profiles, roles and permissions
- games: Game catalogue and favorites
- game_posts: Game posts, rosters and waiting lists
- comments: Comments
- notices: Notices
- notifications: Notifications, receipts and settings
- boards: Channels, boards and board posts
- bundle: SqlRepoBundle for dependency injection
"""

from .bundle import SqlRepoBundle, build_sql_repos_from_session

__all__ = ["SqlRepoBundle", "build_sql_repos_from_session"]
