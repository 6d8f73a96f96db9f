"""
User data-access methods.

Signup is not implemented: a single mock user is seeded by the init script and
every mutation in the API acts as that user.
"""

from typing import Optional

from psycopg_pool import AsyncConnectionPool

from db.postgres import _execute_read_one, _execute_write
from implementation.classes.records import User

# Placeholder for the logged-in user until authentication exists.
MOCK_USER_ID = "1"
MOCK_USERNAME = "filmfan"

_USER_COLUMNS = "id, username, name, avatar_url, bio, created_at, updated_at"


async def upsert_user(
    pool: AsyncConnectionPool,
    user_id: str,
    username: str,
    name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    bio: Optional[str] = None,
) -> User:
    """
    Insert a user, or refresh the username of an existing one.

    Profile fields of an existing user are only overwritten when supplied.

    Returns:
        The stored user row.
    """
    query = f"""
    INSERT INTO users (id, username, name, avatar_url, bio, created_at, updated_at)
    VALUES (%s, %s, %s, %s, %s, now(), now())
    ON CONFLICT (id) DO UPDATE SET
        username = EXCLUDED.username,
        name = COALESCE(EXCLUDED.name, users.name),
        avatar_url = COALESCE(EXCLUDED.avatar_url, users.avatar_url),
        bio = COALESCE(EXCLUDED.bio, users.bio),
        updated_at = now()
    RETURNING {_USER_COLUMNS};
    """
    row = await _execute_write(pool, query, (user_id, username, name, avatar_url, bio), fetch_one=True)
    return User.from_row(row)


async def fetch_user(pool: AsyncConnectionPool, user_id: str) -> Optional[User]:
    """Return the user with the given id, or None."""
    row = await _execute_read_one(
        pool,
        f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
        (user_id,),
    )
    return User.from_row(row) if row else None


async def update_user_profile(
    pool: AsyncConnectionPool,
    user_id: str,
    name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    bio: Optional[str] = None,
) -> Optional[User]:
    """
    Partially update a user's profile.

    Only the fields that are supplied (not None) are written; updated_at is
    always refreshed.

    Returns:
        The updated user, or None if no user has the given id.
    """
    set_clauses: list[str] = []
    params: list[object] = []

    if name is not None:
        set_clauses.append("name = %s")
        params.append(name)
    if avatar_url is not None:
        set_clauses.append("avatar_url = %s")
        params.append(avatar_url)
    if bio is not None:
        set_clauses.append("bio = %s")
        params.append(bio)
    set_clauses.append("updated_at = now()")

    query = (
        f"UPDATE users SET {', '.join(set_clauses)}\n"
        f"WHERE id = %s\n"
        f"RETURNING {_USER_COLUMNS};"
    )
    params.append(user_id)

    row = await _execute_write(pool, query, tuple(params), fetch_one=True)
    return User.from_row(row) if row else None
