"""
Movie list data-access methods.

A list is owned by exactly one user. List items are a plain many-to-many join
between lists and movies with no ordering column; reads order them by added_at.
"""

from typing import Optional

from psycopg_pool import AsyncConnectionPool

from db.postgres import _execute_on_conn, _execute_read, _execute_read_one, _execute_write
from implementation.classes.records import (
    ListedMovie,
    ListItem,
    Movie,
    MovieList,
    MovieListDetail,
)

_LIST_COLUMNS = "id, user_id, name, description, is_public, created_at, updated_at"

_LIST_WITH_COUNT_SELECT = """
SELECT l.id, l.user_id, l.name, l.description, l.is_public,
       l.created_at, l.updated_at, COUNT(li.movie_id) AS movie_count
FROM movie_lists l
LEFT JOIN list_items li ON li.list_id = l.id"""


async def create_list(
    pool: AsyncConnectionPool,
    user_id: str,
    name: str,
    description: Optional[str] = None,
    is_public: bool = True,
) -> MovieList:
    """Create an empty list owned by the given user."""
    query = f"""
    INSERT INTO movie_lists (user_id, name, description, is_public, created_at, updated_at)
    VALUES (%s, %s, %s, %s, now(), now())
    RETURNING {_LIST_COLUMNS};
    """
    row = await _execute_write(pool, query, (user_id, name, description, is_public), fetch_one=True)
    return MovieList.from_row(row)


async def fetch_list(pool: AsyncConnectionPool, list_id: int) -> Optional[MovieList]:
    """Return the list with the given id, or None."""
    row = await _execute_read_one(
        pool,
        f"SELECT {_LIST_COLUMNS} FROM movie_lists WHERE id = %s",
        (list_id,),
    )
    return MovieList.from_row(row) if row else None


async def fetch_list_movies(pool: AsyncConnectionPool, list_id: int) -> list[ListedMovie]:
    """Return the movies in a list, oldest addition first."""
    query = """
    SELECT m.id, m.title, m.year, m.poster_url, m.overview, li.added_at
    FROM list_items li
    JOIN movies m ON m.id = li.movie_id
    WHERE li.list_id = %s
    ORDER BY li.added_at ASC, m.id ASC;
    """
    rows = await _execute_read(pool, query, (list_id,))
    return [ListedMovie(movie=Movie.from_row(row), added_at=row["added_at"]) for row in rows]


async def fetch_list_detail(pool: AsyncConnectionPool, list_id: int) -> Optional[MovieListDetail]:
    """Return a list together with its movies, or None if the list does not exist."""
    movie_list = await fetch_list(pool, list_id)
    if movie_list is None:
        return None
    movies = await fetch_list_movies(pool, list_id)
    movie_list.movie_count = len(movies)
    return MovieListDetail(list=movie_list, movies=movies)


async def fetch_user_lists(
    pool: AsyncConnectionPool,
    user_id: str,
    include_private: bool = False,
) -> list[MovieList]:
    """Return the user's lists with their item counts, most recently updated first."""
    query = f"""{_LIST_WITH_COUNT_SELECT}
WHERE l.user_id = %s"""
    if not include_private:
        query += " AND l.is_public"
    query += """
GROUP BY l.id
ORDER BY l.updated_at DESC;
"""
    rows = await _execute_read(pool, query, (user_id,))
    return [MovieList.from_row(row) for row in rows]


async def fetch_user_lists_with_movies(
    pool: AsyncConnectionPool,
    user_id: str,
    include_private: bool = False,
) -> list[MovieListDetail]:
    """
    Return the user's lists together with their movies in a single query.

    Lists are ordered most recently updated first, movies inside each list
    oldest addition first. Empty lists are included with no movies.
    """
    query = """
    SELECT l.id, l.user_id, l.name, l.description, l.is_public, l.created_at, l.updated_at,
           m.id AS movie_id, m.title, m.year, m.poster_url, m.overview, li.added_at
    FROM movie_lists l
    LEFT JOIN list_items li ON li.list_id = l.id
    LEFT JOIN movies m ON m.id = li.movie_id
    WHERE l.user_id = %s"""
    if not include_private:
        query += " AND l.is_public"
    query += "\n    ORDER BY l.updated_at DESC, l.id, li.added_at ASC, m.id ASC;"
    rows = await _execute_read(pool, query, (user_id,))

    details: dict[int, MovieListDetail] = {}
    for row in rows:
        detail = details.get(row["id"])
        if detail is None:
            detail = MovieListDetail(list=MovieList.from_row(row), movies=[])
            details[row["id"]] = detail
        if row["movie_id"] is not None:
            movie = Movie.from_row({**row, "id": row["movie_id"]})
            detail.movies.append(ListedMovie(movie=movie, added_at=row["added_at"]))

    for detail in details.values():
        detail.list.movie_count = len(detail.movies)
    return list(details.values())


async def fetch_popular_lists(pool: AsyncConnectionPool, limit: int = 10) -> list[MovieList]:
    """
    Return public, non-empty lists, most recently updated first.

    There are no list likes or follows to rank by, so recency stands in for
    popularity.
    """
    query = f"""{_LIST_WITH_COUNT_SELECT}
WHERE l.is_public
GROUP BY l.id
HAVING COUNT(li.movie_id) > 0
ORDER BY l.updated_at DESC
LIMIT %s;
"""
    rows = await _execute_read(pool, query, (limit,))
    return [MovieList.from_row(row) for row in rows]


async def delete_list(pool: AsyncConnectionPool, list_id: int, user_id: str) -> bool:
    """
    Delete a list owned by the given user. List items cascade.

    Returns:
        True if a list was deleted, False if none matched the id and owner.
    """
    query = "DELETE FROM movie_lists WHERE id = %s AND user_id = %s RETURNING id;"
    row = await _execute_write(pool, query, (list_id, user_id), fetch_one=True)
    return row is not None


async def add_list_item(pool: AsyncConnectionPool, list_id: int, movie_id: str) -> ListItem:
    """
    Add a movie to a list. Adding a movie that is already listed is a no-op.

    The insert and the list's updated_at bump share one transaction. The movie
    must already be stored (see get_or_insert_movie).

    Returns:
        The stored list item (with its original added_at when already present).
    """
    insert_query = """
    INSERT INTO list_items (list_id, movie_id, added_at)
    VALUES (%s, %s, now())
    ON CONFLICT (list_id, movie_id) DO NOTHING;
    """
    touch_query = "UPDATE movie_lists SET updated_at = now() WHERE id = %s;"
    select_query = "SELECT list_id, movie_id, added_at FROM list_items WHERE list_id = %s AND movie_id = %s"

    async with pool.connection() as conn:
        await _execute_on_conn(conn, insert_query, (list_id, movie_id))
        await _execute_on_conn(conn, touch_query, (list_id,))
        rows = await _execute_on_conn(conn, select_query, (list_id, movie_id), fetch=True)
        await conn.commit()

    return ListItem.from_row(rows[0])


async def remove_list_item(pool: AsyncConnectionPool, list_id: int, movie_id: str) -> bool:
    """
    Remove a movie from a list.

    Returns:
        True if the movie was in the list, False otherwise.
    """
    query = "DELETE FROM list_items WHERE list_id = %s AND movie_id = %s RETURNING movie_id;"
    row = await _execute_write(pool, query, (list_id, movie_id), fetch_one=True)
    return row is not None
