"""
Post store backends.

``PostStore`` defines the persistence contract used by the request handlers.
Two implementations are provided: ``MemoryStore`` keeps records in process
memory for local development, and ``SQLiteStore`` persists them with
``sqlite3``. Neither raises for missing records; absence is returned as None.
"""
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional

from src.api.config import Settings
from src.api.exceptions import StorageError
from src.api.logger import get_logger
from src.api.schemas import Post, PostCreate, User, UserCreate

logger = get_logger(__name__)

DEFAULT_USER = UserCreate(
    firebase_uid="default-user",
    email="user@example.com",
    display_name="Test User",
)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with milliseconds and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PostStore(ABC):
    """Persistence contract for users and their saved posts."""

    name = "abstract"

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def create_user(self, data: UserCreate) -> User:
        """Insert a user. Raises StorageError if the external id is taken."""
        ...

    @abstractmethod
    def get_or_create_user(self, data: UserCreate) -> User:
        """Return the user for ``data.firebase_uid``, creating it atomically if absent."""
        ...

    @abstractmethod
    def get_post(self, post_id: int) -> Optional[Post]:
        ...

    @abstractmethod
    def get_user_posts(self, user_id: int) -> List[Post]:
        """Posts owned by ``user_id``, newest first."""
        ...

    @abstractmethod
    def create_post(self, data: PostCreate) -> Post:
        ...

    @abstractmethod
    def delete_post(self, post_id: int) -> None:
        """Remove a post by id. Missing ids are ignored."""
        ...


class MemoryStore(PostStore):
    """
    In-process store backed by two dicts and two id counters.

    Records are copied on the way in and out so callers never hold references
    into the store's maps. Every read and write of the maps holds ``_lock``.
    """

    name = "memory"

    def __init__(self, seed_default_user: bool = True, clock: Callable[[], str] = utc_now_iso):
        self._users: Dict[int, User] = {}
        self._posts: Dict[int, Post] = {}
        self._next_user_id = 1
        self._next_post_id = 1
        self._clock = clock
        self._lock = threading.Lock()
        if seed_default_user:
            self.create_user(DEFAULT_USER)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def _find_user(self, external_id: str) -> Optional[User]:
        # caller holds _lock
        for user in self._users.values():
            if user.firebase_uid == external_id:
                return user
        return None

    def _insert_user(self, data: UserCreate) -> User:
        # caller holds _lock
        user = User(
            id=self._next_user_id,
            firebase_uid=data.firebase_uid,
            email=data.email,
            display_name=data.display_name or None,
            created_at=self._clock(),
        )
        self._users[user.id] = user
        self._next_user_id += 1
        logger.info(f"Created user {user.id} for external id {user.firebase_uid}")
        return user

    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        with self._lock:
            user = self._find_user(external_id)
            return user.model_copy() if user else None

    def create_user(self, data: UserCreate) -> User:
        with self._lock:
            if self._find_user(data.firebase_uid):
                raise StorageError(f"User with external id {data.firebase_uid} already exists")
            return self._insert_user(data).model_copy()

    def get_or_create_user(self, data: UserCreate) -> User:
        with self._lock:
            user = self._find_user(data.firebase_uid) or self._insert_user(data)
            return user.model_copy()

    def get_post(self, post_id: int) -> Optional[Post]:
        with self._lock:
            post = self._posts.get(post_id)
            return post.model_copy() if post else None

    def get_user_posts(self, user_id: int) -> List[Post]:
        with self._lock:
            posts = [p.model_copy() for p in self._posts.values() if p.user_id == user_id]
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    def create_post(self, data: PostCreate) -> Post:
        with self._lock:
            post = Post(
                id=self._next_post_id,
                user_id=data.user_id,
                content=data.content,
                platform=data.platform,
                tone=data.tone,
                idea=data.idea or None,
                has_emojis=bool(data.has_emojis),
                has_hashtags=bool(data.has_hashtags),
                has_suggested_images=bool(data.has_suggested_images),
                created_at=self._clock(),
            )
            self._posts[post.id] = post
            self._next_post_id += 1
        logger.debug(f"Created post {post.id} for user {post.user_id}")
        return post.model_copy()

    def delete_post(self, post_id: int) -> None:
        with self._lock:
            removed = self._posts.pop(post_id, None)
        if removed:
            logger.debug(f"Deleted post {post_id}")


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    firebase_uid TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL,
    display_name TEXT,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    content TEXT NOT NULL,
    platform TEXT NOT NULL,
    tone TEXT NOT NULL,
    idea TEXT,
    has_emojis INTEGER NOT NULL DEFAULT 0,
    has_hashtags INTEGER NOT NULL DEFAULT 0,
    has_suggested_images INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_posts_user_created ON posts (user_id, created_at);
"""

USER_COLUMNS = "id, firebase_uid, email, display_name, created_at"
POST_COLUMNS = (
    "id, user_id, content, platform, tone, idea, "
    "has_emojis, has_hashtags, has_suggested_images, created_at"
)

# Ids outside SQLite's signed 64-bit INTEGER range cannot match any row.
SQLITE_MIN_INTEGER = -(2 ** 63)
SQLITE_MAX_INTEGER = 2 ** 63 - 1


def _fits_sqlite_integer(value: int) -> bool:
    return SQLITE_MIN_INTEGER <= value <= SQLITE_MAX_INTEGER


class SQLiteStore(PostStore):
    """Store persisted in a SQLite database file, one connection per operation."""

    name = "sqlite"

    def __init__(self, db_path: str, seed_default_user: bool = True, clock: Callable[[], str] = utc_now_iso):
        self.db_path = db_path
        self._clock = clock
        with self._connect() as conn:
            conn.executescript(SCHEMA)
        if seed_default_user and self.get_user_by_external_id(DEFAULT_USER.firebase_uid) is None:
            self.create_user(DEFAULT_USER)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """
        Open a connection with foreign keys enabled, commit on success and
        always close it.
        """
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"SQLite error on {self.db_path}: {e}")
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def get_user(self, user_id: int) -> Optional[User]:
        if not _fits_sqlite_integer(user_id):
            return None
        with self._connect() as conn:
            row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return User(**dict(row)) if row else None

    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE firebase_uid = ? ORDER BY id LIMIT 1",
                (external_id,),
            ).fetchone()
        return User(**dict(row)) if row else None

    def create_user(self, data: UserCreate) -> User:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO users (firebase_uid, email, display_name, created_at) VALUES (?, ?, ?, ?)",
                (data.firebase_uid, data.email, data.display_name or None, self._clock()),
            )
            row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (cur.lastrowid,)).fetchone()
        user = User(**dict(row))
        logger.info(f"Created user {user.id} for external id {user.firebase_uid}")
        return user

    def get_or_create_user(self, data: UserCreate) -> User:
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO users (firebase_uid, email, display_name, created_at) VALUES (?, ?, ?, ?)
                ON CONFLICT(firebase_uid) DO NOTHING
                """,
                (data.firebase_uid, data.email, data.display_name or None, self._clock()),
            )
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE firebase_uid = ?",
                (data.firebase_uid,),
            ).fetchone()
        user = User(**dict(row))
        if cur.rowcount:
            logger.info(f"Created user {user.id} for external id {user.firebase_uid}")
        return user

    def get_post(self, post_id: int) -> Optional[Post]:
        if not _fits_sqlite_integer(post_id):
            return None
        with self._connect() as conn:
            row = conn.execute(f"SELECT {POST_COLUMNS} FROM posts WHERE id = ?", (post_id,)).fetchone()
        return Post(**dict(row)) if row else None

    def get_user_posts(self, user_id: int) -> List[Post]:
        if not _fits_sqlite_integer(user_id):
            return []
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {POST_COLUMNS} FROM posts WHERE user_id = ? ORDER BY created_at DESC, id ASC",
                (user_id,),
            ).fetchall()
        return [Post(**dict(r)) for r in rows]

    def create_post(self, data: PostCreate) -> Post:
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO posts (user_id, content, platform, tone, idea,
                                   has_emojis, has_hashtags, has_suggested_images, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.user_id,
                    data.content,
                    data.platform,
                    data.tone,
                    data.idea or None,
                    int(bool(data.has_emojis)),
                    int(bool(data.has_hashtags)),
                    int(bool(data.has_suggested_images)),
                    self._clock(),
                ),
            )
            row = conn.execute(f"SELECT {POST_COLUMNS} FROM posts WHERE id = ?", (cur.lastrowid,)).fetchone()
        post = Post(**dict(row))
        logger.debug(f"Created post {post.id} for user {post.user_id}")
        return post

    def delete_post(self, post_id: int) -> None:
        if not _fits_sqlite_integer(post_id):
            return
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM posts WHERE id = ?", (post_id,))
        if cur.rowcount:
            logger.debug(f"Deleted post {post_id}")


# PUBLIC_INTERFACE
def create_store(settings: Settings) -> PostStore:
    """Build the store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "sqlite":
        logger.info(f"Using SQLite store at {settings.sqlite_db}")
        return SQLiteStore(settings.sqlite_db, seed_default_user=settings.seed_default_user)
    logger.info("Using in-memory store")
    return MemoryStore(seed_default_user=settings.seed_default_user)
