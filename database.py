import re
import sqlite3
import uuid
from datetime import datetime, timezone

from feedback_entries import QUESTION_KEYS, RATING_KIND, SURVEY_KIND, entry_from_row


ADVISOR_ROLE = "advisor"
MANAGER_ROLE = "manager"
ROLES = (ADVISOR_ROLE, MANAGER_ROLE)

ADVISOR_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

SQLITE_TIMEOUT = 10

ADVISOR_COLUMNS = "id, name, email, password_hash, role, qr_code, created_at"


def _connect(db_path):
    conn = sqlite3.connect(db_path, timeout=SQLITE_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _now():
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_advisor_id():
    return uuid.uuid4().hex


def is_valid_advisor_id(value):
    return bool(value) and bool(ADVISOR_ID_PATTERN.match(value))


def init_db(db_path):
    conn = _connect(db_path)
    try:
        c = conn.cursor()

        c.execute("""
            CREATE TABLE IF NOT EXISTS advisors (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                role TEXT NOT NULL DEFAULT 'advisor',
                qr_code TEXT,
                created_at TEXT
            )
        """)
        c.execute("""
            CREATE TABLE IF NOT EXISTS feedback (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                advisor_id TEXT NOT NULL REFERENCES advisors(id),
                kind TEXT NOT NULL,
                submitted_at TEXT NOT NULL,
                q1 INTEGER,
                q2 INTEGER,
                q3 INTEGER,
                q4 INTEGER,
                q5 INTEGER,
                rating INTEGER,
                comment TEXT
            )
        """)
        c.execute(
            "CREATE INDEX IF NOT EXISTS idx_feedback_advisor ON feedback (advisor_id, id)"
        )

        conn.commit()
    finally:
        conn.close()


def insert_advisor(db_path, name, email, password_hash, role=ADVISOR_ROLE):
    """Insert a new advisor and return its identifier.

    Raises ``sqlite3.IntegrityError`` when the email is already taken.
    """
    advisor_id = new_advisor_id()
    conn = _connect(db_path)
    try:
        conn.execute(
            """
            INSERT INTO advisors (id, name, email, password_hash, role, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (advisor_id, name, email, password_hash, role, _now()),
        )
        conn.commit()
    finally:
        conn.close()
    return advisor_id


def get_advisor_by_id(db_path, advisor_id):
    conn = _connect(db_path)
    try:
        row = conn.execute(
            f"SELECT {ADVISOR_COLUMNS} FROM advisors WHERE id = ?",
            (advisor_id,),
        ).fetchone()
    finally:
        conn.close()
    return dict(row) if row else None


def find_advisor_by_email(db_path, email):
    # default BINARY collation: exact, case-sensitive match
    conn = _connect(db_path)
    try:
        row = conn.execute(
            f"SELECT {ADVISOR_COLUMNS} FROM advisors WHERE email = ?",
            (email,),
        ).fetchone()
    finally:
        conn.close()
    return dict(row) if row else None


def get_all_advisors(db_path, role=None):
    query = f"SELECT {ADVISOR_COLUMNS} FROM advisors"
    params = ()
    if role:
        query += " WHERE role = ?"
        params = (role,)
    query += " ORDER BY created_at, id"

    conn = _connect(db_path)
    try:
        rows = conn.execute(query, params).fetchall()
    finally:
        conn.close()
    return [dict(row) for row in rows]


def set_qr_code(db_path, advisor_id, qr_code):
    conn = _connect(db_path)
    try:
        conn.execute("UPDATE advisors SET qr_code = ? WHERE id = ?", (qr_code, advisor_id))
        conn.commit()
    finally:
        conn.close()


def _append_feedback(db_path, advisor_id, kind, values):
    columns = ["advisor_id", "kind", "submitted_at"] + list(values)
    params = [advisor_id, kind, _now()] + list(values.values())
    placeholders = ", ".join("?" for _ in columns)

    # A single INSERT is an atomic append: concurrent submissions never clobber
    # each other the way load-modify-save of a whole record would.
    conn = _connect(db_path)
    try:
        conn.execute(
            f"INSERT INTO feedback ({', '.join(columns)}) VALUES ({placeholders})",
            params,
        )
        conn.commit()
    finally:
        conn.close()


def append_survey_feedback(db_path, advisor_id, ratings, comment=""):
    values = dict(zip(QUESTION_KEYS, ratings))
    values["comment"] = comment or ""
    _append_feedback(db_path, advisor_id, SURVEY_KIND, values)


def append_rating_feedback(db_path, advisor_id, rating, comments=""):
    _append_feedback(
        db_path,
        advisor_id,
        RATING_KIND,
        {"rating": rating, "comment": comments or ""},
    )


def get_feedback(db_path, advisor_id):
    """Return the advisor's feedback entries in submission order."""
    conn = _connect(db_path)
    try:
        rows = conn.execute(
            """
            SELECT kind, submitted_at, q1, q2, q3, q4, q5, rating, comment
            FROM feedback
            WHERE advisor_id = ?
            ORDER BY id ASC
            """,
            (advisor_id,),
        ).fetchall()
    finally:
        conn.close()
    return [entry_from_row(row) for row in rows]
