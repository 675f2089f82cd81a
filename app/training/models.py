"""
SafetyHub Training — Database Models & Query Helpers
"""
import os
import sqlite3
import calendar
import datetime
from typing import Optional, List, Dict

DB_PATH = os.environ.get("SAFETYHUB_DB", "safetyhub.db")

_RECORD_SELECT = """
    SELECT tr.id, tr.course_id, tr.user_id, tr.completed_on, tr.expires_on,
           tr.certificate_url, tr.created_at, tr.updated_at,
           tc.name AS course_name, tc.validity_months
    FROM training_records tr
    LEFT JOIN training_courses tc ON tr.course_id = tc.id
"""


def _get_conn():
    conn = sqlite3.connect(DB_PATH, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def _ts() -> str:
    return datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def parse_date(value) -> Optional[datetime.date]:
    """Accept a date, a datetime or an ISO string ('2026-03-01' or '2026-03-01T..')."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])


def add_months(start: datetime.date, months: int) -> datetime.date:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)


# ================================================================
# SCHEMA INITIALIZATION
# ================================================================

def init_training_schema():
    """Create training tables if they don't exist."""
    conn = _get_conn()
    c = conn.cursor()

    c.execute("""
        CREATE TABLE IF NOT EXISTS training_courses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            validity_months INTEGER,
            created_at TEXT,
            updated_at TEXT
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS training_records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            course_id INTEGER REFERENCES training_courses(id),
            user_id TEXT NOT NULL,
            completed_on TEXT NOT NULL,
            expires_on TEXT,
            certificate_url TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """)

    for idx in [
        "CREATE INDEX IF NOT EXISTS idx_tr_user ON training_records (user_id)",
        "CREATE INDEX IF NOT EXISTS idx_tr_expires ON training_records (expires_on)",
        "CREATE INDEX IF NOT EXISTS idx_tr_course ON training_records (course_id)",
    ]:
        c.execute(idx)

    conn.commit()
    conn.close()


# ================================================================
# COURSES
# ================================================================

def get_courses() -> List[Dict]:
    conn = _get_conn()
    rows = conn.execute(
        "SELECT id, name, validity_months FROM training_courses ORDER BY name"
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_course(course_id: int) -> Optional[Dict]:
    conn = _get_conn()
    row = conn.execute(
        "SELECT id, name, validity_months FROM training_courses WHERE id = ?", (course_id,)
    ).fetchone()
    conn.close()
    return dict(row) if row else None


def create_course(name: str, validity_months: Optional[int] = None) -> int:
    conn = _get_conn()
    ts = _ts()
    cur = conn.execute("""
        INSERT INTO training_courses (name, validity_months, created_at, updated_at)
        VALUES (?, ?, ?, ?)
    """, (name, validity_months, ts, ts))
    course_id = cur.lastrowid
    conn.commit()
    conn.close()
    return course_id


def update_course(course_id: int, data: dict) -> bool:
    sets = []
    params = []
    for key in ("name", "validity_months"):
        if key in data:
            sets.append(f"{key} = ?")
            params.append(data[key])
    if not sets:
        return get_course(course_id) is not None
    sets.append("updated_at = ?")
    params.append(_ts())
    params.append(course_id)

    conn = _get_conn()
    cur = conn.execute(f"UPDATE training_courses SET {', '.join(sets)} WHERE id = ?", params)
    conn.commit()
    conn.close()
    return cur.rowcount > 0


def delete_course(course_id: int) -> bool:
    conn = _get_conn()
    cur = conn.execute("DELETE FROM training_courses WHERE id = ?", (course_id,))
    conn.commit()
    conn.close()
    return cur.rowcount > 0


# ================================================================
# RECORDS
# ================================================================

def get_records(user_id: str) -> List[Dict]:
    conn = _get_conn()
    rows = conn.execute(
        _RECORD_SELECT + " WHERE tr.user_id = ? ORDER BY tr.completed_on DESC, tr.id DESC",
        (user_id,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_record(record_id: int, user_id: str = None) -> Optional[Dict]:
    sql = _RECORD_SELECT + " WHERE tr.id = ?"
    params = [record_id]
    if user_id is not None:
        sql += " AND tr.user_id = ?"
        params.append(user_id)
    conn = _get_conn()
    row = conn.execute(sql, params).fetchone()
    conn.close()
    return dict(row) if row else None


def create_record(user_id: str, course_id: int, completed_on, expires_on=None,
                  certificate_url: str = None) -> int:
    conn = _get_conn()
    ts = _ts()
    cur = conn.execute("""
        INSERT INTO training_records
            (course_id, user_id, completed_on, expires_on, certificate_url, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (
        course_id, user_id,
        parse_date(completed_on).isoformat(),
        parse_date(expires_on).isoformat() if expires_on else None,
        certificate_url, ts, ts,
    ))
    record_id = cur.lastrowid
    conn.commit()
    conn.close()
    return record_id


def update_record(record_id: int, user_id: str, data: dict) -> bool:
    sets = []
    params = []
    for key in ("completed_on", "expires_on"):
        if key in data:
            value = parse_date(data[key])
            sets.append(f"{key} = ?")
            params.append(value.isoformat() if value else None)
    if "certificate_url" in data:
        sets.append("certificate_url = ?")
        params.append(data["certificate_url"])
    if not sets:
        return get_record(record_id, user_id) is not None
    sets.append("updated_at = ?")
    params.append(_ts())
    params.extend([record_id, user_id])

    conn = _get_conn()
    cur = conn.execute(
        f"UPDATE training_records SET {', '.join(sets)} WHERE id = ? AND user_id = ?", params
    )
    conn.commit()
    conn.close()
    return cur.rowcount > 0


def delete_record(record_id: int, user_id: str) -> bool:
    conn = _get_conn()
    cur = conn.execute(
        "DELETE FROM training_records WHERE id = ? AND user_id = ?", (record_id, user_id)
    )
    conn.commit()
    conn.close()
    return cur.rowcount > 0


def get_records_expiring_between(after: datetime.date, until: datetime.date) -> List[Dict]:
    """
    Records whose expiry falls in the half-open range (after, until],
    earliest expiry first. ISO date strings compare correctly as text.
    """
    conn = _get_conn()
    try:
        rows = conn.execute(
            _RECORD_SELECT + """
            WHERE tr.expires_on IS NOT NULL
              AND tr.expires_on > ?
              AND tr.expires_on <= ?
            ORDER BY tr.expires_on ASC, tr.id ASC
            """,
            (after.isoformat(), until.isoformat()),
        ).fetchall()
    finally:
        conn.close()
    return [dict(r) for r in rows]
