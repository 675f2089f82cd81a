"""
SafetyHub Accounts — User Profile Models & Query Helpers

Profiles mirror the identity provider's users: the provider owns sign-in,
this table owns display name, contact email and role.
"""
import os
import sqlite3
import datetime
from typing import Optional, List, Dict

DB_PATH = os.environ.get("SAFETYHUB_DB", "safetyhub.db")

ROLES = ("worker", "manager", "admin", "owner")
DEFAULT_ROLE = "worker"
ADMIN_ROLES = ("admin", "owner")
MANAGER_ROLES = ("admin", "owner", "manager")


def _get_conn():
    conn = sqlite3.connect(DB_PATH, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def _ts() -> str:
    return datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def init_accounts_schema():
    """Create the user_profiles table if it doesn't exist."""
    conn = _get_conn()
    c = conn.cursor()

    c.execute("""
        CREATE TABLE IF NOT EXISTS user_profiles (
            user_id TEXT PRIMARY KEY,
            full_name TEXT,
            email TEXT,
            role TEXT NOT NULL DEFAULT 'worker',
            created_at TEXT,
            updated_at TEXT
        )
    """)
    c.execute("CREATE INDEX IF NOT EXISTS idx_up_role ON user_profiles (role)")

    conn.commit()
    conn.close()


# --- Profiles ---

def get_user_profile(user_id: str) -> Optional[Dict]:
    conn = _get_conn()
    row = conn.execute(
        "SELECT * FROM user_profiles WHERE user_id = ?", (user_id,)
    ).fetchone()
    conn.close()
    return dict(row) if row else None


def ensure_user_profile(user_id: str, full_name: str = None, email: str = None) -> Dict:
    """
    Return the profile for user_id, creating it with the default role
    on first sign-in. An email supplied by the identity provider fills
    in a blank one but never overwrites an address the user set.
    """
    existing = get_user_profile(user_id)
    if existing:
        if email and not existing.get("email"):
            update_user_profile(user_id, {"email": email})
            existing["email"] = email
        existing["is_new"] = False
        return existing

    conn = _get_conn()
    ts = _ts()
    conn.execute("""
        INSERT INTO user_profiles (user_id, full_name, email, role, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
    """, (user_id, full_name or "Unknown User", email, DEFAULT_ROLE, ts, ts))
    conn.commit()
    conn.close()

    profile = get_user_profile(user_id)
    profile["is_new"] = True
    return profile


def update_user_profile(user_id: str, data: dict) -> bool:
    sets = []
    params = []
    for key in ("full_name", "email"):
        if key in data:
            sets.append(f"{key} = ?")
            params.append(data[key])
    if not sets:
        return False
    sets.append("updated_at = ?")
    params.append(_ts())
    params.append(user_id)

    conn = _get_conn()
    cur = conn.execute(f"UPDATE user_profiles SET {', '.join(sets)} WHERE user_id = ?", params)
    conn.commit()
    conn.close()
    return cur.rowcount > 0


def set_user_role(user_id: str, role: str) -> bool:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    conn = _get_conn()
    cur = conn.execute(
        "UPDATE user_profiles SET role = ?, updated_at = ? WHERE user_id = ?",
        (role, _ts(), user_id),
    )
    conn.commit()
    conn.close()
    return cur.rowcount > 0


def get_user_role(user_id: str) -> Optional[str]:
    profile = get_user_profile(user_id)
    return profile["role"] if profile else None


def get_users_by_roles(roles=MANAGER_ROLES) -> List[Dict]:
    placeholders = ", ".join("?" for _ in roles)
    conn = _get_conn()
    rows = conn.execute(
        f"SELECT * FROM user_profiles WHERE role IN ({placeholders}) ORDER BY full_name",
        tuple(roles),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]
