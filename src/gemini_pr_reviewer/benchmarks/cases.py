"""
Benchmark Cases

Seeded pull requests with known issues. Each diff adds a single new file so
expected line numbers are line numbers of the source below.
"""

from typing import List, Optional

from ..models.review import Priority
from .models import BenchmarkCase, ExpectedFinding


def new_file_diff(path: str, source: str) -> str:
    """Unified diff adding one file with the given content"""
    lines = source.splitlines()
    header = [
        f"diff --git a/{path} b/{path}",
        "new file mode 100644",
        "index 0000000..1111111",
        "--- /dev/null",
        f"+++ b/{path}",
        f"@@ -0,0 +1,{len(lines)} @@",
    ]
    return "\n".join(header + [f"+{line}" for line in lines]) + "\n"


SQL_INJECTION_SOURCE = """\
import sqlite3

DB_PATH = "app.db"


def get_connection():
    return sqlite3.connect(DB_PATH)


def find_users_by_name(name):
    conn = get_connection()
    query = f"SELECT id, name, email FROM users WHERE name LIKE '%{name}%'"
    return conn.execute(query).fetchall()


def get_user_by_id(user_id):
    conn = get_connection()
    row = conn.execute("SELECT id, name, email FROM users WHERE id = ?", (user_id,)).fetchone()
    return row


def count_active_users():
    conn = get_connection()
    return conn.execute("SELECT COUNT(*) FROM users WHERE active = 1").fetchone()[0]
"""

NULL_REFERENCE_SOURCE = """\
from dataclasses import dataclass
from typing import Optional

from .database import db


@dataclass
class Order:
    id: int
    customer_id: int
    total: float


def find_order(order_id: int) -> Optional[Order]:
    return db.orders.get(order_id)


def find_customer(customer_id: int):
    return db.customers.get(customer_id)


def order_summary(order_id: int) -> str:
    order = find_order(order_id)
    customer = find_customer(order.customer_id)
    return f"Order #{order.id}: {customer.name} ${order.total:.2f}"


def order_total(order_id: int) -> float:
    order = find_order(order_id)
    return order.total if order else 0.0
"""

N_PLUS_ONE_SOURCE = """\
from .database import db


def activity_report():
    users = db.query("SELECT id, name FROM users WHERE active = 1")
    report = []

    for user in users:
        posts = db.query(
            "SELECT id, title FROM posts WHERE user_id = ? ORDER BY created_at DESC",
            (user["id"],),
        )
        report.append({
            "user": user["name"],
            "latest_post": posts[0]["title"] if posts else "No posts",
            "post_count": len(posts),
        })

    return report
"""

CLEAN_CODE_SOURCE = r"""import re


def capitalize(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def slugify(text: str) -> str:
    text = re.sub(r"[^a-z0-9\s-]", "", text.lower().strip())
    return re.sub(r"[\s_-]+", "-", text)


def truncate(text: str, max_length: int, suffix: str = "...") -> str:
    if max_length < 0:
        raise ValueError("max_length must be non-negative")
    if len(text) <= max_length:
        return text
    return text[:max(0, max_length - len(suffix))] + suffix


def count_occurrences(text: str, substring: str) -> int:
    if not substring:
        return 0
    return text.count(substring)
"""

MIXED_ISSUES_SOURCE = '''\
import sqlite3
import subprocess

ADMIN_PASSWORD = "super_secret_admin_123"


def authenticate_admin(password):
    return password == ADMIN_PASSWORD


def search_users(conn: sqlite3.Connection, term):
    sql = f"SELECT * FROM users WHERE name LIKE '%{term}%' OR email LIKE '%{term}%'"
    return conn.execute(sql).fetchall()


def run_diagnostic(command):
    result = subprocess.run(command, shell=True, capture_output=True, text=True)
    if result.returncode != 0:
        raise RuntimeError(result.stderr)
    return result.stdout


def user_profile_html(user):
    return f"""
    <div class="profile">
      <h2>{user['name']}</h2>
      <p>{user['bio']}</p>
    </div>
    """


def delete_user(conn, user_id):
    conn.execute("DELETE FROM comments WHERE user_id = ?", (user_id,))
    conn.execute("DELETE FROM posts WHERE user_id = ?", (user_id,))
    conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
'''


SQL_INJECTION = BenchmarkCase(
    id="sql-injection",
    name="SQL Injection via String Interpolation",
    pr_title="Add user search helper",
    pr_body="Adds a helper to search users by name from the database.",
    diff=new_file_diff("src/db.py", SQL_INJECTION_SOURCE),
    expected_findings=[
        ExpectedFinding(
            file_path="src/db.py",
            line=12,
            keywords=["sql", "injection", "interpolation", "parameterized", "sanitize"],
            priority=Priority.HIGH,
            description="SQL injection via f-string interpolation in find_users_by_name",
        ),
    ],
)

NULL_REFERENCE = BenchmarkCase(
    id="null-reference",
    name="Attribute Access on Optional Return",
    pr_title="Add order summary feature",
    pr_body="Shows order details with customer info for the dashboard.",
    diff=new_file_diff("src/orders.py", NULL_REFERENCE_SOURCE),
    expected_findings=[
        ExpectedFinding(
            file_path="src/orders.py",
            line=24,
            keywords=["none", "null", "optional", "check", "guard", "attributeerror"],
            priority=Priority.HIGH,
            description="order may be None when customer_id is read in order_summary",
        ),
    ],
)

N_PLUS_ONE = BenchmarkCase(
    id="n-plus-one",
    name="N+1 Query in Loop",
    pr_title="Add user activity report",
    pr_body="Generates a report of recent user activity including their latest posts.",
    diff=new_file_diff("src/report.py", N_PLUS_ONE_SOURCE),
    expected_findings=[
        ExpectedFinding(
            file_path="src/report.py",
            line=9,
            keywords=["n+1", "loop", "query", "batch", "performance", "join"],
            priority=Priority.HIGH,
            description="Posts are queried once per user inside the loop",
        ),
    ],
)

CLEAN_CODE = BenchmarkCase(
    id="clean-code",
    name="Clean Utility Functions (No Issues Expected)",
    pr_title="Add string utility helpers",
    pr_body="Adds small utility functions for common string operations.",
    diff=new_file_diff("src/utils/strings.py", CLEAN_CODE_SOURCE),
    expected_findings=[],
    max_false_positives=1,
)

MIXED_ISSUES = BenchmarkCase(
    id="mixed-issues",
    name="Multiple Security Issues",
    review_mode="security",
    pr_title="Add admin dashboard backend",
    pr_body="Backend helpers for the admin dashboard with user management and diagnostics.",
    diff=new_file_diff("src/admin.py", MIXED_ISSUES_SOURCE),
    expected_findings=[
        ExpectedFinding(
            file_path="src/admin.py",
            line=12,
            keywords=["sql", "injection", "interpolation", "parameterized"],
            priority=Priority.HIGH,
            description="SQL injection via f-string interpolation in search_users",
        ),
        ExpectedFinding(
            file_path="src/admin.py",
            line=17,
            keywords=["command", "injection", "shell", "subprocess", "arbitrary"],
            priority=Priority.HIGH,
            description="Command injection through shell=True in run_diagnostic",
        ),
        ExpectedFinding(
            file_path="src/admin.py",
            line=4,
            keywords=["password", "hardcoded", "plaintext", "secret", "credential"],
            priority=Priority.HIGH,
            description="Hardcoded admin password in source code",
        ),
        ExpectedFinding(
            file_path="src/admin.py",
            line=26,
            keywords=["xss", "escape", "sanitize", "html", "injection"],
            priority=Priority.MEDIUM,
            description="Unescaped user fields interpolated into HTML in user_profile_html",
        ),
    ],
)

ALL_CASES: List[BenchmarkCase] = [
    SQL_INJECTION,
    NULL_REFERENCE,
    N_PLUS_ONE,
    CLEAN_CODE,
    MIXED_ISSUES,
]


def get_case(case_id: str) -> Optional[BenchmarkCase]:
    for case in ALL_CASES:
        if case.id == case_id:
            return case
    return None
