import logging
import asyncpg
from datetime import datetime, date
from config import DB_USER, DB_PASSWORD, DB_NAME, DB_HOST
from errors import ConflictError

logger = logging.getLogger(__name__)

QUESTION_COLUMNS = "id, question, option_a, option_b, option_c, option_d, correct_answer, explanation, active, sequence, created_at"


async def get_db_connection():
    return await asyncpg.connect(
        user=DB_USER,
        password=DB_PASSWORD,
        database=DB_NAME,
        host=DB_HOST
    )


async def init_db():
    conn = await get_db_connection()
    try:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS employees (
                id SERIAL PRIMARY KEY,
                telegram_id TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                role TEXT NOT NULL DEFAULT 'employee',
                active BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS admins (
                id SERIAL PRIMARY KEY,
                employee_id INTEGER NOT NULL UNIQUE REFERENCES employees (id),
                permissions TEXT NOT NULL DEFAULT 'read,write'
            );
        """)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS clock_ins (
                id SERIAL PRIMARY KEY,
                employee_id INTEGER NOT NULL REFERENCES employees (id),
                clock_in_time TIMESTAMPTZ NOT NULL,
                clock_out_time TIMESTAMPTZ,
                date DATE NOT NULL,
                total_hours REAL,
                UNIQUE (employee_id, date)
            );
        """)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS sales (
                id SERIAL PRIMARY KEY,
                employee_id INTEGER NOT NULL REFERENCES employees (id),
                category TEXT NOT NULL CHECK (category IN ('tip', 'ppv')),
                amount DOUBLE PRECISION NOT NULL CHECK (amount > 0),
                date DATE NOT NULL,
                description TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS quiz_questions (
                id SERIAL PRIMARY KEY,
                question TEXT NOT NULL,
                option_a TEXT NOT NULL,
                option_b TEXT NOT NULL,
                option_c TEXT NOT NULL,
                option_d TEXT NOT NULL,
                correct_answer TEXT NOT NULL CHECK (correct_answer IN ('A', 'B', 'C', 'D')),
                explanation TEXT,
                active BOOLEAN NOT NULL DEFAULT TRUE,
                sequence INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS quiz_attempts (
                id SERIAL PRIMARY KEY,
                employee_id INTEGER NOT NULL REFERENCES employees (id),
                question_id INTEGER NOT NULL REFERENCES quiz_questions (id),
                selected_answer TEXT NOT NULL,
                correct BOOLEAN NOT NULL,
                attempt_number INTEGER NOT NULL,
                attempted_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS quiz_settings (
                id INTEGER PRIMARY KEY DEFAULT 1 CHECK (id = 1),
                start_date DATE NOT NULL,
                timezone TEXT NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """)
        logger.info("База данных PostgreSQL инициализирована.")
    finally:
        await conn.close()

# --- Сотрудники ---

async def get_employee_by_telegram_id(telegram_id: str) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow("SELECT * FROM employees WHERE telegram_id = $1", telegram_id)
        return dict(row) if row else None
    finally:
        await conn.close()


async def get_employee(employee_id: int) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            """
            SELECT e.*, (a.id IS NOT NULL) AS is_admin
            FROM employees e LEFT JOIN admins a ON a.employee_id = e.id
            WHERE e.id = $1
            """,
            employee_id
        )
        return dict(row) if row else None
    finally:
        await conn.close()


async def list_employees() -> list[dict]:
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(
            """
            SELECT e.*, (a.id IS NOT NULL) AS is_admin
            FROM employees e LEFT JOIN admins a ON a.employee_id = e.id
            ORDER BY e.created_at, e.id
            """
        )
        return [dict(row) for row in rows]
    finally:
        await conn.close()


async def count_employees() -> int:
    conn = await get_db_connection()
    try:
        return await conn.fetchval("SELECT COUNT(*) FROM employees")
    finally:
        await conn.close()


async def create_employee(telegram_id: str, name: str, role: str = 'employee') -> dict:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            "INSERT INTO employees (telegram_id, name, role, active) VALUES ($1, $2, $3, TRUE) RETURNING *",
            telegram_id, name, role
        )
        return dict(row)
    except asyncpg.UniqueViolationError:
        raise ConflictError(f"Telegram ID {telegram_id} уже зарегистрирован.")
    finally:
        await conn.close()


async def update_employee(employee_id: int, name: str, telegram_id: str, role: str, active: bool) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            """
            UPDATE employees SET name = $2, telegram_id = $3, role = $4, active = $5
            WHERE id = $1 RETURNING *
            """,
            employee_id, name, telegram_id, role, active
        )
        return dict(row) if row else None
    except asyncpg.UniqueViolationError:
        raise ConflictError(f"Telegram ID {telegram_id} уже занят другим сотрудником.")
    finally:
        await conn.close()


async def set_employee_active_status(employee_id: int, is_active: bool) -> bool:
    conn = await get_db_connection()
    try:
        status = await conn.execute(
            "UPDATE employees SET active = $1 WHERE id = $2",
            is_active, employee_id
        )
        return int(status.split()[-1]) > 0
    finally:
        await conn.close()


async def is_admin(employee_id: int) -> bool:
    conn = await get_db_connection()
    try:
        return await conn.fetchval("SELECT 1 FROM admins WHERE employee_id = $1", employee_id) is not None
    finally:
        await conn.close()


async def add_admin(employee_id: int, permissions: str = 'read,write') -> dict:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            """
            INSERT INTO admins (employee_id, permissions) VALUES ($1, $2)
            ON CONFLICT (employee_id) DO UPDATE SET permissions = EXCLUDED.permissions
            RETURNING *
            """,
            employee_id, permissions
        )
        return dict(row)
    finally:
        await conn.close()

# --- Смены ---

async def get_clock_in(clock_in_id: int) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow("SELECT * FROM clock_ins WHERE id = $1", clock_in_id)
        return dict(row) if row else None
    finally:
        await conn.close()


async def get_clock_in_for_date(employee_id: int, for_date: date) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            "SELECT * FROM clock_ins WHERE employee_id = $1 AND date = $2 LIMIT 1",
            employee_id, for_date
        )
        return dict(row) if row else None
    finally:
        await conn.close()


async def get_open_clock_ins_before(employee_id: int, before_date: date) -> list[dict]:
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(
            """
            SELECT * FROM clock_ins
            WHERE employee_id = $1 AND date < $2 AND clock_out_time IS NULL
            ORDER BY date
            """,
            employee_id, before_date
        )
        return [dict(row) for row in rows]
    finally:
        await conn.close()


async def create_clock_in(employee_id: int, clock_in_time: datetime, for_date: date) -> dict:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            "INSERT INTO clock_ins (employee_id, clock_in_time, date) VALUES ($1, $2, $3) RETURNING *",
            employee_id, clock_in_time, for_date
        )
        return dict(row)
    except asyncpg.UniqueViolationError:
        raise ConflictError(f"Смена сотрудника {employee_id} за {for_date.isoformat()} уже существует.")
    finally:
        await conn.close()


async def set_clock_out(clock_in_id: int, clock_out_time: datetime, total_hours: float) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            "UPDATE clock_ins SET clock_out_time = $2, total_hours = $3 WHERE id = $1 RETURNING *",
            clock_in_id, clock_out_time, total_hours
        )
        return dict(row) if row else None
    finally:
        await conn.close()


async def get_clock_ins_between(start_date: date, end_date: date, employee_id: int | None = None) -> list[dict]:
    sql = "SELECT * FROM clock_ins WHERE date BETWEEN $1 AND $2"
    params = [start_date, end_date]
    if employee_id is not None:
        sql += " AND employee_id = $3"
        params.append(employee_id)
    sql += " ORDER BY date, id"
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(sql, *params)
        return [dict(row) for row in rows]
    finally:
        await conn.close()

# --- Продажи ---

SALE_SELECT = """
    SELECT s.id, s.employee_id, e.name AS employee_name, s.category, s.amount,
           s.date, s.description, s.created_at
    FROM sales s LEFT JOIN employees e ON e.id = s.employee_id
"""


def _sales_filters(employee_id=None, category=None, start_date=None, end_date=None) -> tuple[str, list]:
    conditions, params = [], []
    if employee_id is not None:
        params.append(employee_id)
        conditions.append(f"s.employee_id = ${len(params)}")
    if category:
        params.append(category)
        conditions.append(f"s.category = ${len(params)}")
    if start_date:
        params.append(start_date)
        conditions.append(f"s.date >= ${len(params)}")
    if end_date:
        params.append(end_date)
        conditions.append(f"s.date <= ${len(params)}")
    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params


async def create_sale(employee_id: int, category: str, amount: float, sale_date: date, description: str | None) -> dict:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            """
            INSERT INTO sales (employee_id, category, amount, date, description)
            VALUES ($1, $2, $3, $4, $5) RETURNING *
            """,
            employee_id, category, amount, sale_date, description
        )
        return dict(row)
    finally:
        await conn.close()


async def get_sale(sale_id: int) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(SALE_SELECT + " WHERE s.id = $1", sale_id)
        return dict(row) if row else None
    finally:
        await conn.close()


async def update_sale(sale_id: int, employee_id: int, category: str, amount: float, sale_date: date, description: str | None) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            """
            UPDATE sales SET employee_id = $2, category = $3, amount = $4, date = $5, description = $6
            WHERE id = $1 RETURNING *
            """,
            sale_id, employee_id, category, amount, sale_date, description
        )
        return dict(row) if row else None
    finally:
        await conn.close()


async def delete_sale(sale_id: int) -> bool:
    conn = await get_db_connection()
    try:
        status = await conn.execute("DELETE FROM sales WHERE id = $1", sale_id)
        return int(status.split()[-1]) > 0
    finally:
        await conn.close()


async def list_sales(employee_id=None, category=None, start_date=None, end_date=None, limit: int = 50, offset: int = 0) -> tuple[list[dict], int]:
    where, params = _sales_filters(employee_id, category, start_date, end_date)
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(
            SALE_SELECT + where + f" ORDER BY s.created_at DESC, s.id DESC LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}",
            *params, limit, offset
        )
        total = await conn.fetchval("SELECT COUNT(*) FROM sales s" + where, *params)
        return [dict(row) for row in rows], total
    finally:
        await conn.close()


async def get_sales_between(start_date: date, end_date: date, employee_id: int | None = None) -> list[dict]:
    where, params = _sales_filters(employee_id=employee_id, start_date=start_date, end_date=end_date)
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(SALE_SELECT + where + " ORDER BY s.date, s.id", *params)
        return [dict(row) for row in rows]
    finally:
        await conn.close()

# --- Викторина ---

async def list_questions() -> list[dict]:
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(f"SELECT {QUESTION_COLUMNS} FROM quiz_questions ORDER BY sequence, id")
        return [dict(row) for row in rows]
    finally:
        await conn.close()


async def list_active_questions() -> list[dict]:
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(f"SELECT {QUESTION_COLUMNS} FROM quiz_questions WHERE active = TRUE ORDER BY sequence, id")
        return [dict(row) for row in rows]
    finally:
        await conn.close()


async def get_question(question_id: int) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(f"SELECT {QUESTION_COLUMNS} FROM quiz_questions WHERE id = $1", question_id)
        return dict(row) if row else None
    finally:
        await conn.close()


async def get_max_question_sequence() -> int:
    conn = await get_db_connection()
    try:
        return await conn.fetchval("SELECT COALESCE(MAX(sequence), 0) FROM quiz_questions")
    finally:
        await conn.close()


async def create_question(question: str, option_a: str, option_b: str, option_c: str, option_d: str,
                          correct_answer: str, explanation: str | None, sequence: int, active: bool = True) -> dict:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            f"""
            INSERT INTO quiz_questions
            (question, option_a, option_b, option_c, option_d, correct_answer, explanation, sequence, active)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING {QUESTION_COLUMNS}
            """,
            question, option_a, option_b, option_c, option_d, correct_answer, explanation, sequence, active
        )
        return dict(row)
    finally:
        await conn.close()


async def update_question(question_id: int, question: str, option_a: str, option_b: str, option_c: str, option_d: str,
                          correct_answer: str, explanation: str | None, sequence: int, active: bool) -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            f"""
            UPDATE quiz_questions SET
                question = $2, option_a = $3, option_b = $4, option_c = $5, option_d = $6,
                correct_answer = $7, explanation = $8, sequence = $9, active = $10
            WHERE id = $1
            RETURNING {QUESTION_COLUMNS}
            """,
            question_id, question, option_a, option_b, option_c, option_d, correct_answer, explanation, sequence, active
        )
        return dict(row) if row else None
    finally:
        await conn.close()


async def delete_question(question_id: int):
    conn = await get_db_connection()
    try:
        await conn.execute("DELETE FROM quiz_questions WHERE id = $1", question_id)
    finally:
        await conn.close()


async def set_question_active(question_id: int, active: bool):
    conn = await get_db_connection()
    try:
        await conn.execute("UPDATE quiz_questions SET active = $1 WHERE id = $2", active, question_id)
    finally:
        await conn.close()


async def question_has_attempts(question_id: int) -> bool:
    conn = await get_db_connection()
    try:
        return await conn.fetchval("SELECT 1 FROM quiz_attempts WHERE question_id = $1 LIMIT 1", question_id) is not None
    finally:
        await conn.close()


async def count_attempts(employee_id: int, question_id: int) -> int:
    conn = await get_db_connection()
    try:
        return await conn.fetchval(
            "SELECT COUNT(*) FROM quiz_attempts WHERE employee_id = $1 AND question_id = $2",
            employee_id, question_id
        )
    finally:
        await conn.close()


async def create_attempt(employee_id: int, question_id: int, selected_answer: str, correct: bool,
                         attempt_number: int, attempted_at: datetime) -> dict:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            """
            INSERT INTO quiz_attempts (employee_id, question_id, selected_answer, correct, attempt_number, attempted_at)
            VALUES ($1, $2, $3, $4, $5, $6) RETURNING *
            """,
            employee_id, question_id, selected_answer, correct, attempt_number, attempted_at
        )
        return dict(row)
    finally:
        await conn.close()


async def has_correct_attempt(employee_id: int, question_id: int | None, since: datetime, until: datetime) -> bool:
    sql = """
        SELECT 1 FROM quiz_attempts
        WHERE employee_id = $1 AND correct = TRUE
          AND attempted_at >= $2 AND attempted_at < $3
    """
    params = [employee_id, since, until]
    if question_id is not None:
        sql += " AND question_id = $4"
        params.append(question_id)
    conn = await get_db_connection()
    try:
        found = await conn.fetchval(sql + " LIMIT 1", *params)
        return found is not None
    finally:
        await conn.close()


async def list_attempts(employee_id: int, question_id: int) -> list[dict]:
    conn = await get_db_connection()
    try:
        rows = await conn.fetch(
            """
            SELECT id, employee_id, question_id, selected_answer, correct, attempt_number, attempted_at
            FROM quiz_attempts WHERE employee_id = $1 AND question_id = $2
            ORDER BY attempt_number
            """,
            employee_id, question_id
        )
        return [dict(row) for row in rows]
    finally:
        await conn.close()

# --- Настройки ротации ---

async def get_quiz_settings() -> dict | None:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow("SELECT start_date, timezone, updated_at FROM quiz_settings WHERE id = 1")
        return dict(row) if row else None
    finally:
        await conn.close()


async def upsert_quiz_settings(start_date: date, timezone: str) -> dict:
    conn = await get_db_connection()
    try:
        row = await conn.fetchrow(
            """
            INSERT INTO quiz_settings (id, start_date, timezone, updated_at) VALUES (1, $1, $2, NOW())
            ON CONFLICT (id) DO UPDATE SET
                start_date = EXCLUDED.start_date,
                timezone = EXCLUDED.timezone,
                updated_at = NOW()
            RETURNING start_date, timezone, updated_at
            """,
            start_date, timezone
        )
        logger.info(f"Настройки ротации викторины обновлены: старт {start_date.isoformat()}, пояс {timezone}.")
        return dict(row)
    finally:
        await conn.close()
