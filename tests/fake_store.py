"""In-memory store with the same functions as database.py."""
import asyncio
from datetime import datetime, timezone

from errors import ConflictError


def _now():
    return datetime.now(timezone.utc)


class FakeStore:
    def __init__(self):
        self.employees = {}
        self.admins = {}
        self.clock_ins = {}
        self.sales = {}
        self.questions = {}
        self.attempts = {}
        self.settings = None
        self._ids = {}

    def _next_id(self, table):
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    # --- employees ---

    def _with_admin(self, employee):
        return {**employee, 'is_admin': employee['id'] in self.admins}

    async def get_employee_by_telegram_id(self, telegram_id):
        for employee in self.employees.values():
            if employee['telegram_id'] == telegram_id:
                return dict(employee)
        return None

    async def get_employee(self, employee_id):
        employee = self.employees.get(employee_id)
        return self._with_admin(employee) if employee else None

    async def list_employees(self):
        return [self._with_admin(e) for e in self.employees.values()]

    async def count_employees(self):
        return len(self.employees)

    async def create_employee(self, telegram_id, name, role='employee'):
        if await self.get_employee_by_telegram_id(telegram_id):
            raise ConflictError(f"Telegram ID {telegram_id} уже зарегистрирован.")
        employee_id = self._next_id('employees')
        self.employees[employee_id] = {
            'id': employee_id, 'telegram_id': telegram_id, 'name': name,
            'role': role, 'active': True, 'created_at': _now(),
        }
        return dict(self.employees[employee_id])

    async def update_employee(self, employee_id, name, telegram_id, role, active):
        employee = self.employees.get(employee_id)
        if not employee:
            return None
        employee.update(name=name, telegram_id=telegram_id, role=role, active=active)
        return dict(employee)

    async def set_employee_active_status(self, employee_id, is_active):
        if employee_id not in self.employees:
            return False
        self.employees[employee_id]['active'] = is_active
        return True

    async def is_admin(self, employee_id):
        return employee_id in self.admins

    async def add_admin(self, employee_id, permissions='read,write'):
        grant = self.admins.get(employee_id) or {'id': self._next_id('admins'), 'employee_id': employee_id}
        grant['permissions'] = permissions
        self.admins[employee_id] = grant
        return dict(grant)

    # --- clock-ins ---

    async def get_clock_in(self, clock_in_id):
        session = self.clock_ins.get(clock_in_id)
        return dict(session) if session else None

    async def get_clock_in_for_date(self, employee_id, for_date):
        for session in self.clock_ins.values():
            if session['employee_id'] == employee_id and session['date'] == for_date:
                return dict(session)
        return None

    async def get_open_clock_ins_before(self, employee_id, before_date):
        rows = [
            dict(s) for s in self.clock_ins.values()
            if s['employee_id'] == employee_id and s['date'] < before_date and s['clock_out_time'] is None
        ]
        return sorted(rows, key=lambda s: s['date'])

    async def create_clock_in(self, employee_id, clock_in_time, for_date):
        if await self.get_clock_in_for_date(employee_id, for_date):
            raise ConflictError(f"Смена сотрудника {employee_id} за {for_date.isoformat()} уже существует.")
        session_id = self._next_id('clock_ins')
        self.clock_ins[session_id] = {
            'id': session_id, 'employee_id': employee_id, 'clock_in_time': clock_in_time,
            'clock_out_time': None, 'date': for_date, 'total_hours': None,
        }
        return dict(self.clock_ins[session_id])

    async def set_clock_out(self, clock_in_id, clock_out_time, total_hours):
        session = self.clock_ins.get(clock_in_id)
        if not session:
            return None
        session.update(clock_out_time=clock_out_time, total_hours=total_hours)
        return dict(session)

    async def get_clock_ins_between(self, start_date, end_date, employee_id=None):
        return [
            dict(s) for s in self.clock_ins.values()
            if start_date <= s['date'] <= end_date and (employee_id is None or s['employee_id'] == employee_id)
        ]

    # --- sales ---

    def _sale_row(self, sale):
        employee = self.employees.get(sale['employee_id'])
        return {**sale, 'employee_name': employee['name'] if employee else None}

    def _filter_sales(self, employee_id=None, category=None, start_date=None, end_date=None):
        return [
            self._sale_row(s) for s in self.sales.values()
            if (employee_id is None or s['employee_id'] == employee_id)
            and (not category or s['category'] == category)
            and (not start_date or s['date'] >= start_date)
            and (not end_date or s['date'] <= end_date)
        ]

    async def create_sale(self, employee_id, category, amount, sale_date, description):
        sale_id = self._next_id('sales')
        self.sales[sale_id] = {
            'id': sale_id, 'employee_id': employee_id, 'category': category, 'amount': amount,
            'date': sale_date, 'description': description, 'created_at': _now(),
        }
        return dict(self.sales[sale_id])

    async def get_sale(self, sale_id):
        sale = self.sales.get(sale_id)
        return self._sale_row(sale) if sale else None

    async def update_sale(self, sale_id, employee_id, category, amount, sale_date, description):
        sale = self.sales.get(sale_id)
        if not sale:
            return None
        sale.update(employee_id=employee_id, category=category, amount=amount, date=sale_date, description=description)
        return dict(sale)

    async def delete_sale(self, sale_id):
        return self.sales.pop(sale_id, None) is not None

    async def list_sales(self, employee_id=None, category=None, start_date=None, end_date=None, limit=50, offset=0):
        rows = self._filter_sales(employee_id, category, start_date, end_date)
        rows.sort(key=lambda s: s['id'], reverse=True)
        return rows[offset:offset + limit], len(rows)

    async def get_sales_between(self, start_date, end_date, employee_id=None):
        return self._filter_sales(employee_id=employee_id, start_date=start_date, end_date=end_date)

    # --- quiz ---

    def _ordered(self, questions):
        return sorted((dict(q) for q in questions), key=lambda q: (q['sequence'], q['id']))

    async def list_questions(self):
        return self._ordered(self.questions.values())

    async def list_active_questions(self):
        return self._ordered(q for q in self.questions.values() if q['active'])

    async def get_question(self, question_id):
        question = self.questions.get(question_id)
        return dict(question) if question else None

    async def get_max_question_sequence(self):
        return max((q['sequence'] for q in self.questions.values()), default=0)

    async def create_question(self, question, option_a, option_b, option_c, option_d,
                              correct_answer, explanation, sequence, active=True):
        question_id = self._next_id('questions')
        self.questions[question_id] = {
            'id': question_id, 'question': question, 'option_a': option_a, 'option_b': option_b,
            'option_c': option_c, 'option_d': option_d, 'correct_answer': correct_answer,
            'explanation': explanation, 'active': active, 'sequence': sequence, 'created_at': _now(),
        }
        return dict(self.questions[question_id])

    async def update_question(self, question_id, question, option_a, option_b, option_c, option_d,
                              correct_answer, explanation, sequence, active):
        row = self.questions.get(question_id)
        if not row:
            return None
        row.update(
            question=question, option_a=option_a, option_b=option_b, option_c=option_c, option_d=option_d,
            correct_answer=correct_answer, explanation=explanation, sequence=sequence, active=active,
        )
        return dict(row)

    async def delete_question(self, question_id):
        self.questions.pop(question_id, None)

    async def set_question_active(self, question_id, active):
        if question_id in self.questions:
            self.questions[question_id]['active'] = active

    async def question_has_attempts(self, question_id):
        return any(a['question_id'] == question_id for a in self.attempts.values())

    async def count_attempts(self, employee_id, question_id):
        return len([
            a for a in self.attempts.values()
            if a['employee_id'] == employee_id and a['question_id'] == question_id
        ])

    async def create_attempt(self, employee_id, question_id, selected_answer, correct, attempt_number, attempted_at):
        attempt_id = self._next_id('attempts')
        self.attempts[attempt_id] = {
            'id': attempt_id, 'employee_id': employee_id, 'question_id': question_id,
            'selected_answer': selected_answer, 'correct': correct,
            'attempt_number': attempt_number, 'attempted_at': attempted_at,
        }
        return dict(self.attempts[attempt_id])

    async def has_correct_attempt(self, employee_id, question_id, since, until):
        return any(
            a['employee_id'] == employee_id and a['correct'] and since <= a['attempted_at'] < until
            and (question_id is None or a['question_id'] == question_id)
            for a in self.attempts.values()
        )

    async def list_attempts(self, employee_id, question_id):
        rows = [
            dict(a) for a in self.attempts.values()
            if a['employee_id'] == employee_id and a['question_id'] == question_id
        ]
        return sorted(rows, key=lambda a: a['attempt_number'])

    # --- settings ---

    async def get_quiz_settings(self):
        return dict(self.settings) if self.settings else None

    async def upsert_quiz_settings(self, start_date, timezone_id):
        self.settings = {'start_date': start_date, 'timezone': timezone_id, 'updated_at': _now()}
        return dict(self.settings)


def make_questions(store, count, start_sequence=1):
    created = []
    for i in range(count):
        created.append(asyncio.run(store.create_question(
            question=f"Вопрос {i + 1}?",
            option_a="a", option_b="b", option_c="c", option_d="d",
            correct_answer="B", explanation=f"Пояснение {i + 1}",
            sequence=start_sequence + i,
        )))
    return created
