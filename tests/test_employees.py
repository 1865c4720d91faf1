import asyncio
from datetime import datetime, timedelta, timezone

import pytest

import attendance
import employees
from errors import ConflictError, NotFoundError, ValidationError


def test_register_employee(store):
    employee = asyncio.run(employees.register_employee(555, "  Иван  ", store=store))
    assert employee['name'] == "Иван"
    assert employee['telegram_id'] == "555"
    assert employee['active'] is True
    assert employee['role'] == "employee"


@pytest.mark.parametrize("name", ["", " ", "a", None])
def test_register_rejects_short_name(store, name):
    with pytest.raises(ValidationError):
        asyncio.run(employees.register_employee(555, name, store=store))


def test_duplicate_telegram_id_conflicts(store, employee):
    with pytest.raises(ConflictError):
        asyncio.run(employees.create_employee("Другой", employee['telegram_id'], store=store))


def test_update_employee(store, employee):
    updated = asyncio.run(employees.update_employee(employee['id'], "Анна П.", "1002", role="manager", store=store))
    assert updated['telegram_id'] == "1002"
    assert updated['role'] == "manager"
    assert updated['active'] is True


def test_update_to_taken_telegram_id_conflicts(store, employee):
    other = asyncio.run(store.create_employee("2002", "Борис"))
    with pytest.raises(ConflictError):
        asyncio.run(employees.update_employee(other['id'], "Борис", employee['telegram_id'], store=store))


def test_update_unknown_employee(store):
    with pytest.raises(NotFoundError):
        asyncio.run(employees.update_employee(77, "Кто-то", "77", store=store))


def test_deactivation_keeps_history(store, employee):
    now = datetime(2024, 1, 10, 1, 0, tzinfo=timezone.utc)
    session = asyncio.run(attendance.clock_in("1001", now=now, require_quiz=False, store=store))
    asyncio.run(attendance.clock_out("1001", now=now + timedelta(hours=8), store=store))
    asyncio.run(employees.deactivate_employee(employee['id'], store=store))

    found = asyncio.run(employees.get_employee(employee['id'], store=store))
    assert found['active'] is False
    assert store.clock_ins[session.session_id]['total_hours'] == 8.0
    with pytest.raises(NotFoundError):
        asyncio.run(attendance.clock_in("1001", now=now + timedelta(days=1), require_quiz=False, store=store))


def test_deactivate_unknown_employee(store):
    with pytest.raises(NotFoundError):
        asyncio.run(employees.deactivate_employee(5, store=store))


def test_configured_admin_ids(store):
    assert asyncio.run(employees.is_admin(999, store=store)) is True
    assert asyncio.run(employees.is_admin("999", store=store)) is True


def test_admin_grant(store, employee):
    assert asyncio.run(employees.is_admin(1001, store=store)) is False
    grant = asyncio.run(employees.grant_admin(employee['id'], store=store))
    assert grant['permissions'] == "read,write"
    assert asyncio.run(employees.is_admin(1001, store=store)) is True
    assert asyncio.run(employees.get_employee(employee['id'], store=store))['is_admin'] is True


def test_inactive_admin_loses_access(store, employee):
    asyncio.run(employees.grant_admin(employee['id'], store=store))
    asyncio.run(employees.deactivate_employee(employee['id'], store=store))
    assert asyncio.run(employees.is_admin(1001, store=store)) is False
