import logging

import config
import database
from errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _clean_name(name) -> str:
    name = (name or "").strip() if isinstance(name, str) else ""
    if len(name) < config.MIN_NAME_LENGTH:
        raise ValidationError(f"Введите корректное имя (не короче {config.MIN_NAME_LENGTH} символов).")
    return name


def _clean_telegram_id(telegram_id) -> str:
    telegram_id = str(telegram_id).strip() if telegram_id is not None else ""
    if not telegram_id:
        raise ValidationError("Укажите Telegram ID.")
    return telegram_id


async def register_employee(telegram_id, name: str, store=database) -> dict:
    """Регистрация при первом обращении к боту."""
    return await create_employee(name, telegram_id, store=store)


async def create_employee(name: str, telegram_id, store=database) -> dict:
    name = _clean_name(name)
    telegram_id = _clean_telegram_id(telegram_id)
    if await store.get_employee_by_telegram_id(telegram_id):
        raise ConflictError(f"Telegram ID {telegram_id} уже зарегистрирован.")
    employee = await store.create_employee(telegram_id, name)
    logger.info(f"Сотрудник {name} ({telegram_id}) зарегистрирован с id {employee['id']}.")
    return employee


async def get_employee(employee_id: int, store=database) -> dict:
    employee = await store.get_employee(employee_id)
    if not employee:
        raise NotFoundError("Сотрудник не найден.")
    return employee


async def list_employees(store=database) -> list[dict]:
    return await store.list_employees()


async def update_employee(employee_id: int, name: str, telegram_id, role: str | None = None,
                          active: bool | None = None, store=database) -> dict:
    name = _clean_name(name)
    telegram_id = _clean_telegram_id(telegram_id)
    await get_employee(employee_id, store=store)
    other = await store.get_employee_by_telegram_id(telegram_id)
    if other and other['id'] != employee_id:
        raise ConflictError(f"Telegram ID {telegram_id} уже занят другим сотрудником.")
    employee = await store.update_employee(
        employee_id, name, telegram_id, role or 'employee', True if active is None else active
    )
    if not employee:
        raise NotFoundError("Сотрудник не найден.")
    return employee


async def deactivate_employee(employee_id: int, store=database):
    await get_employee(employee_id, store=store)
    await store.set_employee_active_status(employee_id, False)
    logger.info(f"Сотрудник {employee_id} деактивирован.")


async def is_admin(telegram_id, store=database) -> bool:
    if str(telegram_id) in {str(admin_id) for admin_id in config.ADMIN_IDS}:
        return True
    employee = await store.get_employee_by_telegram_id(str(telegram_id))
    if not employee or not employee['active']:
        return False
    return await store.is_admin(employee['id'])


async def grant_admin(employee_id: int, permissions: str = 'read,write', store=database) -> dict:
    await get_employee(employee_id, store=store)
    grant = await store.add_admin(employee_id, permissions)
    logger.info(f"Сотруднику {employee_id} выданы права администратора ({permissions}).")
    return grant
