import logging
from datetime import date, datetime

import config
import database
from errors import NotFoundError, ValidationError
from timezones import local_date, now_utc

logger = logging.getLogger(__name__)


def parse_amount(text) -> float:
    try:
        amount = float(str(text).strip().replace(',', '.').lstrip('$'))
    except (TypeError, ValueError):
        raise ValidationError("Введите положительную сумму, например 25.50.")
    if amount <= 0 or amount != amount or amount == float('inf'):
        raise ValidationError("Введите положительную сумму, например 25.50.")
    return amount


def validate_sale(category, amount, sale_date, description=None) -> dict:
    if not category or amount is None or amount == "" or not sale_date:
        raise ValidationError("Укажите категорию, сумму и дату.")
    if category not in config.SALE_CATEGORIES:
        raise ValidationError('Категория должна быть "tip" или "ppv".')
    amount = parse_amount(amount)
    if isinstance(sale_date, str):
        try:
            sale_date = date.fromisoformat(sale_date)
        except ValueError:
            raise ValidationError("Дата должна быть в формате ГГГГ-ММ-ДД.")
    if isinstance(description, str):
        description = description.strip() or None
    return {'category': category, 'amount': amount, 'sale_date': sale_date, 'description': description}


async def _ensure_active_employee(employee_id, store):
    employee = await store.get_employee(employee_id) if employee_id else None
    if not employee or not employee['active']:
        raise ValidationError("Сотрудник не найден или деактивирован.")
    return employee


async def add_sale(employee_id: int, category: str, amount, sale_date, description: str | None = None, store=database) -> dict:
    cleaned = validate_sale(category, amount, sale_date, description)
    await _ensure_active_employee(employee_id, store)
    sale = await store.create_sale(employee_id, **cleaned)
    logger.info(f"Продажа {sale['id']}: сотрудник {employee_id}, {cleaned['category']} {cleaned['amount']:.2f}.")
    return sale


async def record_own_sale(telegram_id, category: str, amount, now: datetime | None = None, store=database) -> dict:
    """Продажа, которую сотрудник вносит сам через бота, датируется сегодняшним днем."""
    employee = await store.get_employee_by_telegram_id(str(telegram_id))
    if not employee or not employee['active']:
        raise NotFoundError("Ваш аккаунт не найден или деактивирован. Зарегистрируйтесь через /start.")
    today = local_date(now or now_utc(), config.WORK_TIMEZONE)
    return await add_sale(employee['id'], category, amount, today, store=store)


async def get_sale(sale_id: int, store=database) -> dict:
    sale = await store.get_sale(sale_id)
    if not sale:
        raise NotFoundError("Запись о продаже не найдена.")
    return sale


async def update_sale(sale_id: int, employee_id: int, category: str, amount, sale_date,
                      description: str | None = None, store=database) -> dict:
    cleaned = validate_sale(category, amount, sale_date, description)
    await _ensure_active_employee(employee_id, store)
    sale = await store.update_sale(sale_id, employee_id, **cleaned)
    if not sale:
        raise NotFoundError("Запись о продаже не найдена.")
    return sale


async def delete_sale(sale_id: int, store=database):
    await get_sale(sale_id, store=store)
    await store.delete_sale(sale_id)
    logger.info(f"Запись о продаже {sale_id} удалена.")


async def list_sales(employee_id: int | None = None, category: str | None = None, start_date: date | None = None,
                     end_date: date | None = None, limit: int = 50, offset: int = 0, store=database) -> dict:
    if category and category not in config.SALE_CATEGORIES:
        raise ValidationError('Категория должна быть "tip" или "ppv".')
    if limit < 1 or offset < 0:
        raise ValidationError("Некорректные параметры пагинации.")
    rows, total = await store.list_sales(
        employee_id=employee_id, category=category, start_date=start_date,
        end_date=end_date, limit=limit, offset=offset
    )
    return {'sales': rows, 'total': total, 'limit': limit, 'offset': offset}
