import logging
import urllib.parse
import hmac
import hashlib
import json
import attendance
import config
import database
import employees
import quiz
import sales
import stats
from fastapi import FastAPI, HTTPException, Header, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from typing import Any, List, Optional, Annotated, Union
from datetime import date, datetime
from errors import RequiresManualClockOutError, ServiceError
from models import AttemptResult, ClockInResult, ClockOutResult, CorrectionResult, Question

logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    'not_found': 404,
    'not_clocked_in': 404,
    'validation': 400,
    'conflict': 409,
    'already_clocked_in': 409,
    'requires_manual_intervention': 423,
    'quiz_required': 403,
}


class AuthRequest(BaseModel):
    initData: str


class AttemptRequest(BaseModel):
    question_id: int
    selected_answer: str


class CorrectionRequest(BaseModel):
    session_id: int
    clock_out_time: datetime


class EmployeeRequest(BaseModel):
    name: str
    telegram_id: str
    role: Optional[str] = None
    active: Optional[bool] = None

    @field_validator('telegram_id', mode='before')
    def telegram_id_as_text(cls, v):
        return str(v) if isinstance(v, int) else v


class AdminGrantRequest(BaseModel):
    permissions: str = 'read,write'


class SaleRequest(BaseModel):
    employee_id: int
    category: Optional[str] = None
    amount: Optional[Union[float, str]] = None
    sale_date: Optional[str] = None
    description: Optional[str] = None


class QuestionRequest(BaseModel):
    question: Optional[str] = None
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    sequence: Optional[int] = None
    active: Optional[bool] = None


class QuizSettingsRequest(BaseModel):
    start_date: Optional[str] = None
    timezone: Optional[str] = None


def get_store():
    return database


def parse_init_data(init_data: str, bot_token: str) -> dict:
    """Проверяет подпись initData Telegram WebApp и возвращает данные пользователя."""
    parsed_data = dict(urllib.parse.parse_qsl(init_data))
    hash_from_telegram = parsed_data.pop('hash', '')
    if not hash_from_telegram:
        raise ValueError("Хэш отсутствует в initData")
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(parsed_data.items()))
    secret_key = hmac.new("WebAppData".encode(), bot_token.encode(), hashlib.sha256).digest()
    calculated_hash = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(calculated_hash, hash_from_telegram):
        logger.warning("Проверка данных не пройдена. Хэш не совпал.")
        raise HTTPException(status_code=403, detail="Проверка данных не пройдена.")
    user_info = json.loads(parsed_data.get('user', '{}'))
    if not user_info.get('id'):
        raise ValueError("В initData нет пользователя")
    return user_info


async def get_validated_user(x_telegram_init_data: Annotated[str, Header()]) -> dict:
    try:
        return parse_init_data(x_telegram_init_data, config.BOT_TOKEN)
    except (ValueError, KeyError, json.JSONDecodeError) as e:
        logger.error(f"Ошибка валидации пользователя: {e}")
        raise HTTPException(status_code=400, detail="Некорректные данные для авторизации.")


Store = Annotated[Any, Depends(get_store)]
User = Annotated[dict, Depends(get_validated_user)]


async def get_admin_user(user: User, store: Store) -> dict:
    if not await employees.is_admin(user['id'], store=store):
        logger.warning(f"Пользователь {user['id']} запросил админ-API без прав.")
        raise HTTPException(status_code=403, detail="Доступ запрещен.")
    return user


Admin = Annotated[dict, Depends(get_admin_user)]

app = FastAPI(title="Clock-in Bot Admin Panel")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    content = {"detail": exc.message, "kind": exc.kind}
    if isinstance(exc, RequiresManualClockOutError):
        content.update({
            "session_id": exc.session_id,
            "session_date": exc.session_date.isoformat(),
            "clock_in_time": exc.clock_in_time.isoformat(),
            "hours_open": round(exc.hours_open, 2),
        })
    if status_code == 500:
        logger.error(f"Ошибка сервиса на {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} отклонен ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"Необработанная ошибка на {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Внутренняя ошибка сервера", "kind": "internal"})


@app.post("/api/validate_user")
async def validate_user_initial(request: AuthRequest, store: Store):
    user_info = await get_validated_user(request.initData)
    logger.info(f"Пользователь {user_info.get('id')} успешно прошел авторизацию в веб-панели.")
    return {"status": "ok", "user_id": user_info.get('id'), "is_admin": await employees.is_admin(user_info['id'], store=store)}

# --- Вопрос дня и приход/уход ---

@app.get("/api/quiz/today")
async def get_todays_question(user: User, store: Store):
    question = await quiz.get_todays_question(store=store)
    return {"question": Question.from_row(question) if question else None}


@app.post("/api/quiz/attempt", response_model=AttemptResult)
async def submit_attempt(request: AttemptRequest, user: User, store: Store):
    return await quiz.submit_attempt(user['id'], request.question_id, request.selected_answer, store=store)


@app.get("/api/quiz/attempts", response_model=List[dict])
async def get_my_attempts(question_id: int, user: User, store: Store):
    employee = await attendance.get_active_employee(user['id'], store=store)
    return await quiz.list_attempts(employee['id'], question_id, store=store)


@app.post("/api/clockin", response_model=ClockInResult)
async def clock_in(user: User, store: Store):
    return await attendance.clock_in(user['id'], store=store)


@app.post("/api/clockout", response_model=ClockOutResult)
async def clock_out(user: User, store: Store):
    return await attendance.clock_out(user['id'], store=store)


@app.post("/api/clockin/correct", response_model=CorrectionResult)
async def correct_clock_out(request: CorrectionRequest, user: Admin, store: Store):
    result = await attendance.correct_clock_out(request.session_id, request.clock_out_time, store=store)
    logger.info(f"Администратор {user['id']} исправил уход в смене {request.session_id}.")
    return result

# --- Сотрудники ---

@app.get("/api/admin/employees", response_model=List[dict])
async def get_employees(user: Admin, store: Store):
    return await employees.list_employees(store=store)


@app.post("/api/admin/employees", status_code=201)
async def add_employee(request: EmployeeRequest, user: Admin, store: Store):
    return await employees.create_employee(request.name, request.telegram_id, store=store)


@app.get("/api/admin/employees/{employee_id}")
async def get_employee_details(employee_id: int, user: Admin, store: Store):
    return await employees.get_employee(employee_id, store=store)


@app.put("/api/admin/employees/{employee_id}")
async def update_employee(employee_id: int, request: EmployeeRequest, user: Admin, store: Store):
    employee = await employees.update_employee(
        employee_id, request.name, request.telegram_id, role=request.role, active=request.active, store=store
    )
    logger.info(f"Сотрудник {employee_id} обновлен через веб-интерфейс.")
    return employee


@app.delete("/api/admin/employees/{employee_id}")
async def deactivate_employee(employee_id: int, user: Admin, store: Store):
    await employees.deactivate_employee(employee_id, store=store)
    return {"status": "deactivated", "id": employee_id}


@app.post("/api/admin/employees/{employee_id}/admin")
async def grant_admin(employee_id: int, request: AdminGrantRequest, user: Admin, store: Store):
    return await employees.grant_admin(employee_id, request.permissions, store=store)

# --- Продажи ---

@app.get("/api/admin/sales")
async def get_sales(
    user: Admin,
    store: Store,
    employee_id: Optional[int] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0
):
    return await sales.list_sales(employee_id, category, start_date, end_date, limit, offset, store=store)


@app.post("/api/admin/sales", status_code=201)
async def add_sale(request: SaleRequest, user: Admin, store: Store):
    return await sales.add_sale(
        request.employee_id, request.category, request.amount, request.sale_date, request.description, store=store
    )


@app.get("/api/admin/sales/{sale_id}")
async def get_sale(sale_id: int, user: Admin, store: Store):
    return await sales.get_sale(sale_id, store=store)


@app.put("/api/admin/sales/{sale_id}")
async def update_sale(sale_id: int, request: SaleRequest, user: Admin, store: Store):
    return await sales.update_sale(
        sale_id, request.employee_id, request.category, request.amount, request.sale_date, request.description,
        store=store
    )


@app.delete("/api/admin/sales/{sale_id}")
async def delete_sale(sale_id: int, user: Admin, store: Store):
    await sales.delete_sale(sale_id, store=store)
    return {"status": "deleted", "id": sale_id}

# --- Вопросы викторины ---
# /settings объявлен раньше /{question_id}, иначе путь уйдет в параметр

@app.get("/api/admin/quiz/settings")
async def get_quiz_settings(user: Admin, store: Store):
    return await quiz.get_quiz_settings(store=store)


@app.put("/api/admin/quiz/settings")
async def update_quiz_settings(request: QuizSettingsRequest, user: Admin, store: Store):
    settings = await quiz.update_quiz_settings(request.start_date, request.timezone, store=store)
    logger.info(f"Администратор {user['id']} изменил настройки ротации: старт {settings['start_date']}, {settings['timezone']}.")
    return settings


@app.get("/api/admin/quiz", response_model=List[dict])
async def get_questions(user: Admin, store: Store):
    return await quiz.list_questions(store=store)


@app.post("/api/admin/quiz", status_code=201)
async def add_question(request: QuestionRequest, user: Admin, store: Store):
    return await quiz.create_question(request.model_dump(), store=store)


@app.get("/api/admin/quiz/{question_id}")
async def get_question(question_id: int, user: Admin, store: Store):
    return await quiz.get_question(question_id, store=store)


@app.put("/api/admin/quiz/{question_id}")
async def update_question(question_id: int, request: QuestionRequest, user: Admin, store: Store):
    return await quiz.update_question(question_id, request.model_dump(), store=store)


@app.delete("/api/admin/quiz/{question_id}")
async def delete_question(question_id: int, user: Admin, store: Store):
    return {"status": await quiz.delete_question(question_id, store=store), "id": question_id}

# --- Статистика ---

@app.get("/api/admin/stats")
async def get_admin_stats(user: Admin, store: Store):
    return await stats.admin_stats(store=store)
