"""Ошибки сервисного слоя. У каждой есть машинно-проверяемый `kind` и текст для пользователя."""


class ServiceError(Exception):
    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    kind = "not_found"


class NotClockedInError(NotFoundError):
    kind = "not_clocked_in"

    def __init__(self, message: str = "Вы не отмечали приход сегодня. Сначала используйте /clockin."):
        super().__init__(message)


class ValidationError(ServiceError):
    kind = "validation"


class ConflictError(ServiceError):
    kind = "conflict"


class AlreadyClockedInError(ConflictError):
    kind = "already_clocked_in"

    def __init__(self, message: str = "Вы уже отмечали приход сегодня."):
        super().__init__(message)


class RequiresManualInterventionError(ServiceError):
    kind = "requires_manual_intervention"


class RequiresManualClockOutError(RequiresManualInterventionError):
    """Незакрытая смена с прошлого дня открыта дольше порога."""

    def __init__(self, session_id: int, session_date, clock_in_time, hours_open: float):
        self.session_id = session_id
        self.session_date = session_date
        self.clock_in_time = clock_in_time
        self.hours_open = hours_open
        super().__init__(
            f"Вы забыли отметить уход за {session_date.strftime('%d.%m.%Y')}: "
            f"смена открыта уже {hours_open:.1f} ч. "
            "Попросите администратора исправить время ухода, затем отметьте приход снова."
        )


class QuizNotPassedError(ServiceError):
    kind = "quiz_required"

    def __init__(self, message: str = "Сначала правильно ответьте на вопрос дня."):
        super().__init__(message)
