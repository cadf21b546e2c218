"""
Errors — Таксономия ошибок launchpad

Все ошибки наследуются от LaunchpadError. Любая ошибка внутри публичной
операции откатывает транзакцию целиком (см. Ledger.transaction).

Категории:
- AuthenticationError: неверная подпись / нет capability
- ReplayError: просроченный или повторный запрос
- ParameterError: некорректные параметры sale / vesting / процентов / кривой
- StateError: неверный lifecycle статус, не запущен, pause/blacklist
- FundsError: недостаточная оплата/баланс/маржа, slippage, deadline
"""


class LaunchpadError(Exception):
    """Базовая ошибка launchpad."""


# =============================================================================
# AUTHENTICATION
# =============================================================================


class AuthenticationError(LaunchpadError):
    """Ошибка аутентификации."""


class InvalidSignature(AuthenticationError):
    """Credential не соответствует хэшу запроса."""


class Unauthorized(AuthenticationError):
    """Вызывающий не обладает требуемой capability."""


# =============================================================================
# REPLAY / EXPIRY
# =============================================================================


class ReplayError(LaunchpadError):
    """Ошибка replay-защиты."""


class RequestExpired(ReplayError):
    """now > request.timestamp + expiry window."""


class RequestAlreadyProcessed(ReplayError):
    """request_id уже использован."""


# =============================================================================
# VALIDATION
# =============================================================================


class ParameterError(LaunchpadError):
    """Некорректные параметры запроса или вычисления."""


class InvalidSaleParameters(ParameterError):
    pass


class InvalidVestingParameters(ParameterError):
    pass


class InvalidDurationParameters(ParameterError):
    pass


class InvalidLaunchTime(ParameterError):
    pass


class InvalidCurve(ParameterError):
    """Нулевой invariant/резерв или вход вне домена кривой."""


class InvalidFeeRate(ParameterError):
    """Ставка комиссии вне [0, 10_000)."""


class InvalidDeadline(ParameterError):
    """Deadline дальше допустимого окна."""


class InvalidTradeAmount(ParameterError):
    """Нулевая сумма сделки или нулевой выход кривой."""


# =============================================================================
# STATE
# =============================================================================


class StateError(LaunchpadError):
    """Операция недопустима в текущем состоянии."""


class InvalidStatus(StateError):
    pass


class NotLaunched(StateError):
    pass


class AssetPaused(InvalidStatus):
    pass


class AssetBlacklisted(InvalidStatus):
    pass


class AssetNotFound(StateError):
    pass


class AssetAlreadyExists(StateError):
    pass


class ScheduleNotFound(StateError):
    pass


class ScheduleRevoked(StateError):
    pass


# =============================================================================
# FUNDS
# =============================================================================


class FundsError(LaunchpadError):
    """Ошибка денежных потоков."""


class InsufficientFee(FundsError):
    pass


class InsufficientBalance(FundsError):
    pass


class InsufficientMargin(FundsError):
    pass


class SlippageExceeded(FundsError):
    pass


class DeadlineExpired(FundsError):
    pass


class NoClaimableAmount(FundsError):
    pass


class TransferFailed(FundsError):
    """Получатель отклонил перевод (receiver hook бросил исключение)."""


# =============================================================================
# REENTRANCY
# =============================================================================


class ReentrantCall(LaunchpadError):
    """Повторный вход в state-mutating surface во время выплаты."""
