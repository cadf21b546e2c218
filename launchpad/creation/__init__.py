"""Creation — выпуск активов по подписанным запросам.

- Аутентификация и replay-защита запросов
- Pre-purchase создателя с разбиением на burn / vesting / остаток
- Маржа и комиссии с fallback в treasury
"""

from .orchestrator import AllocationPlan, CreationOrchestrator, CreationResult

__all__ = [
    "AllocationPlan",
    "CreationOrchestrator",
    "CreationResult",
]
