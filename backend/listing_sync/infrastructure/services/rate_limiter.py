"""
SOURCE RATE LIMITER - Orçamento de chamadas por fonte
=====================================================

Janela fixa de 60 segundos, independente por fonte (zillow, realtor, mls).

Regras:
- Sem janela ou janela expirada -> reinicia com count=1 e libera
- count < limite -> incrementa e libera
- Caso contrário -> bloqueia (sem fila, sem retry imediato)

O estado vive em memória e pertence ao event loop que chama o limiter.
Como check_and_consume() é síncrono, não há interleaving entre corrotinas.
Para múltiplas instâncias, trocar por Redis.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


WINDOW_SECONDS = 60


@dataclass
class RateLimiterState:
    """Estado de uma fonte dentro da janela atual."""
    count: int
    window_reset_at: float

    def to_dict(self) -> dict:
        return {"count": self.count, "window_reset_at": self.window_reset_at}


class SourceRateLimiter:
    """
    Rate limiter de janela fixa por chave.

    Uso:
        limiter = SourceRateLimiter(requests_per_minute=5)
        if limiter.check_and_consume("zillow"):
            ...
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        clock: Optional[Callable[[], float]] = None,
        window_seconds: int = WINDOW_SECONDS,
    ):
        if requests_per_minute < 1:
            raise ValueError("requests_per_minute must be >= 1")
        self.requests_per_minute = requests_per_minute
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._states: Dict[str, RateLimiterState] = {}

    def check_and_consume(self, source_key: str) -> bool:
        """Consome uma chamada do orçamento da fonte. False = pular este tick."""
        now = self._clock()
        state = self._states.get(source_key)

        if state is None or now > state.window_reset_at:
            self._states[source_key] = RateLimiterState(
                count=1,
                window_reset_at=now + self.window_seconds,
            )
            return True

        if state.count >= self.requests_per_minute:
            return False

        state.count += 1
        return True

    def status(self, source_key: str) -> Optional[dict]:
        state = self._states.get(source_key)
        return state.to_dict() if state else None

    def reset(self) -> None:
        self._states.clear()
