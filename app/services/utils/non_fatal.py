import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class NonFatal:
    """Resultado de una acción secundaria cuyo fallo no afecta a la operación principal."""

    ok: bool
    error: Optional[str] = None


async def run_best_effort(
    description: str,
    action: Callable[[], Awaitable[Any]],
    on_error: Optional[Callable[[], Awaitable[Any]]] = None,
) -> NonFatal:
    """
    Ejecuta `action`; si falla registra el error, ejecuta `on_error` (p. ej. rollback)
    y devuelve NonFatal(ok=False). Nunca propaga la excepción.
    """
    try:
        await action()
    except Exception as e:
        logger.warning(f"Best-effort action failed ({description}): {e}")
        if on_error is not None:
            try:
                await on_error()
            except Exception as cleanup_error:
                logger.warning(f"Cleanup after '{description}' failed: {cleanup_error}")
        return NonFatal(ok=False, error=str(e))
    return NonFatal(ok=True)
