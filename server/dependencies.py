"""FastAPI dependencies for orchestrator access."""

from config.config import Config
from utils.logger import get_logger

logger = get_logger(__name__)


def get_orchestrator():
    """Dependency to get orchestrator instance (singleton pattern)."""
    from orchestrator.core import SymptomSearchOrchestrator

    if not hasattr(get_orchestrator, "_instance"):
        config = Config.from_env()
        logger.info(
            "Creating orchestrator",
            extra={"extra_fields": {"credentials": config.credential_summary()}},
        )
        get_orchestrator._instance = SymptomSearchOrchestrator(config)
    return get_orchestrator._instance
