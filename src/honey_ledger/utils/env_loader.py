from pathlib import Path

from dotenv import load_dotenv

from honey_ledger.logging import get_logger

logger = get_logger(__name__)


def load_service_env(
    current_file_path: str,
    markers: tuple[str, ...] = ("pyproject.toml", "requirements.txt"),
    max_depth: int = 5,
) -> Path | None:
    """
    Walks up from the current file to find the project root (defined by markers)
    and loads the .env file found there.

    Stops at the first directory holding a marker so a parent checkout's .env
    is never picked up. Returns the loaded .env path, or None.
    """
    path = Path(current_file_path).resolve()

    for _ in range(max_depth):
        if any((path / marker).exists() for marker in markers):
            env_path = path / ".env"
            if env_path.exists():
                load_dotenv(env_path)
                logger.info("service_env_loaded", path=str(env_path))
                return env_path
            logger.debug("service_env_missing", root=str(path))
            return None

        parent = path.parent
        if parent == path:
            break
        path = parent

    logger.warning("service_root_not_found", start=current_file_path)
    return None
