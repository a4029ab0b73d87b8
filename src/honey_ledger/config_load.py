import os
from pathlib import Path

from honey_ledger.config_schema import Settings
from honey_ledger.utils.config_loader import ConfigLoader
from honey_ledger.utils.env_loader import load_service_env

CONFIG_ENV_VAR = "HONEY_LEDGER_CONFIG"


def load_settings(
    service_root: str | Path | None = None,
    *,
    cli_config_path: str | None = None,
) -> Settings:
    """
    Load settings from config/*.yaml under ``service_root``.

    ``ENV`` selects the dev/prod override file; any other value loads only
    default.yaml. Without ``service_root`` the project checkout is assumed.
    """
    load_service_env(__file__)
    root = Path(service_root) if service_root else Path(__file__).resolve().parents[2]
    env = os.getenv("ENV")
    return ConfigLoader(service_root=root).load(
        schema=Settings,
        env=env if env in {"dev", "prod"} else None,
        cli_config_path=cli_config_path,
        config_env_var=CONFIG_ENV_VAR,
    )
