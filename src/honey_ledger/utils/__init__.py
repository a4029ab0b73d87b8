from honey_ledger.utils.settings_base import BaseSettings

__all__ = ["BaseSettings"]
