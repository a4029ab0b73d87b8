class ConfigError(Exception):
    """Base for every failure while loading ledger settings"""


class ConfigFileNotFoundError(ConfigError):
    pass


class ConfigParseError(ConfigError):
    """YAML that cannot be read, or whose top level is not a mapping"""


class ConfigValidationError(ConfigError):
    pass


class MissingEnvironmentVariableError(ConfigError):
    def __init__(self, var_name: str, key_path: str):
        self.var_name = var_name
        self.key_path = key_path
        super().__init__(f"${{{var_name}}} used at '{key_path}' is not set in .env or the environment")
