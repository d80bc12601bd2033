from adminvault.core.config.manager import ConfigManager, parse_default_account
from adminvault.core.config.models import AdminVaultConfig, DefaultAccountConfig
from adminvault.core.config.paths import ConfigFsPaths

__all__ = ["AdminVaultConfig", "ConfigFsPaths", "ConfigManager", "DefaultAccountConfig", "parse_default_account"]
