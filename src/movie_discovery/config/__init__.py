from .settings import CONFIG_PATH_ENV, Settings, SettingsError, SettingsLoadResult, load_settings

__all__ = ["CONFIG_PATH_ENV", "Settings", "SettingsError", "SettingsLoadResult", "load_settings"]
