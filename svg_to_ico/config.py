import json
import os
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "config/app_config.json"


class Config:
    _instance = None  # Singleton instance

    def __new__(cls, config_path=DEFAULT_CONFIG_PATH):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance.config_path = config_path
            cls._instance._load_config()
        return cls._instance

    @classmethod
    def reset(cls):
        """Forget the loaded configuration so the next Config() reloads it."""
        cls._instance = None

    def _load_config(self):
        """Loads configuration from .env and an optional JSON file."""
        load_dotenv()
        self.settings = {}
        try:
            with open(self.config_path, "r") as file:
                self.settings.update(json.load(file))
        except FileNotFoundError:
            pass

    def get(self, key, default=None):
        """Get a config value from settings or environment variables."""
        return self.settings.get(key, os.getenv(key, default))

    def get_float(self, key, default=None):
        value = self.get(key)
        if value is None or value == "":
            return default
        return float(value)

    def get_int(self, key, default=None):
        value = self.get(key)
        if value is None or value == "":
            return default
        return int(value)

    def get_sizes(self, key="ICO_SIZES", default=None):
        """
        Read a list of icon sizes.

        Accepts a JSON list (from the JSON file) or a comma separated string
        such as ``"16,32,48"`` (from the environment).
        """
        value = self.get(key)
        if value is None or value == "":
            return default
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                value = json.loads(value)
            else:
                value = [part for part in value.split(",") if part.strip()]
        return [int(size) for size in value]
