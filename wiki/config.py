from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

import yaml


@dataclass
class ServerConfig:
    """
    The server configuration.
    """

    port: int = 8000
    host: str = "0.0.0.0"
    reload: bool = False
    log_level: str = "info"
    secure_cookies: bool = False

    @staticmethod
    def from_dict(data: dict) -> Self:
        """
        Load the server configuration from a dictionary.
        """
        return ServerConfig(**data)


@dataclass
class Config:
    """
    The configuration for the wiki.
    """

    database: Path = field(default_factory=lambda: Path("wiki.db"))
    home_page: str = "home-page"
    cache_minutes: float = 30
    secret_key: str = ""
    antiforgery_max_age: int = 2 * 60 * 60
    debug: bool = False
    server: ServerConfig = field(default_factory=ServerConfig)

    @staticmethod
    def read(path: str | Path) -> Self:
        """
        Read the configuration from a file.

        Relative database paths are relative to the configuration file.
        """
        with open(path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file) or {}
        config = Config.from_dict(data)
        if not config.database.is_absolute():
            config.database = Path(path).parent / config.database
        return config

    @staticmethod
    def from_dict(data: dict) -> Self:
        """
        Load the configuration from a dictionary.
        """
        home_page = data.get("home_page", "home-page")
        if not home_page:
            raise ValueError("home_page can not be empty")
        return Config(
            database=Path(data.get("database", "wiki.db")),
            home_page=home_page,
            cache_minutes=data.get("cache_minutes", 30),
            secret_key=data.get("secret_key", "") or "",
            antiforgery_max_age=data.get("antiforgery_max_age", 2 * 60 * 60),
            debug=data.get("debug", False),
            server=ServerConfig.from_dict(data.get("server", {})),
        )
