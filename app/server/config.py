"""Document store configuration."""

import dataclasses
import logging.config
import os
from pathlib import Path

import dotenv
from singleton import Singleton

dotenv.load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default=default).lower() == "true"


@dataclasses.dataclass
class Settings(metaclass=Singleton):
    """Document store config settings."""

    project_name: str = os.getenv("PROJECT_NAME", "docstore")
    base_dir: Path = Path(__file__).resolve().parent.parent
    debug: bool = _env_bool("DEBUG")

    mongodb_uri: str = os.getenv("MONGODB_URI", "")
    mongodb_host: str = os.getenv("MONGODB_HOST", "localhost")
    mongodb_port: int = int(os.getenv("MONGODB_PORT", default=27017))
    mongodb_username: str = os.getenv("MONGODB_USERNAME", "")
    mongodb_password: str = os.getenv("MONGODB_PASSWORD", "")
    mongodb_tls: bool = _env_bool("MONGODB_TLS")
    mongodb_tls_allow_invalid_hostnames: bool = _env_bool(
        "MONGODB_TLS_ALLOW_INVALID_HOSTNAMES"
    )
    mongodb_database: str = os.getenv("MONGODB_DATABASE", "docstore")

    collection_prefix: str = os.getenv("DOCSTORE_COLLECTION_PREFIX", "docstore")
    root_tenant: str = os.getenv("DOCSTORE_ROOT_TENANT", "root")
    fail_on_write_errors: bool = _env_bool("DOCSTORE_FAIL_ON_WRITE_ERRORS", "true")
    page_limit: int = int(os.getenv("DOCSTORE_PAGE_LIMIT", default=30)) or 30

    @classmethod
    def get_log_config(cls, console_level: str = "INFO", **kwargs: object) -> dict:
        """
        Get the log configuration.

        Args:
            console_level: The level of the console log.
            **kwargs: Additional keyword arguments.

        """
        log_config = {
            "formatters": {
                "standard": {
                    "format": (
                        "[{levelname} {name} : {filename}:{lineno} : {asctime} "
                        "-> {funcName:10}] {message}"
                    ),
                    "style": "{",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": console_level,
                    "formatter": "standard",
                },
                "file": {
                    "class": "logging.FileHandler",
                    "level": "INFO",
                    "formatter": "standard",
                    "filename": str(cls.base_dir / "logs" / "docstore.log"),
                },
            },
            "loggers": {
                "": {
                    "handlers": [
                        "console",
                        "file",
                    ],
                    "level": console_level,
                    "propagate": True,
                },
                "pymongo": {"level": "WARNING"},
            },
            "version": 1,
        }
        return log_config

    @classmethod
    def config_logger(cls) -> None:
        """Configure the logger."""

        log_config = cls.get_log_config("DEBUG" if cls.debug else "INFO")

        if log_config["handlers"].get("file"):
            (getattr(cls, "base_dir", Path(".")) / "logs").mkdir(
                parents=True, exist_ok=True
            )

        logging.config.dictConfig(log_config)
