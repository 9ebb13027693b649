from pathlib import Path

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    base_url: str = "http://localhost:6808"
    request_timeout_seconds: float = 30.0
    login_path: str = "/login"
    redirect_delay_seconds: float = 1.5
    session_file_path: str = ""
    resources_config_path: str = ""
    default_page_size: int = 10
    log_level: str = "INFO"
    log_redact_extra_patterns: str = ""

    model_config = {"env_prefix": "ADMIN_CONSOLE_"}


settings = Settings()

DEFAULT_RESOURCES: dict = {
    "resources": {
        "proxy-services": {"path": "/api/proxy-services"},
        "ai-models": {"path": "/api/ai-models", "notify_success": True},
        "model-sources": {"path": "/api/model-sources"},
        "tokens": {"path": "/api/tokens", "notify_success": True},
        "system-logs": {
            "path": "/api-logs/api/system-logs",
            "read_only": True,
            "purge_path": "/api-logs/api/system-logs/delete",
        },
        "request-logs": {
            "path": "/api-logs/request-logs",
            "read_only": True,
            "purge_path": "/api-logs/api/request-logs/delete",
        },
        "token-usage-logs": {"path": "/api/token-usage-logs", "read_only": True},
    }
}


def load_resources_config(path: str | None = None) -> dict:
    """Load the resource registry from YAML, or the built-in one when unset."""
    raw_path = settings.resources_config_path if path is None else path
    if not raw_path:
        return DEFAULT_RESOURCES
    config_path = Path(raw_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Resource config not found: {config_path}")
    with open(config_path) as f:
        return yaml.safe_load(f)


def get_resource_config(config: dict, name: str) -> dict:
    """Get the registry entry for a named resource."""
    resource = config.get("resources", {}).get(name)
    if not resource:
        raise KeyError(f"Resource not found in config: {name}")
    return {
        "path": resource["path"],
        "notify_success": bool(resource.get("notify_success", False)),
        "read_only": bool(resource.get("read_only", False)),
        "purge_path": resource.get("purge_path"),
    }
