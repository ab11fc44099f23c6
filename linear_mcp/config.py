from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "server.yaml"

TRANSPORTS = ("stdio", "streamable-http")


def load_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Linear MCP config not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return data


@dataclass(frozen=True)
class Settings:
    """
    Process configuration, built once at startup and passed to everything
    that needs it.

    `access_token` is the Linear personal API key. When it is absent the
    server still starts, but every tool that talks to Linear fails until the
    OAuth flow is completed.
    """

    name: str = "linear-server"
    version: str = "1.1.0"
    log_level: str = "INFO"
    api_url: str = "https://api.linear.app/graphql"
    oauth_authorize_url: str = "https://linear.app/oauth/authorize"
    oauth_token_url: str = "https://api.linear.app/oauth/token"
    oauth_scopes: str = "read,write"
    access_token: Optional[str] = None
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 9000
    server_token: Optional[str] = None
    http_limits: Dict[str, Any] = field(default_factory=dict)


def load_settings(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build settings from defaults, the YAML config file and the environment,
    in increasing order of precedence.

    The config file is optional unless its path was given explicitly (either
    as `path` or through LINEAR_MCP_CONFIG).
    """
    env = os.environ if environ is None else environ

    explicit = path or (Path(env["LINEAR_MCP_CONFIG"]) if env.get("LINEAR_MCP_CONFIG") else None)
    data: Dict[str, Any] = {}
    if explicit is not None:
        data = load_config(explicit)
    elif DEFAULT_CONFIG_PATH.exists():
        data = load_config(DEFAULT_CONFIG_PATH)

    server_cfg = data.get("server", {}) or {}
    linear_cfg = data.get("linear", {}) or {}
    oauth_cfg = linear_cfg.get("oauth", {}) or {}
    defaults = Settings()

    transport = env.get("LINEAR_MCP_TRANSPORT") or server_cfg.get("transport", defaults.transport)
    transport = str(transport).strip().lower()
    if transport not in TRANSPORTS:
        raise ValueError(f"Invalid transport '{transport}'. Must be one of: {', '.join(TRANSPORTS)}")

    raw_port = env.get("MCP_SERVER_PORT") or server_cfg.get("port", defaults.port)
    try:
        port = int(raw_port)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid MCP_SERVER_PORT: {raw_port}. Must be an integer.")

    access_token = (env.get("LINEAR_ACCESS_TOKEN") or "").strip() or None
    server_token = (env.get("MCP_SERVER_TOKEN") or "").strip() or None

    return Settings(
        name=str(server_cfg.get("name", defaults.name)),
        version=str(server_cfg.get("version", defaults.version)),
        log_level=str(env.get("LINEAR_MCP_LOG_LEVEL") or server_cfg.get("log_level", defaults.log_level)).upper(),
        api_url=str(env.get("LINEAR_API_URL") or linear_cfg.get("api_url", defaults.api_url)),
        oauth_authorize_url=str(oauth_cfg.get("authorize_url", defaults.oauth_authorize_url)),
        oauth_token_url=str(oauth_cfg.get("token_url", defaults.oauth_token_url)),
        oauth_scopes=str(oauth_cfg.get("scopes", defaults.oauth_scopes)),
        access_token=access_token,
        transport=transport,
        host=str(env.get("MCP_SERVER_HOST") or server_cfg.get("host", defaults.host)),
        port=port,
        server_token=server_token,
        http_limits=dict(server_cfg.get("http_limits", {}) or {}),
    )
