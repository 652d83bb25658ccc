from __future__ import annotations

from dataclasses import dataclass

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml

from tierboard.exceptions import TierboardException


class ConfigError(TierboardException):
    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid config value for {key}: {value!r} ({reason})")


_DEFAULTS: dict[str, object] = {
    "autosave": {
        "delay_ms": 500,
    },
    "persistence": {
        "url": "",
        "timeout": 10.0,
        "max_placements": 500,
    },
    "db": {
        "path": "./data/tierboard.db",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8765,
    },
}


@dataclass(frozen=True)
class BoardSettings:
    autosave_delay_ms: int
    persistence_url: str
    persistence_timeout: float
    max_placements: int
    db_path: str
    server_host: str
    server_port: int


def create_config(
    yaml_path: str = "tierboard.yaml",
    env_prefix: str = "TIERBOARD",
    defaults: dict[str, object] | None = None,
    *,
    overrides: dict[str, object] | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.
    Environment keys look like ``TIERBOARD__AUTOSAVE__DELAY_MS`` and always arrive as strings.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]
    if overrides:
        layers.insert(0, config_from_dict(overrides))
    return ConfigurationSet(*layers)


def _as_int(cfg: ConfigurationSet, key: str, *, minimum: int = 0) -> int:
    raw = cfg[key]
    try:
        value = int(str(raw))
    except ValueError as e:
        raise ConfigError(key, raw, "expected an integer") from e
    if value < minimum:
        raise ConfigError(key, raw, f"must be >= {minimum}")
    return value


def _as_float(cfg: ConfigurationSet, key: str) -> float:
    raw = cfg[key]
    try:
        value = float(str(raw))
    except ValueError as e:
        raise ConfigError(key, raw, "expected a number") from e
    if value <= 0:
        raise ConfigError(key, raw, "must be positive")
    return value


def load_board_settings(cfg: ConfigurationSet | None = None) -> BoardSettings:
    if cfg is None:
        cfg = create_config()
    return BoardSettings(
        autosave_delay_ms=_as_int(cfg, "autosave.delay_ms"),
        persistence_url=str(cfg["persistence.url"]),
        persistence_timeout=_as_float(cfg, "persistence.timeout"),
        max_placements=_as_int(cfg, "persistence.max_placements", minimum=1),
        db_path=str(cfg["db.path"]),
        server_host=str(cfg["server.host"]),
        server_port=_as_int(cfg, "server.port", minimum=1),
    )
