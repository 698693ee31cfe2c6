from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .context import ExecutionContext
from .errors import ConfigError
from .lib.env import PATHS
from .reconcile import reconcile_file_content

logger = logging.getLogger(__name__)

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}

# Older config files spell this key without the second "O".
LEGACY_ALIASES = {"TTY_AUTLOGIN": "TTY_AUTOLOGIN"}


@dataclass(frozen=True)
class DesiredValue:
    key: str
    kind: type
    default: Any

    def coerce(self, raw: Any) -> Any:
        """Convert a raw file/override value to this key's kind.

        Raises ValueError when the value cannot be used.
        """
        if self.kind is bool:
            if isinstance(raw, bool):
                return raw
            s = str(raw).strip().lower()
            if s in _TRUE:
                return True
            if s in _FALSE:
                return False
            raise ValueError(f"{self.key}: expected a boolean, got {raw!r}")
        if self.kind is int:
            if isinstance(raw, bool):
                raise ValueError(f"{self.key}: expected an integer, got {raw!r}")
            value = int(str(raw).strip())
            if value <= 0:
                raise ValueError(f"{self.key}: must be a positive integer, got {value}")
            return value
        s = str(raw)
        if not s.strip():
            raise ValueError(f"{self.key}: must not be empty")
        return s


DESIRED_VALUES: Tuple[DesiredValue, ...] = (
    DesiredValue("KIOSK_USER", str, "kiosk"),
    DesiredValue("BOOT_URL", str, "http://localhost/"),
    DesiredValue("BOOT_LOGO_PATH", str, "/usr/share/plymouth/themes/kiosk/logo.png"),
    DesiredValue("PLYMOUTH_THEME_NAME", str, "kiosk"),
    DesiredValue("DHCP_TIMEOUT_SECONDS", int, 15),
    DesiredValue("DISABLE_ENERGY_SAVING", bool, True),
    DesiredValue("WINDOW_MANAGER", str, "openbox"),
    DesiredValue("TTY_AUTOLOGIN", str, "tty1"),
    DesiredValue("APACHE_DOCROOT", str, "/var/www/html"),
    DesiredValue("LOG_FILE", str, PATHS.log_default),
)

SCHEMA: Mapping[str, DesiredValue] = MappingProxyType({d.key: d for d in DESIRED_VALUES})


def default_values() -> Dict[str, Any]:
    return {d.key: d.default for d in DESIRED_VALUES}


@dataclass(frozen=True)
class ConfigSnapshot:
    """Fully resolved desired-state values for one run. Read-only."""

    values: Mapping[str, Any]
    source_path: str = PATHS.config_default

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.values)

    @property
    def kiosk_user(self) -> str:
        return str(self.values["KIOSK_USER"])

    @property
    def home_dir(self) -> str:
        return f"/home/{self.kiosk_user}"

    @property
    def boot_url(self) -> str:
        return str(self.values["BOOT_URL"])

    @property
    def boot_logo_path(self) -> str:
        return str(self.values["BOOT_LOGO_PATH"])

    @property
    def plymouth_theme(self) -> str:
        return str(self.values["PLYMOUTH_THEME_NAME"])

    @property
    def dhcp_timeout_seconds(self) -> int:
        return int(self.values["DHCP_TIMEOUT_SECONDS"])

    @property
    def disable_energy_saving(self) -> bool:
        return bool(self.values["DISABLE_ENERGY_SAVING"])

    @property
    def window_manager(self) -> str:
        return str(self.values["WINDOW_MANAGER"])

    @property
    def tty_autologin(self) -> str:
        return str(self.values["TTY_AUTOLOGIN"])

    @property
    def apache_docroot(self) -> str:
        return str(self.values["APACHE_DOCROOT"])

    @property
    def log_file(self) -> str:
        return str(self.values["LOG_FILE"])


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Anything else is the shell-style KEY=value format.
    return "kv"


def _unquote(value: str) -> str:
    v = value.strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in {'"', "'"}:
        return v[1:-1]
    return v


def parse_kv_text(text: str, *, source: str = "<config>") -> Dict[str, str]:
    """Parse KEY=value lines. Malformed lines are skipped with a warning.

    Values are taken literally: no variable expansion, and a trailing "# ..."
    is part of the value.
    """

    out: Dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or not key.replace("_", "").isalnum():
            logger.warning("Skipping malformed line %d in %s: %r", lineno, source, raw)
            continue
        out[key] = _unquote(value)
    return out


def _yaml() -> Any:
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError(
            "YAML configuration requested but PyYAML is not available. "
            "Use a KEY=value config file or install PyYAML."
        ) from e
    return yaml


def _load_yaml(text: str, *, source: str) -> Dict[str, Any]:
    yaml = _yaml()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.warning("Could not parse %s as YAML (%s); using defaults", source, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config %s must be a mapping, got %s; using defaults", source, type(data).__name__)
        return {}
    return {str(k): v for k, v in data.items()}


def render_config_text(values: Mapping[str, Any], *, fmt: str = "kv") -> str:
    """Render values in the persisted format, one line per recognized key."""

    ordered = [(d.key, values.get(d.key, d.default)) for d in DESIRED_VALUES]
    if fmt == "yaml":
        return "# Kiosk Setup Configuration\n" + _yaml().safe_dump(dict(ordered), sort_keys=False)

    lines = ["# Kiosk Setup Configuration"]
    for key, value in ordered:
        if isinstance(value, bool):
            lines.append(f'{key}="{"true" if value else "false"}"')
        elif isinstance(value, int):
            lines.append(f"{key}={value}")
        else:
            lines.append(f'{key}="{value}"')
    return "\n".join(lines) + "\n"


def apply_layer(
    base: Mapping[str, Any],
    layer: Mapping[str, Any],
    *,
    source: str,
    strict: bool = False,
) -> Dict[str, Any]:
    """Overlay recognized keys from layer onto base.

    Non-strict layers (files) skip bad values with a warning. Strict layers
    (explicit overrides) raise ConfigError.
    """

    merged = dict(base)
    layer = dict(layer)
    for legacy, key in LEGACY_ALIASES.items():
        if legacy in layer and key not in layer:
            layer[key] = layer.pop(legacy)

    for key, raw in layer.items():
        desired = SCHEMA.get(key)
        if desired is None:
            if strict:
                raise ConfigError(f"Unknown configuration key: {key}")
            logger.debug("Ignoring unrecognized key %s in %s", key, source)
            continue
        try:
            merged[key] = desired.coerce(raw)
        except ValueError as e:
            if strict:
                raise ConfigError(str(e)) from e
            logger.warning("Skipping invalid value in %s (%s); using %r", source, e, merged[key])
    return merged


def parse_overrides(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse KEY=VALUE strings given on the command line."""

    out: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"Override must look like KEY=VALUE, got {pair!r}")
        out[key.strip()] = value
    return out


def validate_overrides(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Coerce explicit overrides strictly. Raises ConfigError on the first bad one."""
    return apply_layer({}, overrides, source="command line", strict=True)


def load_config_file(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    text = p.read_text(encoding="utf-8", errors="replace")
    if _detect_format(p) == "yaml":
        return _load_yaml(text, source=str(p))
    return parse_kv_text(text, source=str(p))


def resolve(
    path: str,
    ctx: ExecutionContext,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ConfigSnapshot:
    """Resolve the run's configuration: defaults < config file < overrides.

    A missing config file is created from the defaults in a real run and then
    read back; a dry run only reports what it would have created.
    """

    # Bad overrides are a usage error: reject them before anything is written.
    if overrides:
        validate_overrides(overrides)

    p = ctx.path(path)
    values = default_values()

    if p.exists():
        values = apply_layer(values, load_config_file(p), source=str(p))
        ctx.log.info("Loaded configuration from %s", p)
    else:
        text = render_config_text(values, fmt=_detect_format(p))
        if ctx.dry_run:
            ctx.log.info("[DRY-RUN] Would create default configuration at %s", p)
            ctx.log.info("[DRY-RUN] Default configuration:\n%s", text.rstrip("\n"))
        else:
            reconcile_file_content(ctx, path, text)
            values = apply_layer(values, load_config_file(p), source=str(p))
            ctx.log.info("Created default configuration at %s", p)

    if overrides:
        values = apply_layer(values, overrides, source="command line", strict=True)

    return ConfigSnapshot(values=values, source_path=str(path))
