"""Configuration file reading with fall-back to a defaults file."""

import logging
import re

logger = logging.getLogger(__name__)

DEFAULTS_FILE = "/usr/local/etc/defaults"

_VALUE_DELIMITERS = re.compile(r"[# \t]+")
_LINE_END = re.compile(r"[\r\n]")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class ConfigError(Exception):
    """Raised when a configuration file or value is missing or invalid."""


def _parse_value(rest):
    raw = _LINE_END.split(rest.lstrip("\r\n"), maxsplit=1)[0]
    value = raw.strip()
    if value.startswith("'"):
        if value[1:2] == "'":
            return ""
        return value.lstrip("'").split("'", 1)[0]
    tokens = [token for token in _VALUE_DELIMITERS.split(value) if token]
    return tokens[0] if tokens else ""


def read_config_file(path):
    """Read key=value lines into a dict.

    Blank keys and keys starting with '#' are skipped. A quoted value keeps
    its inner text; otherwise the value ends at whitespace or '#'.
    """
    entries = {}
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            for line in handle:
                key, _, rest = line.lstrip("=").partition("=")
                key = key.strip()
                if not key or key.startswith("#"):
                    continue
                entries[key] = _parse_value(rest)
    except OSError as err:
        raise ConfigError(f"could not open file {path}") from err
    return entries


def _to_bool(path, text):
    first = text[:1]
    if first in ("0", "f", "F"):
        return False
    if first in ("1", "t", "T"):
        return True
    raise ConfigError(f"{path}={text} doesn't seem to define a boolean")


def _to_int(path, text):
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ConfigError(f"{path}={text} is not an integer")
    return int(match.group(1))


def _to_float(path, text):
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        raise ConfigError(f"{path}={text} is not a number")
    return float(match.group(1))


class QnetConfig:
    """Values from a configuration file, with fall-back to a defaults file."""

    def __init__(self, configfile, defaults_file=DEFAULTS_FILE):
        self.defaults = read_config_file(defaults_file)
        self.cfg = read_config_file(configfile)

    def key_exists(self, key):
        return key in self.cfg

    def get_default(self, path, mod):
        """Return the default text for a key, searching module-specific names for a module."""
        if not mod:
            candidates = (path + "_d",)
        else:
            is_module_key = (
                path.startswith("module_")
                and len(path) > 8
                and path[7] in "abc"
                and path[8] == "_"
            )
            if not is_module_key:
                raise ConfigError(f"{path} looks like an ill-formed request from module '{mod}'")
            if mod != "icom":
                raise ConfigError(f"Unrecognized module type = '{mod}'")
            candidates = (path[:7] + "x" + path[8:], mod + path[8:])
        for candidate in candidates:
            if candidate in self.defaults:
                return self.defaults[candidate]
        raise ConfigError(f"no default value defined for {path}")

    def _default_or_fail(self, path, mod):
        try:
            return self.get_default(path, mod)
        except ConfigError as err:
            raise ConfigError(
                f"{path} not found in either the cfg file or the defaults file"
            ) from err

    def get_bool(self, path, mod):
        if path in self.cfg:
            value = _to_bool(path, self.cfg[path])
        else:
            value = _to_bool(path, self._default_or_fail(path, mod))
        logger.info("%s = %s", path, "true" if value else "false")
        return value

    def get_float(self, path, mod, minimum, maximum):
        if path in self.cfg:
            value = _to_float(path, self.cfg[path])
            prefix = ""
        else:
            value = _to_float(path, self._default_or_fail(path, mod))
            prefix = "Default value "
        if value < minimum or value > maximum:
            raise ConfigError(f"{prefix}{path}={value:g} is out of acceptable range")
        logger.info("%s = %g", path, value)
        return value

    def get_int(self, path, mod, minimum, maximum):
        if path in self.cfg:
            value = _to_int(path, self.cfg[path])
            prefix = ""
        else:
            value = _to_int(path, self._default_or_fail(path, mod))
            prefix = "Default value "
        if value < minimum or value > maximum:
            raise ConfigError(f"{prefix}{path}={value} is out of acceptable range")
        logger.info("%s = %d", path, value)
        return value

    def get_str(self, path, mod, minimum, maximum):
        if path in self.cfg:
            value = self.cfg[path]
            prefix = ""
        else:
            value = self._default_or_fail(path, mod)
            prefix = "Default value "
        if not minimum <= len(value) <= maximum:
            raise ConfigError(f"{prefix}{path}='{value}' is wrong size")
        logger.info("%s = '%s'", path, value)
        return value