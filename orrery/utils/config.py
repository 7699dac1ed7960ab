# orrery/utils/config.py
import os
import yaml

DEFAULT_CONFIG_PATH = "config/defaults.yaml"


class AttrDict(dict):
    """Dict that also supports attribute access: cfg.mode and cfg['mode'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

def config_path() -> str:
    return os.environ.get("ORRERY_CONFIG", DEFAULT_CONFIG_PATH)

def load_config(path: str = None):
    """
    Load YAML config from `path` (default: $ORRERY_CONFIG or config/defaults.yaml).
    A missing file yields an empty config so built-in defaults apply.
    Optional override:
      - ORRERY_MODE  (overrides config['mode'] if set)
    Returns an AttrDict for convenient access.
    """
    path = path or config_path()
    data = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config root must be a mapping: {path}")

    mode = os.getenv("ORRERY_MODE")
    if mode:
        data["mode"] = mode

    return _to_attr(data)
