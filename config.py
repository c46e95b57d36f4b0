"""
Simple JSON-backed configuration.

Values in the file override DEFAULTS; a JOBSFILTER_<KEY> environment
variable overrides both.
"""
import json
import os

DEFAULTS = {
    "database_url": "sqlite:///" + os.path.join(os.path.dirname(os.path.abspath(__file__)), "jobs.db"),
    "db_timeout": 30,  # seconds
    "page_size": 25,
    "log_level": "WARNING",
}

ENV_PREFIX = "JOBSFILTER_"
CFG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "jobsfilter_config.json")

class Config:
    def __init__(self, path=None):
        self.path = path or os.environ.get(ENV_PREFIX + "CONFIG", CFG_PATH)
        if not os.path.exists(self.path):
            self._write(DEFAULTS)
        self._load()

    def _load(self):
        with open(self.path, "r") as f:
            self.data = json.load(f)

    def _write(self, d):
        with open(self.path, "w") as f:
            json.dump(d, f, indent=2)

    def get(self, key, default=None):
        env = os.environ.get(ENV_PREFIX + key.upper())
        if env is not None:
            return _coerce(env, DEFAULTS.get(key))
        return self.data.get(key, DEFAULTS.get(key, default))

    def set(self, key, val):
        self.data[key] = val
        self._write(self.data)

    def all(self):
        merged = dict(DEFAULTS)
        merged.update(self.data)
        return {k: self.get(k) for k in merged}


def _coerce(raw, like):
    if isinstance(like, bool):
        return raw.lower() in ("1", "true", "yes")
    if isinstance(like, int):
        return int(raw)
    if isinstance(like, float):
        return float(raw)
    return raw
