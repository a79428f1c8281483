import copy
import os
from pathlib import Path

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "configs" / "overlay.yml"

STAGES = ("source", "preprocess", "inference", "postprocess", "renderer")


def load_config(path=DEFAULT_CONFIG_PATH):
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    for stage in STAGES:
        if stage not in cfg:
            raise KeyError(f"Config {os.path.basename(str(path))!r} has no {stage!r} section")
        cfg[stage].setdefault("args", {})
        cfg[stage]["args"] = cfg[stage]["args"] or {}
    cfg.setdefault("scheduler", {})
    cfg.setdefault("logging", {})
    return cfg


def stage_spec(config, stage):
    """Return (name, args) of a pipeline stage section."""
    section = config[stage]
    return section["name"], dict(section.get("args") or {})


def apply_overrides(config, overrides):
    """
    Return a copy of ``config`` with dotted-key overrides applied.

    ``None`` values are ignored so argparse defaults can be passed through.

    Examples:
        >>> apply_overrides(cfg, {"postprocess.args.threshold": 0.6})
    """
    cfg = copy.deepcopy(config)
    for key, value in overrides.items():
        if value is None:
            continue
        node = cfg
        *parents, leaf = key.split(".")
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
    return cfg
