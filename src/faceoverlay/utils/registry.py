import importlib
import logging
import os


logger = logging.getLogger(__name__)

REGISTRY = {
    "source": {},
    "preprocess": {},
    "inference": {},
    "postprocess": {},
    "renderer": {},
}

_STAGE_PACKAGES = ("source", "preprocess", "inference", "postprocess", "render")


def register(kind):
    def decorator(cls):
        name = cls.__name__
        REGISTRY[kind][name] = cls
        return cls
    return decorator


def build(kind, name, **kwargs):
    try:
        cls = REGISTRY[kind][name]
    except KeyError:
        available = list(REGISTRY.get(kind, {}).keys())
        raise KeyError(f"{name!r} not found in REGISTRY[{kind!r}]. Available: {available}")
    return cls(**kwargs)


def import_all_from_pipeline():
    # registry.py is at faceoverlay/utils/registry.py, stages live in faceoverlay/<stage>/
    base_dir = os.path.join(os.path.dirname(__file__), "..")
    base_module = "faceoverlay"

    for package in _STAGE_PACKAGES:
        package_dir = os.path.join(base_dir, package)
        for root, _, files in os.walk(package_dir):
            for file in files:
                if not file.endswith(".py") or file.startswith("__"):
                    continue

                rel_path = os.path.relpath(root, base_dir).replace(os.path.sep, ".")
                full_module = f"{base_module}.{rel_path}.{file[:-3]}"

                try:
                    importlib.import_module(full_module)
                except ImportError as e:
                    logger.warning(f"[registry] Could not import {full_module!r}: {e}")
