import pytest
import yaml

from faceoverlay.main import config_from_args, parse_args
from faceoverlay.utils.config import DEFAULT_CONFIG_PATH, apply_overrides, load_config, stage_spec
from faceoverlay.utils.registry import REGISTRY, build, import_all_from_pipeline


def test_default_config():
    cfg = load_config(DEFAULT_CONFIG_PATH)
    assert stage_spec(cfg, "postprocess") == ("FacePostprocessor", {"threshold": 0.5, "label": "face"})
    assert cfg["scheduler"]["period_ms"] == 100
    assert cfg["scheduler"]["overlap"] == "skip"


def test_missing_stage_section(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text(yaml.safe_dump({"source": {"name": "CameraSource"}}))
    with pytest.raises(KeyError):
        load_config(path)


def test_overrides_ignore_none_and_do_not_mutate():
    cfg = load_config(DEFAULT_CONFIG_PATH)
    out = apply_overrides(cfg, {"postprocess.args.threshold": 0.7, "scheduler.period_ms": None})
    assert out["postprocess"]["args"]["threshold"] == 0.7
    assert out["scheduler"]["period_ms"] == 100
    assert cfg["postprocess"]["args"]["threshold"] == 0.5


def test_cli_overrides():
    args = parse_args(["--video", "clip.mp4", "--threshold", "0.6", "--overlap", "allow", "--model", "m.onnx"])
    cfg = config_from_args(args)
    assert cfg["source"] == {"name": "VideoFileSource", "args": {"path": "clip.mp4"}}
    assert cfg["postprocess"]["args"]["threshold"] == 0.6
    assert cfg["scheduler"]["overlap"] == "allow"
    assert cfg["inference"]["args"]["model_weights"] == "m.onnx"


def test_registry_has_all_stages():
    import_all_from_pipeline()
    assert "CameraSource" in REGISTRY["source"]
    assert "VideoFileSource" in REGISTRY["source"]
    assert "BatchPreprocessor" in REGISTRY["preprocess"]
    assert "OnnxInference" in REGISTRY["inference"]
    assert "FacePostprocessor" in REGISTRY["postprocess"]
    assert "OverlayRenderer" in REGISTRY["renderer"]


def test_build_unknown_name_lists_available():
    import_all_from_pipeline()
    with pytest.raises(KeyError, match="FacePostprocessor"):
        build("postprocess", "YoloPostprocessor")


def test_build_passes_args():
    import_all_from_pipeline()
    post = build("postprocess", "FacePostprocessor", threshold=0.25)
    assert post.threshold == 0.25
