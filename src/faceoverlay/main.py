import argparse
import asyncio
import logging
import sys

from faceoverlay.inference.model import ModelHandle
from faceoverlay.pipeline import OverlayPipeline
from faceoverlay.render.surface import OverlaySurface
from faceoverlay.render.viewer import OverlayViewer
from faceoverlay.scheduler import Scheduler
from faceoverlay.utils.config import DEFAULT_CONFIG_PATH, apply_overrides, load_config, stage_spec
from faceoverlay.utils.logging import AnnotationLog, setup_logging
from faceoverlay.utils.registry import build, import_all_from_pipeline
from faceoverlay.utils.tensor import TensorBackend


logger = logging.getLogger(__name__)


def build_pipeline(cfg, backend: TensorBackend):
    import_all_from_pipeline()

    name, args = stage_spec(cfg, "source")
    source = build("source", name, **args)

    name, args = stage_spec(cfg, "preprocess")
    preprocessor = build("preprocess", name, backend=backend, **args)

    inference_name, inference_args = stage_spec(cfg, "inference")
    model = ModelHandle(lambda: build("inference", inference_name, backend=backend, **inference_args))

    name, args = stage_spec(cfg, "postprocess")
    postprocessor = build("postprocess", name, **args)

    name, args = stage_spec(cfg, "renderer")
    renderer = build("renderer", name, **args)

    annons_dir = cfg["logging"].get("annotations_dir")
    annotation_log = AnnotationLog(annons_dir) if annons_dir else None

    return OverlayPipeline(
        source=source,
        preprocessor=preprocessor,
        model=model,
        postprocessor=postprocessor,
        renderer=renderer,
        surface=OverlaySurface(),
        backend=backend,
        annotation_log=annotation_log,
    )


async def run(cfg, display: bool = True, max_ticks=None) -> int:
    backend = TensorBackend()
    pipeline = build_pipeline(cfg, backend)
    scheduler = Scheduler(
        pipeline,
        period_ms=cfg["scheduler"].get("period_ms", 100),
        overlap=cfg["scheduler"].get("overlap", "skip"),
    )

    viewer = None
    if display:
        viewer = OverlayViewer()

        def on_tick(frame, surface, result):
            if not viewer.show(frame, surface, result):
                scheduler.stop()

        pipeline.add_tick_callback(on_tick)

    # ticks are no-ops until the model is ready
    load_task = asyncio.create_task(pipeline.model.load())
    load_task.add_done_callback(lambda t: scheduler.stop() if not t.cancelled() and t.exception() else None)

    try:
        await scheduler.run(max_ticks=max_ticks)
    finally:
        if not load_task.done():
            load_task.cancel()
        pipeline.source.release()
        if viewer is not None:
            viewer.close()

    logger.info(f"[main] Tensor memory at exit: {backend.memory()}")
    if pipeline.model.error is not None:
        return 1
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Real-time face detection overlay")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to the YAML config")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--camera", type=int, help="Camera index")
    group.add_argument("--video", help="Video file played as a live stream")
    parser.add_argument("--model", help="Path to the ONNX face detection model")
    parser.add_argument("--threshold", type=float, help="Minimum score (exclusive) for a detection")
    parser.add_argument("--period-ms", type=float, help="Tick period in milliseconds")
    parser.add_argument("--overlap", choices=["skip", "allow"], help="What to do when a tick is still running")
    parser.add_argument("--max-ticks", type=int, help="Stop after this many ticks")
    parser.add_argument("--annotations-dir", help="Write per-tick detections as JSON files here")
    parser.add_argument("--no-display", action="store_true", help="Do not open a window")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return parser.parse_args(argv)


def config_from_args(args):
    cfg = load_config(args.config)
    overrides = {
        "inference.args.model_weights": args.model,
        "postprocess.args.threshold": args.threshold,
        "scheduler.period_ms": args.period_ms,
        "scheduler.overlap": args.overlap,
        "logging.annotations_dir": args.annotations_dir,
        "logging.level": args.log_level,
    }
    if args.camera is not None:
        overrides["source"] = {"name": "CameraSource", "args": {"index": args.camera}}
    elif args.video:
        overrides["source"] = {"name": "VideoFileSource", "args": {"path": args.video}}
    return apply_overrides(cfg, overrides)


def main(argv=None):
    args = parse_args(argv)
    cfg = config_from_args(args)
    setup_logging(cfg["logging"].get("level", "INFO"))
    try:
        code = asyncio.run(run(cfg, display=not args.no_display, max_ticks=args.max_ticks))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
