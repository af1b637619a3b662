import argparse
import logging
import os
import subprocess
import sys
import time

import cv2
import numpy as np

from animegan_pipeline.errors import PipelineError
from animegan_pipeline.image_io import open_folder, read_image, to_bgr, write_image
from animegan_pipeline.models.animegan_onnx import AnimeGANONNX
from animegan_pipeline.providers import PROVIDER_MODES

logger = logging.getLogger(__name__)

IMAGE_PATH = "input.jpg"
MODEL_PATH = "models/AnimeGANv3_Hayao_36.onnx"
OUTPUT_PATH = "output/stylized.png"
INPUT_NAME = "AnimeGANv3_input:0"

TARGET_WIDTH = 512
TARGET_HEIGHT = 512

WINDOW_NAME = "AnimeGAN"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="AnimeGAN style transfer with ONNX Runtime")
    parser.add_argument("--image", default=IMAGE_PATH, help="Input image path")
    parser.add_argument("--model", default=MODEL_PATH, help="ONNX model path")
    parser.add_argument("--output", default=OUTPUT_PATH, help="Where to save the stylized image")
    parser.add_argument(
        "--provider",
        default="auto",
        choices=PROVIDER_MODES,
        help="ONNX Runtime execution provider (auto = first available accelerator, CPU fallback)"
    )
    parser.add_argument("--device-id", type=int, default=0, help="Accelerator device index")
    parser.add_argument("--input-name", default=INPUT_NAME, help="Model input node name")
    parser.add_argument(
        "--output-name",
        default=None,
        help="Model output node name (default: first model output)"
    )
    parser.add_argument("--width", type=int, default=TARGET_WIDTH, help="Model input width")
    parser.add_argument("--height", type=int, default=TARGET_HEIGHT, help="Model input height")
    parser.add_argument("--repeat", type=int, default=1, help="Number of timed inference runs")
    parser.add_argument("--warmup", type=int, default=0, help="Runs to ignore in timing stats")
    parser.add_argument(
        "--model-stage-timing",
        action="store_true",
        help="Report preprocess/session/postprocess timing breakdown"
    )
    parser.add_argument(
        "--display",
        action="store_true",
        help="Show input and output side by side; click to rerun, Esc to quit"
    )
    parser.add_argument(
        "--open-output-dir",
        action="store_true",
        help="Open the output folder in the file browser when done"
    )
    parser.add_argument("--no-save", action="store_true", help="Do not write the output image")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ERROR")
    return parser.parse_args(argv)


def format_timing(runs, pre_ms, run_ms, post_ms, total_ms, stage_timing=True):
    if runs <= 0:
        return "[timing] runs=0"
    msg = f"[timing] runs={runs} "
    if stage_timing:
        msg += (
            f"pre={pre_ms / runs:.2f}ms "
            f"run={run_ms / runs:.2f}ms "
            f"post={post_ms / runs:.2f}ms "
        )
    msg += f"total={total_ms / runs:.2f}ms"
    return msg


def run_timed(processor, image, repeat=1, warmup=0):
    """
    Run the pipeline `warmup + repeat` times; return the last output and
    the summed stage timings over the non-warmup runs.
    """
    output = None
    runs = 0
    pre_ms = run_ms = post_ms = total_ms = 0.0
    for idx in range(warmup + max(1, repeat)):
        t0 = time.perf_counter()
        output, pre_t, run_t, post_t = processor.process_timed(image)
        t1 = time.perf_counter()
        if idx < warmup:
            continue
        runs += 1
        pre_ms += pre_t
        run_ms += run_t
        post_ms += post_t
        total_ms += (t1 - t0) * 1000.0
    return output, (runs, pre_ms, run_ms, post_ms, total_ms)


def side_by_side(left_rgb, right_rgba):
    h = right_rgba.shape[0]
    left = left_rgb
    if left.shape[0] != h:
        scale = h / left.shape[0]
        new_w = max(1, int(round(left.shape[1] * scale)))
        left = cv2.resize(left, (new_w, h), interpolation=cv2.INTER_AREA)
    return np.hstack([to_bgr(left), to_bgr(right_rgba[..., :3])])


def display_loop(processor, image, output):
    clicked = []

    def on_mouse(event, x, y, flags, param):
        if event == cv2.EVENT_LBUTTONDOWN:
            clicked.append((x, y))

    cv2.namedWindow(WINDOW_NAME)
    cv2.setMouseCallback(WINDOW_NAME, on_mouse)
    try:
        while True:
            cv2.imshow(WINDOW_NAME, side_by_side(image, output))
            if cv2.waitKey(30) & 0xFF == 27:
                break
            if clicked:
                clicked.clear()
                t0 = time.perf_counter()
                output = processor.process(image)
                logger.info("Inference done in %.2fms", (time.perf_counter() - t0) * 1000.0)
    finally:
        cv2.destroyAllWindows()
    return output


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    result = AnimeGANONNX.load(
        args.model,
        provider=args.provider,
        device_id=args.device_id,
        input_name=args.input_name,
        output_name=args.output_name,
        input_size=(args.width, args.height),
    )
    if not result.ok:
        logger.error("Model not ready, aborting: %s", result.error)
        return 1

    with result.processor as processor:
        try:
            image = read_image(args.image)
            output, stats = run_timed(processor, image, repeat=args.repeat, warmup=args.warmup)
            print(format_timing(*stats, stage_timing=args.model_stage_timing))

            if args.display:
                output = display_loop(processor, image, output)

            if not args.no_save:
                write_image(args.output, output)
        except PipelineError as exc:
            logger.error("%s", exc)
            return 1

    if args.open_output_dir:
        try:
            open_folder(os.path.dirname(os.path.abspath(args.output)))
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.warning("Cannot open output folder: %s", exc)

    return 0


if __name__ == "__main__":
    sys.exit(main())
