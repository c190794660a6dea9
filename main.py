"""High-level API + CLI for the heuristic deepfake image analyzer."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any

from PIL import Image
from tqdm import tqdm

from heuristics.preprocess import DetectorError
from heuristics.utils import ensure_dir, save_json
from pipeline import AnalyzerConfig, DeepfakeAnalyzer
from pipeline.config import CONFIG_PATH

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif", ".tif", ".tiff"}

logger = logging.getLogger("deepfake_detector")


class DeepfakeDetectorAPI:
    """
    High-level orchestration API.

    Use :meth:`analyze_image` from synchronous code (CLI, scripts) and
    :meth:`analyze_image_async` where an event loop is already running
    (notebooks, async servers).
    """

    def __init__(self, config_path: Path = CONFIG_PATH, config: AnalyzerConfig | None = None):
        self.config = config if config is not None else AnalyzerConfig.from_yaml(config_path)
        self.analyzer = DeepfakeAnalyzer.from_config(self.config)

    def analyze_image(self, image_path: str | Path, on_progress=None) -> dict[str, Any]:
        image_path = self._resolve_image(image_path)
        result = self.analyzer.analyze(image_path, on_progress=on_progress)
        return self._to_output(result, image_path)

    async def analyze_image_async(self, image_path: str | Path, on_progress=None) -> dict[str, Any]:
        image_path = self._resolve_image(image_path)
        result = await self.analyzer.analyze_async(image_path, on_progress=on_progress)
        return self._to_output(result, image_path)

    @staticmethod
    def _resolve_image(image_path: str | Path) -> Path:
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"Image not found: '{image_path}'")
        return image_path

    @staticmethod
    def _to_output(result, image_path: Path) -> dict[str, Any]:
        output = result.to_dict()
        output["image_id"] = image_path.name
        return output

    def analyze_directory(
        self,
        image_dir: str | Path,
        save_dir: str | Path | None = None,
    ) -> list[dict[str, Any]]:
        """Analyze every image in *image_dir*; one JSON per image plus summary.json."""
        image_dir = Path(image_dir)
        out_dir = ensure_dir(save_dir if save_dir is not None else self.config.results_dir)

        # the progress simulator only paces interactive use
        batch_analyzer = DeepfakeAnalyzer.from_config(
            dataclasses.replace(self.config, progress_enabled=False)
        )
        batch_analyzer.aggregator = self.analyzer.aggregator

        images = sorted(p for p in image_dir.iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS)
        outputs = []
        for image_path in tqdm(images, desc="Analyzing", unit="img"):
            try:
                output = batch_analyzer.analyze(image_path).to_dict()
            except (DetectorError, OSError, Image.DecompressionBombError) as e:
                logger.warning("Skipping %s: %s", image_path.name, e)
                output = {"error": f"{type(e).__name__}: {e}"}
            output["image_id"] = image_path.name
            save_json(output, out_dir / f"{image_path.stem}.json")
            outputs.append(output)

        verdicts = Counter(o.get("verdict", "ERROR") for o in outputs)
        save_json(
            {"total": len(outputs), "verdict_counts": dict(verdicts), "source_dir": image_dir},
            out_dir / "summary.json",
        )
        return outputs


# -------------------- CLI commands --------------------

def _print_progress(label: str, percentage: int) -> None:
    print(f"[{percentage:3d}%] {label}", file=sys.stderr)


def _api_from_args(args: argparse.Namespace) -> DeepfakeDetectorAPI:
    config = AnalyzerConfig.from_yaml(args.config)
    overrides: dict[str, Any] = {}
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if getattr(args, "no_progress", False):
        overrides["progress_enabled"] = False
    if overrides:
        config = dataclasses.replace(config, **overrides)

    logging.basicConfig(level=config.log_level, format="[%(name)s] %(message)s")
    return DeepfakeDetectorAPI(config=config)


def cmd_analyze(args: argparse.Namespace) -> None:
    api = _api_from_args(args)
    out = api.analyze_image(args.image, on_progress=_print_progress)
    print(json.dumps(out, indent=2, ensure_ascii=False))


def cmd_batch(args: argparse.Namespace) -> None:
    api = _api_from_args(args)
    outputs = api.analyze_directory(args.image_dir, save_dir=args.out)
    out_dir = args.out or api.config.results_dir
    print(f"[batch] Analyzed {len(outputs)} images. Results in {out_dir}/")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Heuristic deepfake image analyzer")
    parser.add_argument("--config", default=str(CONFIG_PATH), help="Path to analyzer YAML config")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the score jitter")
    # --seed is accepted before or after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--seed", type=int, default=argparse.SUPPRESS, help="Seed for the score jitter")

    sub = parser.add_subparsers(dest="command", required=True)

    analyze_p = sub.add_parser("analyze", parents=[common], help="Analyze a single image")
    analyze_p.add_argument("image", help="Path to image file")
    analyze_p.add_argument("--no-progress", action="store_true", help="Skip the paced progress labels")

    batch_p = sub.add_parser("batch", parents=[common], help="Analyze every image in a directory")
    batch_p.add_argument("image_dir", help="Directory of images")
    batch_p.add_argument("--out", default=None, help="Output directory (default from config)")

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    commands = {
        "analyze": cmd_analyze,
        "batch": cmd_batch,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
