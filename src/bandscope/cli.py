"""
Command-line interface for offline band extraction.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from bandscope.core.config import DEFAULT_CONFIG, BandConfig
from bandscope.core.errors import BandscopeError
from bandscope.pipeline import BandPipeline

# (flag, field, help)
_CONFIG_FLAGS = [
    ("--freq-min", "freq_min", "Lowest band frequency in Hz"),
    ("--freq-max", "freq_max", "Highest band frequency in Hz"),
    ("--log-curve", "log_curve", "Band spacing warp (1 = pure log spacing)"),
    ("--tilt", "tilt", "High-frequency boost exponent"),
    ("--bass-tame", "bass_tame", "Low band softening strength"),
    ("--bass-tame-range", "bass_tame_range", "Fraction of bands softened"),
    ("--gain", "gain", "Linear gain"),
    ("--compress", "compress", "Compression exponent (< 1 compresses)"),
    ("--noise-floor", "noise_floor", "Energy subtracted before compression"),
    ("--attack", "attack", "Fraction of a rise followed per frame"),
    ("--release", "release", "Fraction of a fall followed per frame"),
    ("--smoothing", "smoothing", "Residual smoothing (0 = none)"),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bandscope",
        description="Extract perceptual log-frequency band energies from audio files",
    )

    parser.add_argument(
        "input",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output manifest file path (default: <input>_bands.json)",
    )

    parser.add_argument(
        "-f", "--fps",
        type=int,
        default=60,
        help="Frames per second (default: 60)",
    )

    parser.add_argument(
        "-s", "--sample-rate",
        type=int,
        default=44100,
        help="Audio sample rate for analysis (default: 44100)",
    )

    parser.add_argument(
        "--fft-size",
        type=int,
        default=2048,
        help="FFT length (default: 2048)",
    )

    parser.add_argument(
        "-b", "--bands",
        type=int,
        action="append",
        default=None,
        help="Band count to extract; repeat for several (default: 8 16 32 64)",
    )

    parser.add_argument(
        "--format",
        choices=["json", "numpy"],
        default="json",
        help="Output format (default: json)",
    )

    group = parser.add_argument_group("band options")
    for flag, name, help_text in _CONFIG_FLAGS:
        group.add_argument(
            flag,
            dest=name,
            type=float,
            default=None,
            help=f"{help_text} (default: {getattr(DEFAULT_CONFIG, name)})",
        )

    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore and do not update the manifest cache",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress progress output",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print manifest summary to stdout",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> BandConfig:
    """Build a BandConfig from the band option flags that were given."""
    overrides = {
        name: getattr(args, name)
        for _, name, _ in _CONFIG_FLAGS
        if getattr(args, name) is not None
    }
    return BandConfig.from_dict(overrides)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Validate input
    if not args.input.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    output_path = args.output
    if output_path is None:
        suffix = ".npz" if args.format == "numpy" else ".json"
        output_path = args.input.with_name(f"{args.input.stem}_bands{suffix}")

    try:
        pipeline = BandPipeline(
            target_fps=args.fps,
            sample_rate=args.sample_rate,
            fft_size=args.fft_size,
            band_counts=tuple(args.bands or (8, 16, 32, 64)),
            config=config_from_args(args),
        )

        if not args.quiet:
            print(f"Processing: {args.input}")
            print(f"Band counts: {', '.join(str(b) for b in pipeline.band_counts)}")

        result = pipeline.process(
            args.input,
            output_path=output_path,
            format=args.format,
            use_cache=not args.no_cache,
        )
    except BandscopeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(f"Duration: {result['duration']:.2f}s")
        print(f"Frames: {result['n_frames']}")
        print(f"Output: {result['output_path']}")

    if args.summary:
        manifest = result["manifest"]
        print("\n--- Manifest Summary ---")
        print(json.dumps(manifest["metadata"], indent=2))

        frames = manifest["frames"]
        if len(frames) > 1:
            mid = len(frames) // 2
            print(f"\nMiddle frame ({mid}): {json.dumps(frames[mid], indent=2)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
