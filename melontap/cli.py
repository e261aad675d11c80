#!/usr/bin/env python3
"""MelonTap CLI entrypoint (package module)."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, List, Optional, Set

from melontap.capture.base import AudioCaptureService
from melontap.capture.microphone import HAVE_SOUNDDEVICE, MicrophoneCaptureService
from melontap.capture.synthetic import SyntheticCaptureService, synthetic_frame, synthetic_thump_frame
from melontap.detection.types import RipenessResult
from melontap.io.profiles import (
    CaptureProfile,
    SessionConfig,
    capture_profile_from_env,
    config_from_env,
    default_profiles,
    serialize_profiles,
)
from melontap.scoring.ripeness import compute
from melontap.session.meter import ThumpMeter
from melontap.util.duration import parse_duration_to_seconds
from melontap.util.errors import MelonTapError
from melontap.util.exit_codes import ExitCode
from melontap.util.logging import configure_logging, get_logger
from melontap.visual.sink import BandLevelSink

SIMULATED_QUIET_FRAMES = 12


def run(args: argparse.Namespace) -> int:
    """Top-level CLI dispatcher; returns a process exit code."""
    configure_logging(level=args.log_level, json_file=args.log_json)
    logger = get_logger(__name__)

    if args.list_profiles:
        _emit_profiles_json()
        return ExitCode.SUCCESS

    config = SessionConfig(mass_kg=args.mass, sensitivity=args.sensitivity)
    try:
        if args.score is not None:
            result: Optional[RipenessResult] = compute(args.score, config.mass_kg)
        else:
            result = asyncio.run(measure(args, config))
    except MelonTapError as exc:
        print(f"[melontap] {exc}", file=sys.stderr)
        return ExitCode.for_error(exc)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return ExitCode.NO_THUMP

    if result is None:
        print("[melontap] listening stopped before a thump was detected", file=sys.stderr)
        return ExitCode.NO_THUMP
    _emit_result(result, as_json=args.json)
    return ExitCode.SUCCESS


async def measure(args: argparse.Namespace, config: SessionConfig) -> Optional[RipenessResult]:
    """Run a single listening session and return its result (or None)."""
    capture_profile = CaptureProfile(
        sample_rate=args.sample_rate,
        tick_hz=args.tick_hz,
        device=args.device,
    )
    meter = ThumpMeter(
        _select_capture(args, capture_profile),
        capture_profile=capture_profile,
        config=config,
        sink=BandLevelSink(),
    )
    meter.start()
    print(
        f"[melontap] listening (mass {config.mass_kg:.2f} kg, sensitivity {config.sensitivity}); tap the melon",
        file=sys.stderr,
        flush=True,
    )
    timer = None
    if args.timeout is not None:
        timer = asyncio.get_running_loop().call_later(args.timeout, meter.stop)
    try:
        return await meter.wait()
    finally:
        if timer is not None:
            timer.cancel()
        meter.stop()


def _select_capture(args: argparse.Namespace, profile: CaptureProfile) -> AudioCaptureService:
    if args.simulate is None:
        return MicrophoneCaptureService()
    bins = profile.fft_size // 2
    frames = [synthetic_frame(bins) for _ in range(SIMULATED_QUIET_FRAMES)]
    frames.append(
        synthetic_thump_frame(
            args.simulate,
            sample_rate=profile.sample_rate,
            fft_size=profile.fft_size,
        )
    )
    return SyntheticCaptureService(frames)


def _emit_result(result: RipenessResult, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2), flush=True)
        return
    print(f"Base frequency : {result.base_frequency_hz:.1f} Hz", flush=True)
    print(f"Ripeness index : {result.ripeness_index:.0f}", flush=True)
    print(f"Ripeness score : {result.ripeness_score:.0f} / 100", flush=True)
    print(f"Sweetness      : {result.sweetness_brix:.1f} Brix", flush=True)
    print(f"Verdict        : {result.label}", flush=True)


def _emit_profiles_json() -> None:
    print(json.dumps(serialize_profiles(), indent=2), flush=True)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(
        description="Estimate watermelon ripeness and sweetness from the sound of a tap",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("--mass", type=float, help="Fruit mass in kg (default 4.5, or $MELONTAP_MASS_KG)")
    p.add_argument("--sensitivity", type=int, help="Detection sensitivity 1-20; higher triggers on softer taps (default 8)")
    p.add_argument("--profile", type=str, help="Measurement profile to pre-load mass/sensitivity (see --list-profiles)")
    p.add_argument("--list-profiles", dest="list_profiles", action="store_true", help="Print built-in profiles as JSON and exit")

    p.add_argument("--device", type=str, help="Input device name or index (default: system input, or $MELONTAP_DEVICE)")
    p.add_argument("--sample-rate", dest="sample_rate", type=float, help="Capture sample rate in Hz (default 48000)")
    p.add_argument("--tick-hz", dest="tick_hz", type=float, help="Frames analysed per second (default 60)")
    p.add_argument("--timeout", type=str, help="Stop listening after this long (e.g. '30', '2m'); default waits forever")

    p.add_argument("--simulate", type=float, help="Replay a synthetic tap at this frequency [Hz] instead of the microphone")
    p.add_argument("--score", type=float, help="Score a known tap frequency [Hz] directly and exit")
    p.add_argument("--json", action="store_true", help="Print the result as JSON")

    p.add_argument("--log-level", dest="log_level", type=str, help="DEBUG, INFO, WARNING or ERROR (default from $MELONTAP_LOG_LEVEL)")
    p.add_argument("--log-json", dest="log_json", type=str, help="Also write JSON-lines logs to this path")

    args = p.parse_args(argv)
    overrides: Set[str] = set()

    try:
        env_config = config_from_env()
        env_capture = capture_profile_from_env()
    except MelonTapError as exc:
        p.error(str(exc))

    _set_default(args, overrides, "mass", env_config.mass_kg)
    _set_default(args, overrides, "sensitivity", env_config.sensitivity)
    _set_default(args, overrides, "profile", None)
    _set_default(args, overrides, "list_profiles", False)
    _set_default(args, overrides, "device", env_capture.device)
    _set_default(args, overrides, "sample_rate", env_capture.sample_rate)
    _set_default(args, overrides, "tick_hz", env_capture.tick_hz)
    _set_default(args, overrides, "timeout", None)
    _set_default(args, overrides, "simulate", None)
    _set_default(args, overrides, "score", None)
    _set_default(args, overrides, "json", False)
    _set_default(args, overrides, "log_level", None)
    _set_default(args, overrides, "log_json", None)

    _apply_profile(args, p, overrides)

    if args.list_profiles:
        return args

    if args.mass <= 0:
        p.error("--mass must be > 0")
    if not 1 <= args.sensitivity <= 20:
        p.error("--sensitivity must be between 1 and 20")
    if args.sample_rate <= 0:
        p.error("--sample-rate must be > 0")
    if args.tick_hz <= 0:
        p.error("--tick-hz must be > 0")
    if args.score is not None and args.simulate is not None:
        p.error("--score and --simulate are mutually exclusive")
    if args.timeout is not None:
        try:
            args.timeout = parse_duration_to_seconds(args.timeout)
        except argparse.ArgumentTypeError as exc:
            p.error(str(exc))
    if args.score is None and args.simulate is None and not HAVE_SOUNDDEVICE:
        p.error("sounddevice not installed. Install with: pip install 'melontap[audio]' (or use --simulate).")

    return args


def _set_default(args: argparse.Namespace, overrides: Set[str], attr: str, value: Any) -> None:
    if hasattr(args, attr):
        overrides.add(attr)
    else:
        setattr(args, attr, value)


def _apply_profile(args: argparse.Namespace, parser: argparse.ArgumentParser, overrides: Set[str]) -> None:
    profile_name = getattr(args, "profile", None)
    if not profile_name:
        return
    profile = default_profiles().get(str(profile_name).lower())
    if not profile:
        parser.error(f"Unknown profile '{profile_name}'. Use --list-profiles to inspect options.")

    if "mass" not in overrides:
        args.mass = profile.mass_kg
    if "sensitivity" not in overrides:
        args.sensitivity = profile.sensitivity
    print(f"[profile] Applied profile '{profile.name}'", file=sys.stderr, flush=True)


def main(argv: Optional[List[str]] = None) -> None:
    sys.exit(run(parse_args(argv)))


if __name__ == "__main__":
    main()
