"""Capture and measurement profile dataclasses and helpers."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from melontap.dsp.analyser import (
    DEFAULT_FFT_SIZE,
    DEFAULT_MAX_DB,
    DEFAULT_MIN_DB,
    DEFAULT_SMOOTHING,
)
from melontap.dsp.sensitivity import clamp_sensitivity
from melontap.scoring.ripeness import validate_mass
from melontap.util.errors import ValidationError

DEFAULT_MASS_KG = 4.5
DEFAULT_SENSITIVITY = 8
DEFAULT_SAMPLE_RATE = 48_000
DEFAULT_TICK_HZ = 60.0


@dataclass(frozen=True)
class CaptureProfile:
    sample_rate: float = DEFAULT_SAMPLE_RATE
    fft_size: int = DEFAULT_FFT_SIZE
    min_db: float = DEFAULT_MIN_DB
    max_db: float = DEFAULT_MAX_DB
    smoothing: float = DEFAULT_SMOOTHING
    tick_hz: float = DEFAULT_TICK_HZ
    device: Optional[str] = None


@dataclass(frozen=True)
class SessionConfig:
    """Inputs sampled once when a session starts."""

    mass_kg: float = DEFAULT_MASS_KG
    sensitivity: int = DEFAULT_SENSITIVITY

    def validated(self) -> "SessionConfig":
        """Return a copy with sensitivity clamped; raise on a bad mass."""
        mass = validate_mass(self.mass_kg)
        try:
            value = float(self.sensitivity)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"sensitivity must be an integer, got {self.sensitivity!r}") from exc
        if math.isnan(value):
            raise ValidationError("sensitivity must be a number, got NaN")
        sens = int(round(clamp_sensitivity(value)))
        return SessionConfig(mass_kg=mass, sensitivity=sens)


@dataclass
class MeasurementProfile:
    name: str
    mass_kg: float
    sensitivity: int
    description: str = ""

    def session_config(self) -> SessionConfig:
        return SessionConfig(mass_kg=self.mass_kg, sensitivity=self.sensitivity)


def default_profiles() -> Dict[str, MeasurementProfile]:
    profiles = [
        MeasurementProfile(
            name="default",
            mass_kg=DEFAULT_MASS_KG,
            sensitivity=DEFAULT_SENSITIVITY,
            description="Average supermarket melon in a quiet room",
        ),
        MeasurementProfile(
            name="small_melon",
            mass_kg=2.5,
            sensitivity=10,
            description="Personal-size melons; lighter taps need a lower floor",
        ),
        MeasurementProfile(
            name="large_melon",
            mass_kg=8.0,
            sensitivity=7,
            description="Large field melons with a strong, low thump",
        ),
        MeasurementProfile(
            name="noisy_room",
            mass_kg=DEFAULT_MASS_KG,
            sensitivity=4,
            description="Raised thresholds to ignore background chatter",
        ),
    ]
    return {p.name.lower(): p for p in profiles}


def serialize_profiles() -> Dict[str, Any]:
    """Return ordered JSON-serializable description of built-in profiles."""

    profiles = default_profiles()
    ordered = sorted(profiles.values(), key=lambda p: p.name.lower())
    return {
        "profiles": [
            {
                "name": prof.name,
                "mass_kg": prof.mass_kg,
                "sensitivity": prof.sensitivity,
                "description": prof.description,
            }
            for prof in ordered
        ]
    }


def _env_value(env: Mapping[str, str], key: str, cast):
    raw = env.get(key, "").strip()
    if not raw:
        return None
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValidationError(f"{key}={raw!r} is not a valid {cast.__name__}") from exc


def config_from_env(env: Optional[Mapping[str, str]] = None) -> SessionConfig:
    """Session defaults with ``MELONTAP_MASS_KG`` / ``MELONTAP_SENSITIVITY`` applied."""
    env = os.environ if env is None else env
    config = SessionConfig()
    mass = _env_value(env, "MELONTAP_MASS_KG", float)
    if mass is not None:
        config = replace(config, mass_kg=mass)
    sensitivity = _env_value(env, "MELONTAP_SENSITIVITY", int)
    if sensitivity is not None:
        config = replace(config, sensitivity=sensitivity)
    return config


def capture_profile_from_env(env: Optional[Mapping[str, str]] = None) -> CaptureProfile:
    """Capture defaults with ``MELONTAP_SAMPLE_RATE`` / ``MELONTAP_DEVICE`` applied."""
    env = os.environ if env is None else env
    profile = CaptureProfile()
    sample_rate = _env_value(env, "MELONTAP_SAMPLE_RATE", float)
    if sample_rate is not None:
        profile = replace(profile, sample_rate=sample_rate)
    device = env.get("MELONTAP_DEVICE", "").strip()
    if device:
        profile = replace(profile, device=device)
    return profile
