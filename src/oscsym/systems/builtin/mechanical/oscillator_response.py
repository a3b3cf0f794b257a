# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Oscillator Response - Closed-Form Diagnostics

Pure functions of OscillatorParameters, recomputed on every call. Nothing is
cached, so a parameter edit is visible immediately.

Mathematical Background
-----------------------
Equation of motion (base-driven, +x up):

    m ẍ + b ẋ + k x = k A sin(ωt) - m g

Free response:
    ω₀ = √(k/m)                 natural frequency
    ζ  = b / (2√(mk))           damping ratio
    Q  = 1 / (2ζ)               quality factor
    ω_d = ω₀ √(1 - ζ²)          damped frequency (ζ < 1)
    δ  = 2πζ / √(1 - ζ²)        logarithmic decrement (ζ < 1)

Steady-state driven response x_p = X sin(ωt - φ):
    X = kA / √((k - mω²)² + (bω)²)
    φ = atan2(bω, k - mω²)      ∈ [0, π], π/2 at resonance

Undefined limits resolve to sentinels instead of NaN:
    ζ = 0 when b = 0 and mk = 0, +∞ when b > 0 and mk = 0
    Q = +∞ when ζ = 0, 0 when ζ = +∞
    ω_d = 0 and δ = +∞ when ζ ≥ 1
    decay time = +∞ when b = 0
    X = +∞ at undamped resonance
    steady-state power = 0 when b = 0
    reactance and impedance = 0 when the driving frequency is 0

Negative spring constant or damping is treated as 0 and mass is floored at
MASS_FLOOR, matching the solvers.
"""

import math
from typing import Tuple

from oscsym.systems.builtin.mechanical.oscillator_parameters import (
    MASS_FLOOR,
    OscillatorParameters,
)
from oscsym.types.solvers import CRITICAL_DAMPING_EPSILON, DampingRegime

FREE_SPRING_EPSILON = 1e-9
"""Spring constants below this (N/m) are treated as a free particle."""

RESONANCE_DENOMINATOR_EPSILON = 1e-10


# ============================================================================
# Helpers
# ============================================================================


def effective_parameters(params: OscillatorParameters) -> Tuple[float, float, float]:
    """
    (m, k, b) as used in every computation.

    Examples
    --------
    >>> effective_parameters(OscillatorParameters(mass=0.0, damping=-1.0))
    (1e-12, 100.0, 0.0)
    """
    m = max(float(params.mass), MASS_FLOOR)
    k = max(float(params.spring_constant), 0.0)
    b = max(float(params.damping), 0.0)
    return m, k, b


def wrap_phase(angle: float) -> float:
    """Wrap an angle into [-π, π]."""
    return math.remainder(angle, 2.0 * math.pi)


def _scaled(amplitude: float, factor: float) -> float:
    # 0 * inf stays 0
    if amplitude == 0.0 or factor == 0.0:
        return 0.0
    return amplitude * factor


# ============================================================================
# Free Response
# ============================================================================


def natural_frequency(params: OscillatorParameters) -> float:
    """Natural angular frequency ω₀ = √(k/m) (rad/s)."""
    m, k, _ = effective_parameters(params)
    return math.sqrt(k / m)


def natural_frequency_hz(params: OscillatorParameters) -> float:
    """Natural frequency f₀ = ω₀/(2π) (Hz)."""
    return natural_frequency(params) / (2.0 * math.pi)


def damping_ratio(params: OscillatorParameters) -> float:
    """
    Damping ratio ζ = b / (2√(mk)).

    Returns
    -------
    float
        0 when b = 0 and mk = 0, +∞ when b > 0 and mk = 0

    Examples
    --------
    >>> damping_ratio(OscillatorParameters(mass=1.0, spring_constant=100.0, damping=2.0))
    0.1
    """
    m, k, b = effective_parameters(params)
    mk = m * k
    if mk <= 0.0:
        return 0.0 if b == 0.0 else math.inf
    return b / (2.0 * math.sqrt(mk))


def damping_regime(params: OscillatorParameters) -> DampingRegime:
    """
    Classify the homogeneous solution shape.

    FREE when k is (numerically) zero, CRITICALLY_DAMPED within
    CRITICAL_DAMPING_EPSILON of ζ = 1.
    """
    _, k, _ = effective_parameters(params)
    if k < FREE_SPRING_EPSILON:
        return DampingRegime.FREE

    zeta = damping_ratio(params)
    if abs(zeta - 1.0) < CRITICAL_DAMPING_EPSILON:
        return DampingRegime.CRITICALLY_DAMPED
    if zeta < 1.0:
        return DampingRegime.UNDERDAMPED
    return DampingRegime.OVERDAMPED


def quality_factor(params: OscillatorParameters) -> float:
    """Q = 1/(2ζ); +∞ when ζ = 0, 0 when ζ = +∞."""
    zeta = damping_ratio(params)
    if zeta == 0.0:
        return math.inf
    if math.isinf(zeta):
        return 0.0
    return 1.0 / (2.0 * zeta)


def damped_angular_frequency(params: OscillatorParameters) -> float:
    """ω_d = ω₀√(1 - ζ²) (rad/s), 0 when ζ ≥ 1."""
    zeta = damping_ratio(params)
    zeta_sq = zeta * zeta
    if zeta_sq >= 1.0:
        return 0.0
    return natural_frequency(params) * math.sqrt(1.0 - zeta_sq)


def damped_frequency_hz(params: OscillatorParameters) -> float:
    return damped_angular_frequency(params) / (2.0 * math.pi)


def logarithmic_decrement(params: OscillatorParameters) -> float:
    """
    δ = 2πζ/√(1 - ζ²), +∞ when ζ ≥ 1.

    Ratio of successive free-decay peaks is e^δ.
    """
    zeta = damping_ratio(params)
    zeta_sq = zeta * zeta
    if zeta_sq >= 1.0:
        return math.inf
    return 2.0 * math.pi * zeta / math.sqrt(1.0 - zeta_sq)


def decay_time_constant(params: OscillatorParameters) -> float:
    """Envelope time constant τ = 2m/b (s), +∞ when b = 0."""
    m, _, b = effective_parameters(params)
    if b == 0.0:
        return math.inf
    return 2.0 * m / b


def bandwidth(params: OscillatorParameters) -> float:
    """
    Half-power bandwidth Δf = b/(2πm) (Hz).

    Equal to f₀/Q wherever both are defined, and finite for every input.
    """
    m, _, b = effective_parameters(params)
    return b / (2.0 * math.pi * m)


def static_equilibrium(params: OscillatorParameters) -> float:
    """Rest position under gravity, -m g / k (m). 0 for a free particle."""
    m, k, _ = effective_parameters(params)
    if k < FREE_SPRING_EPSILON:
        return 0.0
    return -m * float(params.gravity) / k


# ============================================================================
# Steady-State Driven Response
# ============================================================================


def driving_angular_frequency(params: OscillatorParameters) -> float:
    """ω = 2πf (rad/s)."""
    return 2.0 * math.pi * float(params.driving_frequency)


def frequency_ratio(params: OscillatorParameters) -> float:
    """f / f₀, 0 when f₀ is (numerically) zero."""
    f0 = natural_frequency_hz(params)
    if f0 < 1e-10:
        return 0.0
    return float(params.driving_frequency) / f0


def force_amplitude(params: OscillatorParameters) -> float:
    """Driving force amplitude F₀ = kA (N), 0 when driving is off."""
    if not params.driving_enabled:
        return 0.0
    _, k, _ = effective_parameters(params)
    return k * max(float(params.driving_amplitude), 0.0)


def phase_angle(params: OscillatorParameters) -> float:
    """
    Phase lag φ of displacement behind the driving force (rad).

    Returns
    -------
    float
        In [0, π]: ~0 well below resonance, π/2 at resonance, → π above.
        0 when driving is off.

    Examples
    --------
    >>> p = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=0.5,
    ...                          driving_enabled=True, driving_frequency=10 / (2 * math.pi))
    >>> phase_angle(p)
    1.5707963267948966
    """
    if not params.driving_enabled:
        return 0.0
    m, k, b = effective_parameters(params)
    omega = driving_angular_frequency(params)
    denominator = k - m * omega * omega
    if abs(denominator) < RESONANCE_DENOMINATOR_EPSILON:
        return math.pi / 2.0
    return math.atan2(b * omega, denominator)


def displacement_amplitude(params: OscillatorParameters) -> float:
    """
    Steady-state displacement amplitude X = kA/√((k - mω²)² + (bω)²) (m).

    +∞ at undamped resonance, 0 when driving is off.
    """
    F0 = force_amplitude(params)
    if F0 == 0.0:
        return 0.0
    m, k, b = effective_parameters(params)
    omega = driving_angular_frequency(params)
    denominator = math.hypot(k - m * omega * omega, b * omega)
    if denominator < RESONANCE_DENOMINATOR_EPSILON:
        return math.inf
    return F0 / denominator


def velocity_amplitude(params: OscillatorParameters) -> float:
    """ωX (m/s)."""
    return _scaled(displacement_amplitude(params), abs(driving_angular_frequency(params)))


def acceleration_amplitude(params: OscillatorParameters) -> float:
    """ω²X (m/s²)."""
    omega = driving_angular_frequency(params)
    return _scaled(displacement_amplitude(params), omega * omega)


def amplitude_ratio(params: OscillatorParameters) -> float:
    """Magnification X/A, 0 when driving is off or A is negligible."""
    A = float(params.driving_amplitude)
    if not params.driving_enabled or A < 1e-15:
        return 0.0
    return displacement_amplitude(params) / A


def velocity_phase(params: OscillatorParameters) -> float:
    """Velocity phase relative to the driving force, φ - π/2 wrapped."""
    return wrap_phase(phase_angle(params) - math.pi / 2.0)


def acceleration_phase(params: OscillatorParameters) -> float:
    """Acceleration phase relative to the driving force, φ - π wrapped."""
    return wrap_phase(phase_angle(params) - math.pi)


def spring_force_phase(params: OscillatorParameters) -> float:
    """-kx is anti-phase to displacement: φ + π wrapped."""
    return wrap_phase(phase_angle(params) + math.pi)


def damping_force_phase(params: OscillatorParameters) -> float:
    """-bv is anti-phase to velocity."""
    return wrap_phase(velocity_phase(params) + math.pi)


# ============================================================================
# Mechanical Impedance
# ============================================================================


def mechanical_reactance(params: OscillatorParameters) -> float:
    """
    Reactance mω - k/ω (N·s/m).

    Negative below resonance (stiffness dominated), zero at resonance,
    positive above. 0 when driving is off or f = 0.
    """
    if not params.driving_enabled or params.driving_frequency < 1e-15:
        return 0.0
    m, k, _ = effective_parameters(params)
    omega = driving_angular_frequency(params)
    return m * omega - k / omega


def impedance_magnitude(params: OscillatorParameters) -> float:
    """|Z| = √(b² + reactance²), minimum b at resonance."""
    if not params.driving_enabled or params.driving_frequency < 1e-15:
        return 0.0
    _, _, b = effective_parameters(params)
    return math.hypot(b, mechanical_reactance(params))


def impedance_phase(params: OscillatorParameters) -> float:
    """∠Z = φ - π/2, zero at resonance."""
    if not params.driving_enabled:
        return 0.0
    return wrap_phase(phase_angle(params) - math.pi / 2.0)


def power_factor(params: OscillatorParameters) -> float:
    """sin φ = b/|Z|, 1 at resonance."""
    if not params.driving_enabled:
        return 0.0
    return math.sin(phase_angle(params))


# ============================================================================
# Steady-State Energy and Power
# ============================================================================


def steady_state_rms_displacement(params: OscillatorParameters) -> float:
    return displacement_amplitude(params) / math.sqrt(2.0)


def steady_state_rms_velocity(params: OscillatorParameters) -> float:
    return velocity_amplitude(params) / math.sqrt(2.0)


def steady_state_rms_acceleration(params: OscillatorParameters) -> float:
    return acceleration_amplitude(params) / math.sqrt(2.0)


def steady_state_kinetic_energy(params: OscillatorParameters) -> float:
    """Time-averaged kinetic energy ¼mω²X² (J)."""
    m, _, _ = effective_parameters(params)
    omega = driving_angular_frequency(params)
    X = displacement_amplitude(params)
    return _scaled(X * X, 0.25 * m * omega * omega)


def steady_state_potential_energy(params: OscillatorParameters) -> float:
    """Time-averaged spring energy ¼kX² (J)."""
    _, k, _ = effective_parameters(params)
    X = displacement_amplitude(params)
    return _scaled(X * X, 0.25 * k)


def steady_state_total_energy(params: OscillatorParameters) -> float:
    """¼(mω² + k)X² (J). Kinetic and potential averages match only at resonance."""
    return steady_state_kinetic_energy(params) + steady_state_potential_energy(params)


def steady_state_average_power(params: OscillatorParameters) -> float:
    """Time-averaged dissipation ½bω²X² (W), 0 when b = 0."""
    _, _, b = effective_parameters(params)
    if b == 0.0:
        return 0.0
    omega = driving_angular_frequency(params)
    X = displacement_amplitude(params)
    return _scaled(X * X, 0.5 * b * omega * omega)


def steady_state_driving_power(params: OscillatorParameters) -> float:
    """
    Time-averaged driver input ½F₀ωX sin φ (W).

    Equal to steady_state_average_power by energy balance. 0 when b = 0.
    """
    _, _, b = effective_parameters(params)
    if b == 0.0:
        return 0.0
    omega = driving_angular_frequency(params)
    return _scaled(
        displacement_amplitude(params),
        0.5 * force_amplitude(params) * omega * math.sin(phase_angle(params)),
    )


def steady_state_damping_power(params: OscillatorParameters) -> float:
    """-½bω²X² (W), never positive."""
    return -steady_state_average_power(params)


def peak_response_frequency(params: OscillatorParameters) -> float:
    """
    Driving frequency of maximum displacement, f₀√(1 - 2ζ²) (Hz).

    0 when ζ ≥ 1/√2 (the maximum is at DC) or driving is off.
    """
    if not params.driving_enabled:
        return 0.0
    zeta = damping_ratio(params)
    term = 1.0 - 2.0 * zeta * zeta
    if term <= 0.0:
        return 0.0
    return natural_frequency_hz(params) * math.sqrt(term)


def peak_displacement_amplitude(params: OscillatorParameters) -> float:
    """
    Displacement amplitude at the peak frequency, A/(2ζ√(1 - ζ²)) (m).

    Static deflection A when ζ² ≥ 1/2, +∞ when undamped.
    """
    if not params.driving_enabled:
        return 0.0
    F0 = force_amplitude(params)
    if F0 == 0.0:
        return 0.0
    A = float(params.driving_amplitude)
    zeta = damping_ratio(params)
    if zeta * zeta >= 0.5:
        return A
    if zeta == 0.0:
        return math.inf
    return A / (2.0 * zeta * math.sqrt(1.0 - zeta * zeta))


__all__ = [
    "FREE_SPRING_EPSILON",
    "effective_parameters",
    "wrap_phase",
    # Free response
    "natural_frequency",
    "natural_frequency_hz",
    "damping_ratio",
    "damping_regime",
    "quality_factor",
    "damped_angular_frequency",
    "damped_frequency_hz",
    "logarithmic_decrement",
    "decay_time_constant",
    "bandwidth",
    "static_equilibrium",
    # Driven response
    "driving_angular_frequency",
    "frequency_ratio",
    "force_amplitude",
    "phase_angle",
    "displacement_amplitude",
    "velocity_amplitude",
    "acceleration_amplitude",
    "amplitude_ratio",
    "velocity_phase",
    "acceleration_phase",
    "spring_force_phase",
    "damping_force_phase",
    # Impedance
    "mechanical_reactance",
    "impedance_magnitude",
    "impedance_phase",
    "power_factor",
    # Energy and power
    "steady_state_rms_displacement",
    "steady_state_rms_velocity",
    "steady_state_rms_acceleration",
    "steady_state_kinetic_energy",
    "steady_state_potential_energy",
    "steady_state_total_energy",
    "steady_state_average_power",
    "steady_state_driving_power",
    "steady_state_damping_power",
    "peak_response_frequency",
    "peak_displacement_amplitude",
]
