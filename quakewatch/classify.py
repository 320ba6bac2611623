"""Display classifications for magnitudes, depths and swarms.

Magnitude tiers (lower bound inclusive):

    < 2  Micro      #10b981
    2-3  Minor      #22c55e
    3-4  Light      #eab308
    4-5  Moderate   #f97316
    5-6  Strong     #ef4444
    >= 6 Major      #991b1b

Labels and colours share the same breakpoints, so a larger magnitude never
maps to a lower tier.
"""

import math
from bisect import bisect_right

MAGNITUDE_BREAKS = (2.0, 3.0, 4.0, 5.0, 6.0)
MAGNITUDE_LABELS = ("Micro", "Minor", "Light", "Moderate", "Strong", "Major")
MAGNITUDE_COLORS = ("#10b981", "#22c55e", "#eab308", "#f97316", "#ef4444", "#991b1b")

SWARM_INTENSITIES = ("low", "moderate", "high", "extreme")


def severity_rank(magnitude):
    """Tier index 0 (Micro) .. 5 (Major) for a magnitude; NaN ranks as Micro."""
    if math.isnan(magnitude):
        return 0
    return bisect_right(MAGNITUDE_BREAKS, magnitude)


def magnitude_label(magnitude):
    return MAGNITUDE_LABELS[severity_rank(magnitude)]


def magnitude_color(magnitude):
    return MAGNITUDE_COLORS[severity_rank(magnitude)]


def depth_description(depth_km):
    """Classify event by depth: Shallow (<10 km), Intermediate (<30 km), Deep."""
    if depth_km < 10:
        return "Shallow"
    elif depth_km < 30:
        return "Intermediate"
    else:
        return "Deep"


def was_likely_felt(magnitude, depth_km):
    """Rough felt estimate: threshold M2.2 above 10 km depth, M2.0 to 20 km, M1.7 below."""
    if depth_km < 10:
        depth_factor = 0.3
    elif depth_km < 20:
        depth_factor = 0.5
    else:
        depth_factor = 0.8
    return magnitude >= 2.5 - depth_factor


def swarm_intensity(swarm):
    """Intensity tier of a swarm from its peak magnitude and size."""
    if swarm.peak_magnitude >= 4 or swarm.total_count >= 50:
        return "extreme"
    if swarm.peak_magnitude >= 3.5 or swarm.total_count >= 30:
        return "high"
    if swarm.peak_magnitude >= 3 or swarm.total_count >= 15:
        return "moderate"
    return "low"
