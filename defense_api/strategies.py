"""
Mitigation strategy taxonomy and the two answer evaluators.

The free-choice strategy grid scores a strategy against the asteroid's size
and hazard; the forced-choice approach dialog only looks at the option's
correct/incorrect tag. The two rules give different verdicts for the same idea.
"""
from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Union

from .catalog import AsteroidProfile


@dataclass(frozen=True)
class MitigationStrategy:
    id: str
    title: str
    description: str
    effectiveness: str
    cost: str
    timeframe: str


MITIGATION_STRATEGIES = (
    MitigationStrategy("kinetic_impactor", "Kinetic Impactor Mission",
                       "Launch a spacecraft to collide with the asteroid and change its velocity",
                       "High for small to medium asteroids", "Moderate", "2-5 years"),
    MitigationStrategy("gravity_tractor", "Gravity Tractor",
                       "Use a spacecraft to gravitationally pull the asteroid off course",
                       "High for large asteroids", "High", "5-10 years"),
    MitigationStrategy("nuclear_deflection", "Nuclear Deflection",
                       "Detonate nuclear devices near the asteroid to alter its trajectory",
                       "Very High", "Very High", "1-3 years"),
    MitigationStrategy("laser_ablation", "Laser Ablation",
                       "Use focused lasers to vaporize material and create thrust",
                       "Medium", "High", "3-7 years"),
    MitigationStrategy("solar_sail", "Solar Sail Attachment",
                       "Attach reflective sails to use solar radiation pressure",
                       "Low to Medium", "Low", "2-4 years"),
    MitigationStrategy("mass_driver", "Mass Driver Installation",
                       "Install a device to eject material and create reaction force",
                       "Medium to High", "High", "4-8 years"),
)
STRATEGIES_BY_ID = {s.id: s for s in MITIGATION_STRATEGIES}

GRID_SIZE = 4
PASSING_SCORE = 2


def size_bucket(diameter_km: float) -> str:
    if diameter_km < 0.5:
        return "small"
    if diameter_km < 2.0:
        return "medium"
    return "large"


# -----------------------------
# Free-choice grid scoring
# -----------------------------

def strategy_score(strategy_id: str, asteroid: AsteroidProfile) -> int:
    size = size_bucket(asteroid.diameter_km)
    hazardous = asteroid.is_hazardous
    score = 0

    if strategy_id == "kinetic_impactor" and size in ("small", "medium"):
        score += 2
    if strategy_id == "gravity_tractor" and (size == "large" or hazardous):
        score += 2
    if strategy_id == "nuclear_deflection" and (hazardous or size == "large"):
        score += 2
    if strategy_id == "laser_ablation" and size in ("small", "medium"):
        score += 2
    if strategy_id == "solar_sail" and size == "small" and not hazardous:
        score += 2
    if strategy_id == "mass_driver" and size in ("medium", "large"):
        score += 2

    # bonus combinations
    if hazardous and strategy_id in ("nuclear_deflection", "gravity_tractor"):
        score += 1
    if size == "small" and strategy_id in ("kinetic_impactor", "solar_sail"):
        score += 1
    return score


def is_strategy_appropriate(strategy: Union[MitigationStrategy, str], asteroid: AsteroidProfile) -> bool:
    strategy_id = strategy if isinstance(strategy, str) else strategy.id
    return strategy_score(strategy_id, asteroid) >= PASSING_SCORE


def draw_strategy_grid(rng: random.Random) -> list[MitigationStrategy]:
    return rng.sample(list(MITIGATION_STRATEGIES), GRID_SIZE)


# -----------------------------
# Forced-choice approach dialog
# -----------------------------

@dataclass(frozen=True)
class ApproachOption:
    key: str
    title: str
    description: str
    is_correct: bool


APPROACH_OPTIONS = {o.key: o for o in (
    ApproachOption("kinetic_impactor", "Kinetic Impactor",
                   "A spacecraft collides with the asteroid to change its velocity.", True),
    ApproachOption("gravitational_tractor", "Gravitational Tractor",
                   "A nearby spacecraft uses gravity to gently tug it off course.", True),
    ApproachOption("laser_ablation_correct", "Laser Ablation",
                   "Focused lasers vaporize material, creating continuous thrust over time.", True),
    ApproachOption("nuclear_explosions", "Nuclear Explosions",
                   "Detonations near the surface impart a large, rapid trajectory change.", True),
    ApproachOption("bombing_asteroid", "Bombing the Asteroid",
                   "Fragmentation increases risk; debris can still impact Earth.", False),
    ApproachOption("attaching_rocket", "Attaching a Rocket",
                   "Impractical anchoring and control; insufficient thrust at scale.", False),
    ApproachOption("teleport_to_sun", "Teleport It to the Sun",
                   "Teleportation does not exist; orbital mechanics are non-trivial.", False),
    ApproachOption("global_fireworks_confuse", "Global Fireworks to 'Confuse' It",
                   "Fireworks have negligible impulse and do not work in space.", False),
    ApproachOption("backyard_slingshots", "Backyard Slingshots",
                   "Momentum is many orders of magnitude too small.", False),
    ApproachOption("reflective_foil", "Cover It in Reflective Foil",
                   "Radiation pressure is far too weak for urgent deflection.", False),
    ApproachOption("shoot_with_gun", "Shoot It with a Gun",
                   "Projectiles are trivial compared to asteroid mass and momentum.", False),
    ApproachOption("ask_goku", "Ask Goku to Deflect It",
                   "Fictional character; not an actionable mitigation strategy.", False),
)}
CORRECT_OPTION_KEYS = tuple(k for k, o in APPROACH_OPTIONS.items() if o.is_correct)
WRONG_OPTION_KEYS = tuple(k for k, o in APPROACH_OPTIONS.items() if not o.is_correct)
WRONG_OPTIONS_SHOWN = 3


def draw_approach_options(rng: random.Random) -> list[ApproachOption]:
    """One correct and three wrong options, drawn without replacement, shuffled."""
    keys = [rng.choice(CORRECT_OPTION_KEYS)] + rng.sample(WRONG_OPTION_KEYS, WRONG_OPTIONS_SHOWN)
    rng.shuffle(keys)
    return [APPROACH_OPTIONS[k] for k in keys]


# -----------------------------
# Evaluators
# -----------------------------

@dataclass(frozen=True)
class GridChoice:
    strategy: MitigationStrategy
    asteroid: AsteroidProfile


@dataclass(frozen=True)
class DialogChoice:
    option: ApproachOption


def evaluate(choice: Union[GridChoice, DialogChoice]) -> bool:
    if isinstance(choice, GridChoice):
        return is_strategy_appropriate(choice.strategy, choice.asteroid)
    if isinstance(choice, DialogChoice):
        return choice.option.is_correct
    raise TypeError(f"Unknown choice type {type(choice).__name__}")


# -----------------------------
# Question + feedback text
# -----------------------------

def mitigation_question(asteroid: AsteroidProfile, rng: random.Random) -> str:
    a = asteroid
    d = f"{a.diameter_km:.2f}"
    templates = {
        "size_velocity": (f"Given that {a.name} is {d}km in diameter and traveling at {a.velocity_kms:g}km/s, "
                          "which mitigation strategy would be most effective?"),
        "hazard_density": (f"This {'potentially hazardous' if a.is_hazardous else 'near-Earth'} asteroid has a "
                           f"density of {a.density_kgm3:g}kg/m³. What approach would you recommend?"),
        "trajectory_analysis": (f"With {a.name}'s current trajectory and properties, how would you prioritize "
                                "our planetary defense options?"),
        "deflection_probability": ("Considering the size and velocity of this asteroid, which method would "
                                   "provide the best chance of deflection?"),
        "threat_assessment": (f"The asteroid {a.name} presents a {'significant' if a.is_hazardous else 'moderate'} "
                              "threat level. Which mitigation approach balances effectiveness with feasibility?"),
        "comprehensive_analysis": (f"Given {a.name}'s physical properties ({d}km, {a.density_kgm3:g}kg/m³, "
                                   f"{a.velocity_kms:g}km/s), what's your recommended planetary defense strategy?"),
    }
    if a.is_hazardous:
        return templates["threat_assessment"]
    if a.diameter_km > 1.0:
        return templates["size_velocity"]
    return templates[rng.choice(list(templates))]


def feedback_quality(strategy_id: str, asteroid: AsteroidProfile) -> str:
    d = asteroid.diameter_km
    excellent = {
        "kinetic_impactor": d < 1.0,
        "gravity_tractor": d > 0.5,
        "nuclear_deflection": asteroid.is_hazardous and d > 1.0,
        "laser_ablation": d < 2.0,
        "solar_sail": not asteroid.is_hazardous,
        "mass_driver": d > 0.3,
    }
    if excellent.get(strategy_id, False):
        return "excellent"
    return "good" if strategy_score(strategy_id, asteroid) >= PASSING_SCORE else "poor"


def strategy_feedback(strategy: MitigationStrategy, asteroid: AsteroidProfile) -> str:
    n = asteroid.name
    d = f"{asteroid.diameter_km:.2f}"
    kind = "potentially hazardous" if asteroid.is_hazardous else "near-Earth"
    texts = {
        "kinetic_impactor": {
            "excellent": (f"Outstanding choice! A kinetic impactor is perfectly suited for {n}. Given its {d}km "
                          f"diameter and {asteroid.velocity_kms:g}km/s velocity, the collision would create a "
                          f"velocity change of approximately {asteroid.velocity_kms * 0.01:.2f} km/s."),
            "good": (f"Good choice! A kinetic impactor would be effective for {n}. The direct collision approach "
                     "provides immediate results."),
            "poor": (f"While kinetic impactors can work, {n}'s size might make this approach less efficient. "
                     "Consider the asteroid's composition and structure."),
        },
        "gravity_tractor": {
            "excellent": (f"Excellent strategic thinking! A gravity tractor is ideal for {n}. It provides precise "
                          f"control over the deflection, which is crucial for a {kind} asteroid."),
            "good": (f"A gravity tractor is a sophisticated approach. For {n}, it would provide precise control, "
                     "though it requires more time and fuel than other options."),
            "poor": (f"A gravity tractor might be overkill for {n}. Consider the asteroid's size and the time "
                     "constraints for deflection."),
        },
        "nuclear_deflection": {
            "excellent": (f"Bold but potentially necessary choice! Nuclear deflection could be the only viable "
                          f"option for {n} given its {d}km size."),
            "good": (f"Nuclear deflection is the most powerful option. For {n}, it could provide the necessary "
                     "impulse, though it requires careful political and environmental consideration."),
            "poor": (f"Nuclear deflection might be excessive for {n}. Consider the asteroid's size and less "
                     "extreme alternatives."),
        },
        "laser_ablation": {
            "excellent": (f"Innovative approach! Laser ablation could work well for {n}; continuous thrust from "
                          "vaporized material would gradually change its orbit."),
            "good": (f"Laser ablation would work for {n}, but it requires significant power and precise "
                     "targeting capabilities."),
            "poor": (f"Laser ablation might not provide enough thrust for {n}. Consider the asteroid's size and "
                     "the power requirements."),
        },
        "solar_sail": {
            "excellent": (f"Elegant solution! Solar sails offer a sustainable approach for {n} with minimal fuel "
                          "requirements."),
            "good": (f"Solar sails are cost-effective for {n} but might require more time than other "
                     "approaches."),
            "poor": (f"Solar sails might not provide enough force for {n}. Consider the asteroid's size and the "
                     "time available for deflection."),
        },
        "mass_driver": {
            "excellent": (f"Brilliant engineering solution! A mass driver ejecting surface material would give "
                          f"{n} continuous thrust."),
            "good": (f"A mass driver would provide continuous thrust by ejecting material from {n}'s surface, "
                     "especially if a base can be established."),
            "poor": (f"A mass driver might be too complex for {n}. Consider the asteroid's composition and the "
                     "feasibility of installation."),
        },
    }
    quality = feedback_quality(strategy.id, asteroid)
    by_quality = texts.get(strategy.id)
    if not by_quality:
        return ("Interesting choice! This strategy could be effective depending on the specific "
                "circumstances and available resources.")
    return by_quality[quality]
