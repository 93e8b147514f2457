"""
PPV Calculator
P(disease | positive) from sensitivity, specificity and prevalence

Usage: streamlit run app.py
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, MutableMapping, NamedTuple, Tuple, Union

import pandas as pd
import streamlit as st

logger = logging.getLogger(__name__)

Number = Union[int, float]

# ============================================================================

# DATA MODEL & DEFAULTS

# ============================================================================

PARAMETER_NAMES = ("sensitivity", "specificity", "prevalence")

DEFAULT_PARAMETERS = {
    "sensitivity": 90.0,
    "specificity": 95.0,
    "prevalence": 5.0,
}

PARAMETER_LABELS = {
    "sensitivity": "Sensitivity (True Positive Rate)",
    "specificity": "Specificity (True Negative Rate)",
    "prevalence": "Prevalence (Percent with disease)",
}

POPULATION = 10_000

# Display range shared by the number box and the slider
PCT_MIN = 0.0
PCT_MAX = 100.0
PCT_STEP = 0.1
RANGE_HINT = f"Percent, {PCT_MIN:g} to {PCT_MAX:g} in steps of {PCT_STEP:g}"

NA = "n/a"


@dataclass(frozen=True)
class Parameters:
    """Immutable snapshot of the three percentages (0-100)."""

    sensitivity_pct: float = DEFAULT_PARAMETERS["sensitivity"]
    specificity_pct: float = DEFAULT_PARAMETERS["specificity"]
    prevalence_pct: float = DEFAULT_PARAMETERS["prevalence"]

    def as_fractions(self) -> Tuple[float, float, float]:
        """Return (sensitivity, specificity, prevalence) as fractions in [0, 1]."""
        return (
            self.sensitivity_pct / 100,
            self.specificity_pct / 100,
            self.prevalence_pct / 100,
        )


class ParameterStore:
    """
    Holds the three percentages in a mutable mapping.

    In the app the mapping is ``st.session_state``; any dict works. ``set`` is
    the only mutation path and stores values exactly as given, so a value read
    back is the value that was written.
    """

    def __init__(self, state: MutableMapping):
        self._state = state

    @staticmethod
    def key(name: str) -> str:
        if name not in PARAMETER_NAMES:
            raise KeyError(f"Unknown parameter: {name!r}")
        return f"{name}_pct"

    def initialise(self) -> None:
        """Seed any missing parameter with its default."""
        for name in PARAMETER_NAMES:
            if self.key(name) not in self._state:
                self._state[self.key(name)] = DEFAULT_PARAMETERS[name]

    def get(self, name: str) -> float:
        return self._state[self.key(name)]

    def set(self, name: str, pct: float) -> None:
        logger.debug("%s set to %s", name, pct)
        self._state[self.key(name)] = pct

    def reset(self) -> None:
        for name in PARAMETER_NAMES:
            self.set(name, DEFAULT_PARAMETERS[name])

    def snapshot(self) -> Parameters:
        return Parameters(
            sensitivity_pct=self.get("sensitivity"),
            specificity_pct=self.get("specificity"),
            prevalence_pct=self.get("prevalence"),
        )


class ConfusionCells(NamedTuple):
    """Counts by true status x test outcome over a hypothetical population."""

    tp: Number
    fp: Number
    tn: Number
    fn: Number

    @property
    def diseased(self) -> Number:
        return self.tp + self.fn

    @property
    def healthy(self) -> Number:
        return self.tn + self.fp

    @property
    def total(self) -> Number:
        return self.diseased + self.healthy


# ============================================================================

# CORE MATH FUNCTIONS

# ============================================================================

def ppv(sensitivity: float, specificity: float, prevalence: float) -> float:
    """
    Positive predictive value P(disease | +) by Bayes' theorem.

    Inputs are fractions. Returns ``math.nan`` when the denominator is zero
    (e.g. prevalence 0 with specificity 1), never raises.
    """
    tp = sensitivity * prevalence
    fp = (1 - specificity) * (1 - prevalence)
    denom = tp + fp
    if denom == 0:
        return math.nan
    return tp / denom


def round_half_up(x: float) -> Number:
    """
    Round to the nearest integer, halves upward. Non-finite values pass through as NaN.

    ``x + 0.5`` is itself rounded, so 0.49999999999999994 gives 1; step-0.1
    inputs never land that close to a half.
    """
    if not math.isfinite(x):
        return math.nan
    return math.floor(x + 0.5)


def confusion_cells(sensitivity: float, specificity: float, prevalence: float,
                    population: int = POPULATION) -> ConfusionCells:
    """
    Project the probabilities onto ``population`` people.

    Only the group sizes and TP/TN are rounded; FN and FP are the exact
    complements, so TP+FN and TN+FP always sum to the group totals.
    """
    diseased = round_half_up(population * prevalence)
    healthy = population - diseased

    tp = round_half_up(diseased * sensitivity)
    fn = diseased - tp
    tn = round_half_up(healthy * specificity)
    fp = healthy - tn

    return ConfusionCells(tp=tp, fp=fp, tn=tn, fn=fn)


# ============================================================================

# FORMATTING HELPERS

# ============================================================================

def format_pct(x: float) -> str:
    """Fraction -> percentage with 2 decimals, or n/a."""
    return f"{x * 100:.2f}%" if math.isfinite(x) else NA


def format_param(pct: float) -> str:
    """Percentage -> 1 decimal, or n/a."""
    return f"{pct:.1f}%" if math.isfinite(pct) else NA


def format_count(n: Number) -> str:
    # Exact int differences can exceed the float range
    if isinstance(n, int):
        return f"{n:,}"
    return f"{n:,.0f}" if math.isfinite(n) else NA


def confusion_table(cells: ConfusionCells) -> pd.DataFrame:
    """2x2 breakdown with group totals, formatted for display."""
    return pd.DataFrame(
        {
            "Test +": [format_count(cells.tp), format_count(cells.fp)],
            "Test −": [format_count(cells.fn), format_count(cells.tn)],
            "Total": [format_count(cells.diseased), format_count(cells.healthy)],
        },
        index=["Disease present", "Disease absent"],
    )


def clamp_to_display(pct: float) -> float:
    """Slider mirror of a store value. Non-finite entries park the slider at 0."""
    if not math.isfinite(pct):
        return PCT_MIN
    return min(max(pct, PCT_MIN), PCT_MAX)


# ============================================================================

# WIDGET BINDING

# ============================================================================

def widget_keys(name: str) -> Tuple[str, str]:
    """Session-state keys of the (number box, slider) pair for ``name``."""
    return f"{name}_number", f"{name}_slider"


def sync_widgets(state: MutableMapping, name: str, overwrite: bool = False) -> None:
    """Point both widgets of ``name`` at the store value."""
    number_key, slider_key = widget_keys(name)
    pct = ParameterStore(state).get(name)
    if overwrite or number_key not in state:
        state[number_key] = pct
    if overwrite or slider_key not in state:
        state[slider_key] = clamp_to_display(pct)


def on_number_change(name: str) -> None:
    number_key, slider_key = widget_keys(name)
    value = st.session_state[number_key]
    # A cleared box comes back as None
    pct = math.nan if value is None else value
    ParameterStore(st.session_state).set(name, pct)
    st.session_state[slider_key] = clamp_to_display(pct)


def on_slider_change(name: str) -> None:
    number_key, slider_key = widget_keys(name)
    pct = st.session_state[slider_key]
    ParameterStore(st.session_state).set(name, pct)
    st.session_state[number_key] = pct


def on_reset() -> None:
    ParameterStore(st.session_state).reset()
    for name in PARAMETER_NAMES:
        sync_widgets(st.session_state, name, overwrite=True)
    logger.info("Parameters reset to defaults")


# ============================================================================

# STREAMLIT UI

# ============================================================================

CARDS = [
    ("tp", "True Positives", "Have disease & test +"),
    ("fp", "False Positives", "No disease but test +"),
    ("tn", "True Negatives", "No disease & test −"),
    ("fn", "False Negatives", "Have disease but test −"),
]


def render_control(name: str, store: ParameterStore) -> None:
    """Label, number box and slider bound to one store value."""
    number_key, slider_key = widget_keys(name)
    label = PARAMETER_LABELS[name]

    with st.container(border=True):
        col_label, col_input = st.columns([3, 1])
        with col_label:
            st.markdown(f"**{label}**")
            st.caption(RANGE_HINT)
        with col_input:
            # value=None lets the box be cleared; the actual value comes from session state
            st.number_input(
                label,
                value=None,
                step=PCT_STEP,
                placeholder=f"{PCT_MIN:g}–{PCT_MAX:g}",
                help=RANGE_HINT,
                format="%.1f",
                key=number_key,
                on_change=on_number_change,
                args=(name,),
                label_visibility="collapsed",
            )
        st.slider(
            label,
            min_value=PCT_MIN,
            max_value=PCT_MAX,
            step=PCT_STEP,
            key=slider_key,
            on_change=on_slider_change,
            args=(name,),
            label_visibility="collapsed",
        )
        st.caption(format_param(store.get(name)))


def render_result(params: Parameters, value: float) -> None:
    with st.container(border=True):
        st.subheader("Result")
        st.metric("PPV = P(disease | +)", format_pct(value))
        st.caption("Formula: `(sens × prev) / (sens × prev + (1 − spec) × (1 − prev))`")

        chips: Dict[str, float] = {
            "Sensitivity": params.sensitivity_pct,
            "Specificity": params.specificity_pct,
            "Prevalence": params.prevalence_pct,
        }
        for col, (label, pct) in zip(st.columns(3), chips.items()):
            with col:
                st.metric(label, format_param(pct))


def render_breakdown(cells: ConfusionCells, population: int = POPULATION) -> None:
    with st.container(border=True):
        st.markdown(f"#### Example per {population:,} people (approx.)")
        for col, (field, title, subtitle) in zip(st.columns(4), CARDS):
            with col:
                st.metric(title, format_count(getattr(cells, field)))
                st.caption(subtitle)

        with st.expander("🔢 Confusion matrix", expanded=False):
            st.table(confusion_table(cells))


def main():
    logging.basicConfig(level=logging.INFO)

    st.set_page_config(
        page_title="PPV Calculator",
        page_icon="🩺",
        layout="centered",
    )

    st.markdown("""
        <style>
        .main-header {font-size: 2rem; font-weight: 600; letter-spacing: -0.01em;}
        </style>
    """, unsafe_allow_html=True)

    # Header
    st.markdown('<p class="main-header">P(disease | positive) — PPV Calculator</p>', unsafe_allow_html=True)
    st.markdown(
        "Adjust the sliders for **Sensitivity**, **Specificity**, and **Prevalence**. "
        "The result shows the **Positive Predictive Value** (PPV) = P(disease | +)."
    )

    # ========================================================================
    # CONTROLS
    # ========================================================================

    store = ParameterStore(st.session_state)
    store.initialise()
    for name in PARAMETER_NAMES:
        sync_widgets(st.session_state, name)
        render_control(name, store)

    st.button("Reset to defaults", key="reset", on_click=on_reset)

    # ========================================================================
    # RESULTS
    # ========================================================================

    params = store.snapshot()
    sensitivity, specificity, prevalence = params.as_fractions()

    value = ppv(sensitivity, specificity, prevalence)
    if not math.isfinite(value):
        logger.info("PPV undefined for %s", params)
    cells = confusion_cells(sensitivity, specificity, prevalence, POPULATION)

    render_result(params, value)
    render_breakdown(cells, POPULATION)

    st.markdown("---")
    st.caption(
        "Notes: Sensitivity = P(+ | disease). Specificity = P(− | no disease). "
        "Prevalence = P(disease). PPV depends on prevalence: even highly accurate "
        "tests can have low PPV when the disease is rare."
    )


if __name__ == "__main__":
    main()
