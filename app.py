"""
AI Disruption Monte Carlo - Interactive Dashboard

Simulates macro indicators, asset classes and skill values from 2024 to 2040
as seeded Brownian walks that accelerate through five AI disruption phases,
with optional policy interventions chosen at decision checkpoints.

Run with: streamlit run app.py
"""

import streamlit as st
import plotly.graph_objects as go
import plotly.express as px

from disruption.aggregate import percentiles_frame
from disruption.config import (
    PHASES,
    REGISTRIES,
    SCENARIOS,
    SimulationParams,
    scenario_labels,
)
from disruption.decisions import DecisionRecord, DecisionSession, build_decision_state
from disruption.interventions import INTERVENTIONS
from disruption.simulator import compare_variables, run_simulation

# ── Page config ──────────────────────────────────────────────────────
st.set_page_config(
    page_title="AI Disruption Monte Carlo",
    layout="wide",
    initial_sidebar_state="expanded",
)

COLORS = px.colors.qualitative.Set2
PHASE_COLORS = ["#4ade80", "#facc15", "#f97316", "#ef4444", "#a855f7"]
VIEW_LABELS = {"macro": "Macro Variables", "assets": "Asset Classes", "skills": "Skill Values"}

# Common layout for all charts
CHART_THEME = dict(
    template="simple_white",
    paper_bgcolor="rgba(0,0,0,0)",
    plot_bgcolor="rgba(0,0,0,0)",
    font=dict(color="#262730"),
)


# ── Cached simulation calls ──────────────────────────────────────────
# Decisions are passed as (year, intervention id) pairs and rebuilt
# from the catalog inside each cached call.
def _params(num_paths, seed, scenario):
    return SimulationParams(num_paths=num_paths, seed=seed, scenario=scenario)


def _records(decisions):
    return [DecisionRecord.create(year, action_id) for year, action_id in decisions]


@st.cache_data
def simulate(variable_key, num_paths, seed, scenario, decisions):
    return run_simulation(variable_key, _params(num_paths, seed, scenario), _records(decisions))


@st.cache_data
def rank_registry(view, seed, scenario):
    return compare_variables(REGISTRIES[view], _params(200, seed, scenario))


@st.cache_data
def decision_snapshot(year, num_paths, seed, scenario, decisions):
    return build_decision_state(year, _params(num_paths, seed, scenario), _records(decisions))


# ── Helper: percentile band chart ────────────────────────────────────
def band_chart(results, show_paths, decision_years=()):
    rows = results.percentiles
    years = [r.year for r in rows]
    fig = go.Figure()

    for i, phase in enumerate(PHASES):
        fig.add_vrect(
            x0=phase.start, x1=phase.end, fillcolor=PHASE_COLORS[i],
            opacity=0.06, line_width=0, layer="below",
        )

    # Outer band P10-P90, inner band P25-P75
    for lo, hi, alpha, name in (("p10", "p90", 0.12, "P10-P90"), ("p25", "p75", 0.25, "P25-P75")):
        fig.add_trace(go.Scatter(
            x=years, y=[getattr(r, hi) for r in rows], mode="lines",
            line=dict(width=0), showlegend=False, hoverinfo="skip",
        ))
        fig.add_trace(go.Scatter(
            x=years, y=[getattr(r, lo) for r in rows], mode="lines",
            line=dict(width=0), fill="tonexty",
            fillcolor=f"rgba(31,119,180,{alpha})", name=name,
        ))

    fig.add_trace(go.Scatter(
        x=years, y=[r.median for r in rows], mode="lines", name="Median",
        line=dict(color="#1f77b4", width=2.5),
    ))
    fig.add_trace(go.Scatter(
        x=years, y=[r.mean for r in rows], mode="lines", name="Mean",
        line=dict(color="#7f7f7f", width=1, dash="dot"),
    ))

    if show_paths:
        for i, path in enumerate(results.sample_paths):
            fig.add_trace(go.Scatter(
                x=[p.year for p in path], y=[p.value for p in path], mode="lines",
                name=f"Path {i + 1}", opacity=0.6,
                line=dict(color=COLORS[i % len(COLORS)], width=1),
            ))

    for year in decision_years:
        fig.add_vline(x=year, line=dict(color="#d62728", width=1, dash="dash"))

    fig.update_layout(
        **CHART_THEME,
        title=dict(text=results.config.label, font=dict(size=14)),
        yaxis_title="Value", height=420,
        margin=dict(l=50, r=20, t=35, b=30),
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=-0.25, font=dict(size=10)),
    )
    return fig


def comparison_chart(ranking, title):
    labels = [summary.label for _, summary in ranking]
    medians = [summary.final_median for _, summary in ranking]
    fig = go.Figure(go.Bar(
        x=medians, y=labels, orientation="h", marker_color="#4e79a7",
        error_x=dict(
            type="data", symmetric=False,
            array=[s.final_p90 - s.final_median for _, s in ranking],
            arrayminus=[s.final_median - s.final_p10 for _, s in ranking],
        ),
    ))
    fig.add_vline(x=100, line=dict(color="#999", width=1, dash="dash"))
    fig.update_layout(
        **CHART_THEME,
        title=dict(text=title, font=dict(size=14)),
        xaxis_title="2040 median (bars: P10-P90)",
        yaxis=dict(autorange="reversed"),
        height=60 + 32 * len(ranking),
        margin=dict(l=170, r=20, t=40, b=30),
    )
    return fig


# ── Session state ────────────────────────────────────────────────────
if "decisions" not in st.session_state:
    st.session_state.decisions = DecisionSession()
if "seed" not in st.session_state:
    st.session_state.seed = 42
session = st.session_state.decisions

# ── Sidebar ──────────────────────────────────────────────────────────
st.sidebar.title("Simulation Controls")

labels_by_scenario = scenario_labels()
scenario = st.sidebar.selectbox(
    "Scenario", list(SCENARIOS), format_func=labels_by_scenario.get,
)
num_paths = st.sidebar.slider("Simulated Paths", 50, 500, 200, step=50)


def _reroll():
    st.session_state.seed += 1


seed_col, reroll_col = st.sidebar.columns([2, 1])
seed = int(seed_col.number_input("Seed", min_value=0, step=1, key="seed"))
reroll_col.button("Re-roll", help="Advance the seed by one", on_click=_reroll)

show_paths = st.sidebar.checkbox("Show sample paths", value=False)

with st.sidebar.expander("Policy Decisions", expanded=False):
    decisions_enabled = st.toggle(
        "Enable decision checkpoints", value=False,
        help="Pause at 2026, 2028, 2031 and 2035 to choose a policy intervention",
    )
    if session.history:
        for record in session.history:
            label = record.intervention.label if record.intervention else record.intervention_id
            st.markdown(f"- **{record.year}**: {label}")
    else:
        st.caption("No decisions yet.")
    if st.button("Reset decisions"):
        session.reset()
        st.rerun()

decision_key = tuple((r.year, r.intervention_id) for r in session.history) if decisions_enabled else ()

# ── Header ───────────────────────────────────────────────────────────
st.title("AI Disruption Monte Carlo")
st.markdown(
    f"Brownian motion simulation · {num_paths} paths · "
    f"{PHASES[0].start}→{PHASES[-1].end} · What happens when AI takes every job?"
)

phase_cols = st.columns([p.end - p.start for p in PHASES])
for col, phase in zip(phase_cols, PHASES):
    col.caption(f"**{phase.name}**  \n{phase.start}–{phase.end}")

# ── Decision checkpoint ──────────────────────────────────────────────
if decisions_enabled:
    # Re-run on every pass so an open checkpoint follows scenario changes
    due = session.next_checkpoint_year()
    if due is not None:
        snapshot = decision_snapshot(due, num_paths, seed, scenario, decision_key)
        session.advance(due, snapshot, scenario)

    checkpoint = session.pending
    if checkpoint is not None:
        with st.container(border=True):
            st.subheader(f"Decision Point: {checkpoint.year}")
            recommended = INTERVENTIONS[checkpoint.recommended]
            st.info(f"**Recommendation:** {recommended.label}. {recommended.description}")

            option_cols = st.columns(len(checkpoint.applicable))
            for col, action_id in zip(option_cols, checkpoint.applicable):
                action = INTERVENTIONS[action_id]
                effects = ", ".join(
                    f"{key} ({e.drift:+g})" for key, e in list(action.effects.items())[:2]
                ) or "No effects"
                if col.button(action.label, key=f"act_{action_id}", help=f"{action.description}. {effects}"):
                    session.resolve(action_id)
                    st.rerun()

            accept_col, skip_col = st.columns(2)
            if accept_col.button("Accept recommendation", type="primary"):
                session.accept_recommendation()
                st.rerun()
            if skip_col.button("Skip decision"):
                session.skip()
                st.rerun()

# ── Main view ────────────────────────────────────────────────────────
view = st.radio("View", list(REGISTRIES), format_func=VIEW_LABELS.get, horizontal=True)
registry = REGISTRIES[view]
variable_key = st.selectbox(
    "Variable", list(registry), format_func=lambda k: registry[k].label,
)

results = simulate(variable_key, num_paths, seed, scenario, decision_key)
final = results.final

c1, c2, c3, c4 = st.columns(4)
c1.metric("Start", f"{results.config.base:.1f}")
c2.metric(
    f"{final.year} Median", f"{final.median:.1f}",
    f"{final.median - results.config.base:+.1f}",
)
c3.metric("P10 – P90", f"{final.p10:.1f} – {final.p90:.1f}")
c4.metric("Mean", f"{final.mean:.1f}")

st.plotly_chart(
    band_chart(results, show_paths, [year for year, _ in decision_key]),
    use_container_width=True,
)

if view != "macro":
    ranking = rank_registry(view, seed, scenario)
    st.plotly_chart(
        comparison_chart(ranking, f"{VIEW_LABELS[view]}: {PHASES[-1].end} Outcomes"),
        use_container_width=True,
    )

with st.expander("Percentile table", expanded=False):
    st.dataframe(percentiles_frame(results.percentiles), hide_index=True, use_container_width=True)

with st.expander("How this works", expanded=False):
    st.markdown("""
- **The model**: each variable is a Brownian walk with yearly drift and volatility. Both are amplified as the simulation enters later phases (AI Workers ×1.3/×1.2, Physical Robots ×1.6/×1.5, AGI ×2.0/×1.8) and scaled by the scenario.
- **Reading the chart**: the solid line is the median path. The dark band holds the middle 50% of simulated futures (P25–P75), the light band 80% (P10–P90).
- **Decisions**: an intervention shifts drift and volatility of the variables it touches. Its effect halves every five years.
- **Seeds**: the same seed always replays the same futures. Re-roll to see a fresh draw.
""")

# ── Footer ───────────────────────────────────────────────────────────
st.divider()
st.caption(
    "Brownian motion · Mulberry32 PRNG · Box-Muller transform · phase-accelerated drift/vol. "
    "This is a scenario planning tool, not financial advice. All parameters are illustrative estimates."
)
