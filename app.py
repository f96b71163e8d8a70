"""
School Network Expense Model - Streamlit shell.
All expenses by year, monthly distribution per expense, month line items
with edit/save (this month or rest of year), debt service and exports.
Requires: streamlit, plotly, pandas, numpy
Run: streamlit run app.py
"""

import streamlit as st
import plotly.graph_objects as go
import pandas as pd
import numpy as np

from categories import CATEGORIES, SECTION_LABELS, Section, categories_in
from config import CAPEX_SCENARIOS, MONTHS, NUM_YEARS, SCENARIO_PRESETS, configure_logging, get_parameters
from engine import ExpenseEngine
from errors import DriversNotReady
from line_items import items_to_records, items_total, line_item_from_dict

configure_logging()
st.set_page_config(page_title="School Network · Expense Model", layout="wide", initial_sidebar_state="expanded")

COLORS = {
    "primary": "#0F2B46", "accent": "#1B9AAA", "revenue": "#1B9AAA", "costs": "#E63946",
    "ebitda": "#06D6A0", "cash": "#4361EE", "muted": "#6B7280",
    "staff": "#2563EB", "operational": "#16A34A", "educational": "#9333EA",
    "business": "#EA580C", "other": "#6B7280", "capex": "#DC2626", "debtService": "#CA8A04",
}

st.markdown("""
<style>
    .stApp { background: #F8F9FC; }
    [data-testid="stSidebar"] { background-color: #FFFFFF !important; border-right: 1px solid #E5E7EB; }
    .metric-card { background: #FFFFFF; border-radius: 8px; padding: 1.2rem; border: 1px solid #E5E7EB; margin-bottom: 1rem; }
    .metric-label { font-size: 0.75rem; font-weight: 600; color: #6B7280; text-transform: uppercase; }
    .metric-value { font-size: 1.6rem; font-weight: 700; color: #0F2B46; }
    .header-box { background: #0F2B46; color: white; padding: 1.5rem; border-radius: 10px; margin-bottom: 2rem; }
    .header-box h1, .header-box p { color: white !important; margin: 0; }
</style>
""", unsafe_allow_html=True)

def fmt_brl(val):
    if val is None or pd.isnull(val): return "R$ 0"
    return ("-" if val < 0 else "") + "R$ " + f"{abs(val):,.0f}".replace(",", ".")

def fmt_millions(val):
    if val is None or pd.isnull(val): return "R$ 0"
    if abs(val) >= 1000000: return f"R$ {val/1000000:.1f}M"
    return f"R$ {val/1000:.0f}K"

def get_layout(title=""):
    return dict(
        title=dict(text=title, font=dict(size=16, color=COLORS["primary"])),
        plot_bgcolor="white", paper_bgcolor="white", margin=dict(t=50, b=30, l=50, r=20),
        xaxis=dict(showgrid=True, gridcolor="#F3F4F6"), yaxis=dict(showgrid=True, gridcolor="#F3F4F6")
    )

def metric(col, label, value):
    col.markdown(f"<div class='metric-card'><div class='metric-label'>{label}</div>"
                 f"<div class='metric-value'>{value}</div></div>", unsafe_allow_html=True)

# ─────────────────────────────────────────────────────────────
# STATE INIT
# ─────────────────────────────────────────────────────────────
if "engine" not in st.session_state:
    st.session_state["engine"] = ExpenseEngine(get_parameters("realistic"))
    st.session_state["scenario"] = "realistic"

# ─────────────────────────────────────────────────────────────
# SIDEBAR
# ─────────────────────────────────────────────────────────────
st.sidebar.markdown("### School Network Plan")
scenario = st.sidebar.selectbox("Scenario", list(SCENARIO_PRESETS.keys()),
                                index=list(SCENARIO_PRESETS).index(st.session_state["scenario"]),
                                format_func=lambda k: SCENARIO_PRESETS[k]["label"])
capex_keys = list(CAPEX_SCENARIOS.keys())
eng = st.session_state["engine"]
capex = st.sidebar.selectbox("CAPEX / Financing", capex_keys, index=capex_keys.index(eng.capex_scenario),
                             format_func=lambda k: CAPEX_SCENARIOS[k]["name"])
if scenario != st.session_state["scenario"] or capex != eng.capex_scenario:
    st.session_state["engine"] = ExpenseEngine(get_parameters(scenario, {"capexScenario": capex}),
                                               overrides=eng.overrides)
    st.session_state["scenario"] = scenario
    eng = st.session_state["engine"]

page = st.sidebar.radio("Navigation", ["All Expenses", "Expense Detail", "Debt Service", "Overrides & Export"])

try:
    projection = eng.projection()
except DriversNotReady:
    st.info("Loading expense data...")
    st.stop()

# ─────────────────────────────────────────────────────────────
# PAGES
# ─────────────────────────────────────────────────────────────

if page == "All Expenses":
    totals = eng.totals()
    st.markdown("<div class='header-box'><h1>All Expenses - Y0 to Y10</h1>"
                f"<p>{SCENARIO_PRESETS[scenario]['label']} | {CAPEX_SCENARIOS[capex]['name']}</p></div>",
                unsafe_allow_html=True)
    c1, c2, c3 = st.columns(3)
    metric(c1, "All-Years Operating Costs", fmt_brl(totals["total_operating_costs"]))
    metric(c2, "All-Years Cash Out (incl. CAPEX & Debt)", fmt_brl(totals["total_cash_out"]))
    metric(c3, "All-Years Revenue", fmt_brl(totals["revenue"]))

    cols = st.columns(len(Section))
    for col, s in zip(cols, Section):
        v = totals["total_debt_service"] if s is Section.DEBT_SERVICE else totals["sections"][s.value]
        metric(col, SECTION_LABELS[s], fmt_millions(v))

    df = eng.projection_frame()
    year_cols = [c for c in df.columns if c.startswith("Y") or c == "Total"]
    shown = df.drop(columns=["Kind", "Section"]).copy()
    for c in year_cols: shown[c] = shown[c].map(fmt_millions)
    st.dataframe(shown, use_container_width=True, hide_index=True, height=900)

    s = eng.summary_frame()
    fig = go.Figure()
    for sec in Section:
        y = s["total_debt_service"] if sec is Section.DEBT_SERVICE else s[f"{sec.value}_subtotal"]
        fig.add_trace(go.Bar(x=[p.label for p in projection], y=y, name=SECTION_LABELS[sec],
                             marker_color=COLORS[sec.value]))
    fig.add_trace(go.Scatter(x=[p.label for p in projection], y=s["revenue"], name="Revenue",
                             line=dict(color=COLORS["revenue"], width=3)))
    fig.update_layout(barmode="stack", **get_layout("Cash Out by Section vs Revenue"))
    st.plotly_chart(fig, use_container_width=True)

elif page == "Expense Detail":
    col1, col2 = st.columns([2, 1])
    with col1:
        cid = st.selectbox("Expense", list(CATEGORIES), format_func=lambda k: CATEGORIES[k].label)
    with col2:
        y = st.slider("Year", 0, NUM_YEARS - 1, 1)
    cat = CATEGORIES[cid]
    modified = eng.is_modified(cid, y)
    st.markdown(f"### {cat.label} · {projection[y].label}" + (" · *modified*" if modified else ""))
    st.caption(cat.formula)

    monthly = eng.monthly_breakdown(cid, y)
    mdf = pd.DataFrame({"Month": MONTHS, "Value": monthly}).set_index("Month").T
    edited = st.data_editor(mdf, use_container_width=True, key=f"monthly_{cid}_{y}")
    new_vals = [float(v) for v in edited.loc["Value"].tolist()]
    metric(st, f"Annual Total ({projection[y].calendar_year})", fmt_brl(sum(new_vals)))

    b1, b2 = st.columns(2)
    if b1.button("Save Changes", disabled=np.allclose(new_vals, monthly)):
        eng.save_expense({"expenseId": cid, "yearIndex": y, "monthlyValues": new_vals,
                          "annualTotal": sum(new_vals)})
        st.rerun()
    if b2.button("Reset to Computed", disabled=not modified):
        eng.reset_expense(cid, y)
        st.rerun()

    fig = go.Figure(go.Bar(x=MONTHS, y=monthly, marker_color=COLORS[cat.section.value]))
    fig.update_layout(**get_layout("Monthly Distribution"))
    st.plotly_chart(fig, use_container_width=True)

    st.markdown("#### Month Breakdown")
    m = st.selectbox("Month", range(12), format_func=lambda i: MONTHS[i])
    items = eng.month_items(cid, y, m)
    if not items:
        st.info("No detailed breakdown for this month.")
    else:
        idf = pd.DataFrame(items_to_records(items))
        edited_items = st.data_editor(idf, use_container_width=True, num_rows="dynamic",
                                      key=f"items_{cid}_{y}_{m}")
        recs = edited_items.replace({np.nan: None}).to_dict("records")
        new_items = [line_item_from_dict(r) for r in recs]
        for it in new_items:
            if hasattr(it, "role"): it.total = it.quantity * it.monthlySalary
        new_total = items_total(new_items)
        st.caption(f"Month total: {fmt_brl(monthly[m])} · Items total: {fmt_brl(new_total)}")
        s1, s2 = st.columns(2)
        for btn, rest in ((s1, False), (s2, True)):
            label = "Save This Month" if not rest else f"Save {MONTHS[m]}-Dec"
            if btn.button(label, key=f"save_items_{rest}"):
                eng.save_month_detail({"expenseId": cid, "monthIndex": m, "yearIndex": y,
                                       "items": new_items, "newTotal": new_total,
                                       "applyToRestOfYear": rest})
                st.rerun()

elif page == "Debt Service":
    st.markdown(f"## Debt Service: {CAPEX_SCENARIOS[capex]['name']}")
    ds = eng.debt_schedule()
    ds.insert(0, "Year", [p.label for p in projection])
    st.dataframe(ds.drop(columns=["year_index"]).style.format(
        {c: fmt_brl for c in ds.columns if c not in ("Year", "year_index")}),
        use_container_width=True, hide_index=True)
    fig = go.Figure()
    for c in categories_in(Section.DEBT_SERVICE):
        fig.add_trace(go.Bar(x=ds["Year"], y=ds[c.key], name=c.label))
    fig.update_layout(barmode="stack", **get_layout("Debt Service by Component"))
    st.plotly_chart(fig, use_container_width=True)

elif page == "Overrides & Export":
    st.markdown("## Modified Expenses")
    ov = pd.DataFrame(eng.overrides.to_records())
    if ov.empty:
        st.info("No expenses have been modified.")
    else:
        st.dataframe(ov, use_container_width=True, hide_index=True)
        if st.button("Reset All"):
            eng.reset_all(); st.rerun()
    st.download_button("Download All Tables (ZIP)", eng.export_all_to_zip(),
                       file_name="expense_model.zip", mime="application/zip")
