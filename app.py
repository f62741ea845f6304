import streamlit as st
import pandas as pd

from dashboard.api_client import ApiSession
from dashboard.config import API_URL
from dashboard.controller import DashboardController
from dashboard.schema import COLUMNS, EDITABLE_FIELDS, NUMBER
from dashboard.state import NEW_ROW_ID

st.set_page_config(page_title="STOCK DASHBOARD", layout="wide", page_icon="📦")


def notify(message):
    st.session_state.setdefault("messages", []).append(message)


def column_config():
    config = {}
    for c in COLUMNS:
        if c.kind == NUMBER:
            config[c.field] = st.column_config.NumberColumn(c.label, disabled=not c.editable)
        else:
            config[c.field] = st.column_config.TextColumn(c.label, disabled=not c.editable)
    return config


def rows_frame(rows, fields):
    return pd.DataFrame(
        [{f: row.get(f) for f in fields} for row in rows],
        index=[row["id"] for row in rows],
        columns=list(fields),
    )


# --- SESSION ---
with st.sidebar:
    st.header("🔑 CONNEXION")
    base_url = st.text_input("API", value=API_URL)
    token = st.text_input("Bearer token", type="password")
    if st.button("Se connecter") and token:
        ctrl = DashboardController(ApiSession(token=token, base_url=base_url), notify=notify)
        st.session_state["ctrl"] = ctrl
        ctrl.refresh()
    if st.button("Logout"):
        st.session_state.pop("ctrl", None)

st.title("📦 Stock Dashboard")

ctrl = st.session_state.get("ctrl")
if ctrl is None:
    st.info("Renseigne ton token pour charger le stock.")
    st.stop()

# --- FILTRE ---
with st.sidebar:
    st.divider()
    st.header("📅 FILTRE")
    year = st.number_input("Année", value=2024, step=1)
    start_week, end_week = st.slider("Semaines", 1, 53, (1, 53))
    if st.button("Filtrer"):
        ctrl.load_filtered(year=int(year), start_week=start_week, end_week=end_week)
    if st.button("Tout afficher"):
        ctrl.refresh()

for message in st.session_state.pop("messages", []):
    st.warning(message)

state = ctrl.state
fields = [c.field for c in COLUMNS]

# --- ACTIONS ---
c1, c2, c3, c4 = st.columns(4)
if c1.button("➕ Ajouter une ligne"):
    ctrl.add_row()
    st.rerun()
if not state.edit_mode:
    if c2.button("✏️ Modifier"):
        ctrl.enter_edit()
        st.rerun()
else:
    if c3.button("✅ Enregistrer"):
        ctrl.save()
        st.rerun()
    if c4.button("✖️ Annuler"):
        ctrl.cancel()
        st.rerun()

# --- NOUVELLE LIGNE ---
if state.new_row is not None:
    st.subheader("Nouvelle ligne")
    cols = st.columns(len(EDITABLE_FIELDS) + 1)
    for col, field in zip(cols, EDITABLE_FIELDS):
        value = col.text_input(field, value=str(state.new_row.get(field, "")), key=f"new-{field}")
        if value != str(state.new_row.get(field, "")):
            ctrl.edit_field(NEW_ROW_ID, field, value)
    if cols[-1].button("✅"):
        if ctrl.commit_new_row():
            st.rerun()
    if cols[-1].button("✖️"):
        ctrl.discard_new_row()
        st.rerun()

# --- TABLEAU ---
if state.edit_mode:
    rows = [state.editable.get(s["id"], s) for s in state.stocks]
    before = rows_frame(rows, fields)
    after = st.data_editor(before, column_config=column_config(), use_container_width=True, key="stocks")
    for stock_id in after.index:
        for field in EDITABLE_FIELDS:
            old, new = before.at[stock_id, field], after.at[stock_id, field]
            if pd.isna(old) and pd.isna(new):
                continue
            if new != old:
                ctrl.edit_field(stock_id, field, new)
else:
    st.dataframe(
        rows_frame(state.stocks, fields),
        column_config=column_config(),
        use_container_width=True,
    )

st.caption(f"{len(state.stocks)} lignes")
