"""
Streamlit page — Compile History.
"""
import streamlit as st
import httpx
import pandas as pd

from pivotdax.core.config import get_settings

API_BASE = f"{get_settings().api_base_url.rstrip('/')}/api/pivotdata"

st.set_page_config(page_title="Compile History", layout="wide")
st.title("Compile History")
st.caption("Recent slice compilations recorded in `pivot_compile_logs`.")

limit = st.slider("Rows", min_value=10, max_value=500, value=50, step=10)

try:
    resp = httpx.get(f"{API_BASE}/history", params={"limit": limit}, timeout=10)
    resp.raise_for_status()
    history = resp.json().get("history", [])
except httpx.HTTPError as exc:
    st.error(f"Could not load history: {exc}")
    st.stop()

if not history:
    st.info("No compilations logged yet.")
else:
    only_failures = st.checkbox("Only failed compilations")
    if only_failures:
        history = [h for h in history if not h["compile_ok"]]
    df = pd.DataFrame(history)
    st.dataframe(df, use_container_width=True)
