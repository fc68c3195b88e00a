"""
Streamlit UI -- Pivot Segment Builder.

Features:
  - Sidebar with the field/measure catalog from /metadata
  - Row, column, measure and filter pickers
  - Generated DAX panel and results table with download button
  - Save the current DAX as a named segment
  - List of saved segments
"""
import streamlit as st
import httpx
import pandas as pd

from pivotdax.core.config import get_settings


API_BASE = f"{get_settings().api_base_url.rstrip('/')}/api/pivotdata"
_TIMEOUT = 30

st.set_page_config(
    page_title="Pivot Segment Builder",
    page_icon="bar_chart",
    layout="wide",
    initial_sidebar_state="expanded",
)


if "metadata" not in st.session_state:
    st.session_state.metadata = None

if "dax" not in st.session_state:
    st.session_state.dax = ""

if "rows" not in st.session_state:
    st.session_state.rows = []



def _load_metadata():
    """Fetch /metadata from the API; cache in session_state."""
    try:
        resp = httpx.get(f"{API_BASE}/metadata", timeout=5)
        resp.raise_for_status()
        st.session_state.metadata = resp.json()
    except httpx.HTTPError:
        st.session_state.metadata = None


def _fetch_segments() -> list[dict]:
    try:
        resp = httpx.get(f"{API_BASE}/segments", timeout=3)
        resp.raise_for_status()
        return resp.json()
    except httpx.HTTPError:
        return []


with st.sidebar:
    st.title("Fields")

    if st.button("Refresh metadata", use_container_width=True):
        _load_metadata()

    if st.session_state.metadata is None:
        _load_metadata()

    metadata = st.session_state.metadata

    if metadata:
        st.subheader("Dimensions")
        for d in metadata.get("dimensions", []):
            st.markdown(f"- `{d}`")
        st.subheader("Measures")
        for m in metadata.get("measures", []):
            st.markdown(f"- `{m}`")
    else:
        st.info("API not reachable -- start the FastAPI server first.\n\n```\nuvicorn pivotdax.api.main:app --reload\n```")

    st.divider()

    st.subheader("Saved segments")
    for seg in _fetch_segments():
        with st.expander(seg["name"]):
            st.code(seg["dax"], language="sql")



st.title("Pivot Segment Builder")
st.markdown("Choose rows, columns, measures and filters. The backend compiles the slice into DAX.")

dimensions = (metadata or {}).get("dimensions", [])
measures = (metadata or {}).get("measures", [])

c1, c2, c3 = st.columns(3)
sel_rows = c1.multiselect("Rows", dimensions)
sel_columns = c2.multiselect("Columns", [d for d in dimensions if d not in sel_rows])
sel_measures = c3.multiselect("Measures", measures)

with st.expander("Filters", expanded=False):
    filter_fields = st.multiselect("Filter fields", dimensions, key="filter_fields")
    filters = []
    for field in filter_fields:
        raw = st.text_input(f"Members of {field} (comma-separated)", key=f"members_{field}")
        members = [m.strip() for m in raw.split(",") if m.strip()]
        filters.append({"Field": field, "Members": members})

execute = st.checkbox("Run query and show results", value=True)


if st.button("Generate DAX", type="primary"):
    payload = {
        "Rows": sel_rows,
        "Columns": sel_columns,
        "Measures": sel_measures,
        "Filters": filters,
        "execute": execute,
    }
    with st.spinner("Compiling slice..."):
        try:
            resp = httpx.post(f"{API_BASE}/data", json=payload, timeout=_TIMEOUT)
        except httpx.ConnectError:
            st.error("Cannot reach the API. Start it with:\n```\nuvicorn pivotdax.api.main:app --reload\n```")
            st.stop()
        except httpx.HTTPError as exc:
            st.error(f"Request to the API failed: {exc}")
            st.stop()

    if resp.status_code == 400:
        st.error(resp.json().get("detail", "Invalid slice"))
        st.session_state.dax = ""
        st.session_state.rows = []
    elif resp.status_code != 200:
        st.error(f"API returned {resp.status_code}: {resp.text}")
    else:
        data = resp.json()
        st.session_state.dax = data["dax"]
        st.session_state.rows = data.get("data", [])
        if data.get("execution_error"):
            st.warning(data["execution_error"])
        st.caption(f"{data.get('latency_ms', 0)} ms")


if st.session_state.dax:
    with st.expander("Generated DAX", expanded=True):
        st.code(st.session_state.dax, language="sql")

if st.session_state.rows:
    st.subheader("Results")
    df = pd.DataFrame(st.session_state.rows)
    st.dataframe(df, use_container_width=True)
    st.download_button(
        "Download CSV",
        df.to_csv(index=False),
        file_name="pivot_results.csv",
        mime="text/csv",
    )


st.divider()
st.subheader("Segment details")
seg_name = st.text_input("Segment name", placeholder="Enter Segment Name")
if st.button("Save segment"):
    if not seg_name or not st.session_state.dax:
        st.warning("Please enter a segment name and generate DAX first.")
    else:
        try:
            resp = httpx.post(
                f"{API_BASE}/segment",
                json={"name": seg_name, "dax": st.session_state.dax},
                timeout=_TIMEOUT,
            )
            resp.raise_for_status()
            st.success(resp.json()["status"])
        except httpx.HTTPStatusError as exc:
            st.error(f"API returned {exc.response.status_code}: {exc.response.text}")
        except httpx.HTTPError as exc:
            st.error(f"Error saving segment: {exc}")
