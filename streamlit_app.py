# streamlit_app.py
import json
import time

import requests
import streamlit as st

API_BASE = st.secrets.get("API_BASE", "http://localhost:8080")

EXAMPLE_BATCH = {
    "count": 1,
    "visits": [
        {
            "store_id": "RP00001",
            "image_url": ["https://www.gstatic.com/webp/gallery/2.jpg"],
            "visit_time": "2024-01-01T10:00:00",
        }
    ],
}

st.set_page_config(page_title="Store Visit Monitor", page_icon="🏪", layout="wide")

st.title("🏪 Store Visit Monitor")
st.markdown("---")

with st.sidebar:
    st.header("📋 Instructions")
    st.markdown("""
    **How this works:**
    1. Paste a batch of store visits as JSON and submit it
    2. Copy the returned job id
    3. Poll the job until it is `completed` or `failed`
    4. Failed jobs list an error per store

    `count` must equal the number of visits.
    """)

col1, col2 = st.columns([1, 1])

with col1:
    st.header("🚀 Submit Batch")

    with st.form("submit_job"):
        raw = st.text_area("Batch JSON", value=json.dumps(EXAMPLE_BATCH, indent=2), height=300)
        submitted = st.form_submit_button("🎯 Submit", use_container_width=True)

        if submitted:
            with st.spinner("Submitting..."):
                try:
                    r = requests.post(
                        f"{API_BASE}/api/submit/",
                        data=raw.encode("utf-8"),
                        headers={"Content-Type": "application/json"},
                    )
                    if r.status_code == 201:
                        st.success("✅ Job submitted")
                        st.info(f"**Job ID:** `{r.json()['job_id']}`")
                    else:
                        st.error(f"❌ {r.status_code}: {r.json().get('detail', r.text)}")
                except requests.RequestException as e:
                    st.error(f"❌ Connection error: {e}")

with col2:
    st.header("🔍 Check Job Status")

    auto_refresh = st.checkbox("🔄 Auto-refresh every 3 seconds", value=False)
    job_id = st.text_input("Job ID", placeholder="e.g. 1")
    check_clicked = st.button("🔍 Check Status", use_container_width=True)

    if (check_clicked or auto_refresh) and job_id:
        try:
            r = requests.get(f"{API_BASE}/api/status", params={"jobid": job_id})
            if r.ok:
                job = r.json()
                status = job["status"]
                if status == "completed":
                    st.success(f"✅ **Status:** {status.upper()}")
                elif status == "failed":
                    st.error(f"❌ **Status:** {status.upper()}")
                    st.dataframe(job.get("error", []), use_container_width=True)
                else:
                    st.info(f"🔄 **Status:** {status.upper()}")

                detail = requests.get(f"{API_BASE}/api/jobs/{job['job_id']}")
                if detail.ok:
                    results = detail.json()["results"]
                    with st.expander("📐 Image perimeters", expanded=False):
                        if results:
                            st.dataframe(results, use_container_width=True)
                        else:
                            st.info("No images processed yet...")
            else:
                st.error(f"❌ {r.json().get('detail', r.text)}")
        except requests.RequestException as e:
            st.error(f"❌ Connection error: {e}")

st.markdown("---")
st.subheader("📊 All Jobs Overview")

try:
    all_jobs_r = requests.get(f"{API_BASE}/api/jobs")
    if all_jobs_r.ok:
        all_jobs = all_jobs_r.json()["jobs"]
        if all_jobs:
            st.dataframe(all_jobs[-10:], use_container_width=True)
        else:
            st.info("No jobs yet")
    else:
        st.warning("Could not fetch job list")
except requests.RequestException as e:
    st.warning(f"Could not fetch jobs: {e}")

if auto_refresh and job_id:
    time.sleep(3)
    st.rerun()
