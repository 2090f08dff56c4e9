import os
from datetime import datetime

import requests
import streamlit as st

API = os.getenv("API_URL", "http://localhost:8000/api/v1")

st.set_page_config(page_title="Tasknest", layout="wide")
st.title("Tasknest — your tasks")

with st.sidebar:
    user_id = st.text_input("User ID", value=os.getenv("TASKNEST_USER", "demo-user"))
    if st.button("Log out"):
        requests.delete(f"{API}/session", headers={"X-User-Id": user_id})
        st.info("Session cleared.")

HEADERS = {"X-User-Id": user_id}


def api(method: str, path: str, **kwargs):
    r = requests.request(method, f"{API}{path}", headers=HEADERS, timeout=15, **kwargs)
    if r.status_code >= 400:
        st.error(f"{method} {path} failed: {r.status_code} {r.text}")
        return None
    return r.json() if r.content else None


tabs = st.tabs(["Dashboard", "Tasks", "Archive"])

# --- Dashboard ---
with tabs[0]:
    reminder = api("GET", "/dashboard/reminder")
    if reminder:
        if reminder["count"]:
            st.info(f"You have {reminder['count']} task(s) due today: "
                    + ", ".join(t["title"] for t in reminder["tasks"]))
        else:
            st.success("No tasks due today!")

    stats = api("GET", "/dashboard/stats")
    if stats:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Completed", stats["completed"])
        c2.metric("Pending", stats["pending"])
        c3.metric("Overdue", stats["overdue"])
        c4.metric("Due today", stats["due_today"])

    charts = api("GET", "/dashboard/charts")
    if charts:
        col1, col2 = st.columns(2)
        with col1:
            st.markdown("**By category**")
            st.bar_chart(charts["by_category"])
            st.markdown("**By status**")
            st.bar_chart(charts["by_status"])
        with col2:
            st.markdown("**By priority**")
            st.bar_chart(charts["by_priority"])
            st.markdown("**This month**")
            st.line_chart(
                {
                    "completed": [d["completed"] for d in charts["monthly_progress"]],
                    "created": [d["created"] for d in charts["monthly_progress"]],
                }
            )

# --- Tasks ---
with tabs[1]:
    with st.form("new_task", clear_on_submit=True):
        st.markdown("### New task")
        title = st.text_input("Title")
        description = st.text_area("Description", height=80)
        c1, c2, c3, c4 = st.columns(4)
        day = c1.date_input("Deadline")
        at = c2.time_input("Time")
        priority = c3.selectbox("Priority", ["low", "medium", "high"], index=1)
        recurring = c4.selectbox("Repeat", ["none", "daily", "weekly", "monthly"])
        category = st.text_input("Category", value="general")
        if st.form_submit_button("Add task", type="primary"):
            created = api("POST", "/tasks", json={
                "title": title,
                "description": description,
                "deadline": datetime.combine(day, at).isoformat(),
                "priority": priority,
                "category": category,
                "recurring": recurring,
            })
            if created:
                st.success(f"Task created — {created['title']}")

    f1, f2, f3, f4 = st.columns(4)
    search = f1.text_input("Search")
    status = f2.selectbox("Status", ["all", "active", "completed"])
    prio = f3.selectbox("Priority filter", ["all", "low", "medium", "high"])
    on_date = f4.date_input("Due on", value=None)

    params = {"search": search, "status": status}
    if prio != "all":
        params["priority"] = prio
    if on_date:
        params["date"] = on_date.isoformat()

    for task in api("GET", "/tasks", params=params) or []:
        row = st.columns([6, 1, 1])
        label = f"**{task['title']}** · {task['priority']} · due {task['deadline']}"
        if task["recurring"] != "none":
            label += f" · repeats {task['recurring']}"
        row[0].markdown(("~~" + label + "~~") if task["completed"] else label)
        if row[1].button("Done" if not task["completed"] else "Undo", key=f"t{task['id']}"):
            outcome = api("POST", f"/tasks/{task['id']}/toggle")
            if outcome:
                (st.warning if outcome.get("warning") else st.success)(outcome["message"])
        if row[2].button("Archive", key=f"a{task['id']}"):
            api("POST", f"/tasks/{task['id']}/archive")

# --- Archive ---
with tabs[2]:
    for task in api("GET", "/tasks/archived") or []:
        row = st.columns([6, 1, 1])
        row[0].markdown(f"{task['title']} · due {task['deadline']}")
        if row[1].button("Restore", key=f"u{task['id']}"):
            api("POST", f"/tasks/{task['id']}/unarchive")
        if row[2].button("Delete", key=f"d{task['id']}"):
            api("DELETE", f"/tasks/{task['id']}")
