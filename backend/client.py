# backend/client.py
import os
from datetime import datetime, timedelta

import requests

API = os.getenv("API_URL", "http://localhost:8000/api/v1")
HEADERS = {"X-User-Id": os.getenv("TASKNEST_USER", "demo-user")}

def test_health():
    r = requests.get(f"{API}/health")
    print("Health:", r.status_code, r.json())

def test_create_task():
    payload = {
        "title": "Water plants",
        "description": "Balcony and kitchen",
        "deadline": (datetime.now() + timedelta(hours=1)).replace(microsecond=0).isoformat(),
        "priority": "medium",
        "category": "home",
        "recurring": "daily",
    }
    r = requests.post(f"{API}/tasks", json=payload, headers=HEADERS)
    print("Create task:", r.status_code, r.json())
    return r.json().get("id")

def test_toggle(task_id):
    r = requests.post(f"{API}/tasks/{task_id}/toggle", headers=HEADERS)
    print("Toggle:", r.status_code, r.json())

def test_list_tasks():
    r = requests.get(f"{API}/tasks", headers=HEADERS)
    print("List tasks:", r.status_code, r.json())

def test_dashboard():
    r = requests.get(f"{API}/dashboard/stats", headers=HEADERS)
    print("Dashboard:", r.status_code, r.json())

if __name__ == "__main__":
    print("--- Testing Tasknest backend ---")
    test_health()
    task_id = test_create_task()
    if task_id:
        test_toggle(task_id)
    test_list_tasks()
    test_dashboard()
