import os

API_URL = os.getenv("DASHBOARD_API_URL", "http://localhost:8000")

TIME_ZONE = os.getenv("DASHBOARD_TIME_ZONE", "Asia/Kolkata")
TIME_API_URL = os.getenv(
    "DASHBOARD_TIME_API_URL",
    f"https://timeapi.io/api/time/current/zone?timeZone={TIME_ZONE}",
)
TIME_API_TIMEOUT = float(os.getenv("DASHBOARD_TIME_API_TIMEOUT", "5"))
