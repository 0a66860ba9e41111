import os

from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080/api/v1").rstrip("/")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "30"))

API_ENDPOINTS = {
    "start_benefit_calculator": f"{API_BASE_URL}/benefit/start",
    "complete_benefit_calculator": f"{API_BASE_URL}/benefit/complete",
}
