import os

from dotenv import load_dotenv

# Cargar variables de entorno
load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000/api").rstrip("/")

# Uploaded images are served next to the API, not under it
ASSET_BASE_URL = os.getenv("ASSET_BASE_URL") or (
    API_BASE_URL[: -len("/api")] if API_BASE_URL.endswith("/api") else API_BASE_URL
)

TOKEN_FILE = os.getenv("AGENT_GALLERY_TOKEN_FILE", os.path.join(os.path.expanduser("~"), ".agent-gallery", "session.json"))
