import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docpilot.config import get_settings
from docpilot.routes import assistant, health, reports

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings = get_settings()

app = FastAPI(title="Docpilot")

# "*" stays a plain wildcard; wildcard subdomains become a regex
raw_origins = settings.allow_origins or ["*"]
allowed_origins = [o for o in raw_origins if "*" not in o or o == "*"]
allow_origin_regex = None
for o in raw_origins:
    if o.startswith("https://*."):
        allow_origin_regex = r"^https://.*\." + o[len("https://*."):].replace(".", r"\.") + "$"
        break

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(assistant.router)
app.include_router(reports.router, prefix="/api")
