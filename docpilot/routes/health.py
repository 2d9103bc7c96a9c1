from fastapi import APIRouter, Depends

from docpilot.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/health/config")
def health_config(settings: Settings = Depends(get_settings)):
    # Which collaborators are configured; never echoes secrets
    return {
        "gemini": bool(settings.gemini_api_key),
        "pinecone": bool(settings.pinecone_api_key and settings.pinecone_host),
        "google_oauth": bool(settings.google_access_token or settings.google_refresh_token),
        "rules_folder": bool(settings.rules_folder_id),
        "ga4": bool(settings.ga4_property_id),
        "email_recipients": len(settings.email_recipients),
    }
